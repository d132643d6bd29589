import os

from .distro_store import DistroStore, DistroRecord
from ..archiver import rootfs
from ..vpnkit import package_managers
from ..wrappers import wslw
from .. import web, filesystem
from ..print_api import print_api


class DistroExistsError(Exception):
    pass


def is_url(image: str) -> bool:
    return image.lower().startswith(('http://', 'https://'))


def get_image(image: str, work_directory: str, print_kwargs: dict = None) -> str:
    """
    :param image: string, URL or local path of the distro image.
    :param work_directory: string, download directory.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: string, local path of the image.
    """

    if is_url(image):
        image_path = web.download(image, target_directory=work_directory, **(print_kwargs or {}))
        if not image_path:
            raise filesystem.RequiredFileMissingError(f'Download failed: {image}')
        return image_path

    if not filesystem.is_file_exists(image):
        raise filesystem.RequiredFileMissingError(f'Image file does not exist: {image}')
    return os.path.abspath(image)


def create_user(
        distro: str,
        user: str,
        store: DistroStore,
        password: str = None,
        print_kwargs: dict = None
) -> int:
    """
    Create the user with the command of the distro family, add it to the administrators group and make it the
    default user of the distro.

    :param distro: string, distro name.
    :param user: string, user name.
    :param store: DistroStore.
    :param password: string, password of the user. If None, the password isn't set.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: int, UID of the user.
    """

    family = package_managers.get_family(wslw.read_os_release(distro, print_kwargs=print_kwargs))
    package_manager_class = package_managers.PACKAGE_MANAGERS.get(family, package_managers.PackageManager)

    print_api(f'Creating user [{user}] in [{distro}]', **(print_kwargs or {}))
    for command in package_manager_class.get_add_user_commands(user):
        wslw.run_in_distro(distro, command, user='root', print_kwargs=print_kwargs)

    if password:
        wslw.run_in_distro(
            distro, ['chpasswd'], user='root', input_bytes=f'{user}:{password}\n'.encode('utf-8'),
            print_kwargs=print_kwargs)

    uid: int = wslw.get_user_uid(distro, user, print_kwargs=print_kwargs)
    store.set(distro, 'default_uid', uid)
    print_api(f'Default user of [{distro}]: {user} ({uid})', color='green', **(print_kwargs or {}))
    return uid


def sideload(
        name: str,
        image: str,
        install_root: str,
        store: DistroStore,
        version: int = 2,
        user: str = None,
        password: str = None,
        set_default: bool = False,
        keep_temporary: bool = False,
        print_kwargs: dict = None
) -> DistroRecord:
    """
    Import the distro image into WSL.

    :param name: string, the name of the new distro.
    :param image: string, URL or local path of the image: '.appxbundle', '.appx', '.zip', '.7z', '.tar', '.tar.gz',
        '.tar.xz'.
    :param install_root: string, the distro is imported into '<install_root>/<name>'.
    :param store: DistroStore.
    :param version: int, WSL version, 1 or 2.
    :param user: string, user to create and set as default. If None, root stays the default user.
    :param password: string, password of the new user.
    :param set_default: boolean, make the new distro the default one.
    :param keep_temporary: boolean, don't remove the downloaded and extracted files.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: DistroRecord of the new distro.
    """

    if store.exists(name):
        raise DistroExistsError(f'Distro is already registered: {name}')

    install_directory: str = os.path.join(install_root, name)
    if filesystem.is_directory_exists(install_directory) and os.listdir(install_directory):
        raise DistroExistsError(f'Install directory is not empty: {install_directory}')

    with filesystem.temporary_directory(
            prefix='wslkit_sideload_', keep=keep_temporary, print_kwargs=print_kwargs) as work_directory:
        image_path: str = get_image(image, work_directory, print_kwargs=print_kwargs)
        rootfs_path: str = rootfs.resolve_rootfs(image_path, work_directory, print_kwargs=print_kwargs)

        filesystem.create_directory(install_directory)
        wslw.import_distro(name, install_directory, rootfs_path, version=version, print_kwargs=print_kwargs)

    if user:
        create_user(name, user, store, password=password, print_kwargs=print_kwargs)

    if set_default:
        wslw.set_default_distro(name, print_kwargs=print_kwargs)

    return store.get(name)
