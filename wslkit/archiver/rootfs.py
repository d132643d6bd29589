"""
Find the root filesystem tarball inside a distro image.

Distro images come in different wrappers:
    '.appxbundle' (zip) -> '<name>_x64.appx' (zip) -> 'install.tar.gz'
    '.appx' / '.zip' -> 'install.tar.gz' or 'install.tar'
    '.7z' -> '*.tar' / '*.tar.gz' / '*.tar.xz'
    '.tar.xz' -> decompressed to '.tar', since 'wsl --import' doesn't read xz
    '.tar' / '.tar.gz' -> imported as is
"""

import os
import lzma
import shutil

from . import zips, sevenzs
from ..print_api import print_api


ROOTFS_MEMBER_NAMES: list = ['install.tar.gz', 'install.tar']
IMPORTABLE_EXTENSIONS: tuple = ('.tar', '.tar.gz', '.tgz')
XZ_EXTENSIONS: tuple = ('.tar.xz', '.txz')
TARBALL_EXTENSIONS: tuple = IMPORTABLE_EXTENSIONS + XZ_EXTENSIONS
# Appx packages of other architectures inside a bundle.
FOREIGN_ARCHITECTURE_MARKERS: tuple = ('arm64', 'arm', 'x86')
# Bundle -> appx -> tarball.
MAX_NESTING_DEPTH: int = 4

GZIP_MAGIC: bytes = b'\x1f\x8b'
XZ_MAGIC: bytes = b'\xfd7zXZ\x00'


class RootfsFormatError(Exception):
    pass


def _read_magic(file_path: str, length: int = 6) -> bytes:
    with open(file_path, 'rb') as file:
        return file.read(length)


def _is_tar(file_path: str) -> bool:
    # 'ustar' magic at offset 257 of the first header.
    with open(file_path, 'rb') as file:
        file.seek(257)
        return file.read(5) == b'ustar'


def select_appx(member_names: list) -> str | None:
    """
    Select the x64 package out of the '.appx' members of a bundle.

    :param member_names: list of strings, names of the bundle members.
    :return: string, member name. None if there is no '.appx' member.
    """

    appx_names: list = [name for name in member_names if name.lower().endswith('.appx')]
    if not appx_names:
        return None

    for appx_name in appx_names:
        lowered = os.path.basename(appx_name).lower()
        if 'x64' in lowered or 'amd64' in lowered:
            return appx_name

    for appx_name in appx_names:
        lowered = os.path.basename(appx_name).lower().replace('x64', '')
        if not any(marker in lowered for marker in FOREIGN_ARCHITECTURE_MARKERS):
            return appx_name

    return None


def select_rootfs_member(member_names: list) -> str | None:
    for rootfs_name in ROOTFS_MEMBER_NAMES:
        for member_name in member_names:
            if os.path.basename(member_name).lower() == rootfs_name:
                return member_name
    return None


def decompress_xz(file_path: str, target_directory: str, print_kwargs: dict = None) -> str:
    """
    Decompress '.tar.xz' to '.tar'.

    :param file_path: string, path to the '.tar.xz' file.
    :param target_directory: string, directory of the result.
    :param print_kwargs: dict, kwargs for print_api.
    :return: string, path to the '.tar' file.
    """

    file_name: str = os.path.basename(file_path)
    for extension in XZ_EXTENSIONS:
        if file_name.lower().endswith(extension):
            file_name = file_name[:-len(extension)]
            break
    tar_path: str = os.path.join(target_directory, f'{file_name}.tar')

    print_api(f'Decompressing [{file_path}] to: {tar_path}', **(print_kwargs or {}))
    with lzma.open(file_path, 'rb') as source, open(tar_path, 'wb') as target:
        shutil.copyfileobj(source, target, length=1024 * 1024)

    return tar_path


def _find_tarball(directory_path: str) -> str | None:
    found: list = []
    for dir_path, _, file_names in os.walk(directory_path):
        for file_name in file_names:
            if file_name.lower().endswith(TARBALL_EXTENSIONS):
                found.append(os.path.join(dir_path, file_name))

    if not found:
        return None

    # 'install.tar.gz' first, then the biggest tarball.
    for file_path in found:
        if os.path.basename(file_path).lower() in ROOTFS_MEMBER_NAMES:
            return file_path
    return max(found, key=os.path.getsize)


def resolve_rootfs(
        image_path: str,
        work_directory: str,
        depth: int = 0,
        print_kwargs: dict = None
) -> str:
    """
    Get the tarball that 'wsl --import' accepts out of the distro image. The nested archives are extracted into
    'work_directory', the caller is responsible for removing it.

    :param image_path: string, path to the downloaded image.
    :param work_directory: string, directory for the extracted files.
    :param depth: int, current nesting level.
    :param print_kwargs: dict, kwargs for print_api.
    :return: string, path to '.tar' or '.tar.gz' file.
    :raises RootfsFormatError: the image format isn't supported or no root filesystem was found inside.
    """

    if depth > MAX_NESTING_DEPTH:
        raise RootfsFormatError(f'Too many nested archives in: {image_path}')

    if not os.path.isfile(image_path):
        raise RootfsFormatError(f'Image file does not exist: {image_path}')

    file_name: str = os.path.basename(image_path).lower()
    magic: bytes = _read_magic(image_path)

    if zips.is_zip_magic_number(image_path):
        member_names: list = zips.get_file_list_from_zip(image_path)

        rootfs_member = select_rootfs_member(member_names)
        if rootfs_member:
            extracted_path = zips.extract_member(image_path, rootfs_member, work_directory, print_kwargs=print_kwargs)
            return resolve_rootfs(extracted_path, work_directory, depth=depth + 1, print_kwargs=print_kwargs)

        appx_member = select_appx(member_names)
        if appx_member:
            extracted_path = zips.extract_member(image_path, appx_member, work_directory, print_kwargs=print_kwargs)
            return resolve_rootfs(extracted_path, work_directory, depth=depth + 1, print_kwargs=print_kwargs)

        raise RootfsFormatError(f'No root filesystem or x64 package was found inside: {image_path}')

    if sevenzs.is_7z_magic_number(image_path):
        if not any(name.lower().endswith(TARBALL_EXTENSIONS) for name in sevenzs.get_file_list_from_7z(image_path)):
            raise RootfsFormatError(f'No root filesystem tarball was found inside: {image_path}')

        extract_directory: str = os.path.join(work_directory, f'7z_{depth}')
        sevenzs.extract_archive_with_py7zr(image_path, extract_directory, print_kwargs=print_kwargs)
        tarball_path = _find_tarball(extract_directory)
        if not tarball_path:
            raise RootfsFormatError(f'No root filesystem tarball was found inside: {image_path}')
        return resolve_rootfs(tarball_path, work_directory, depth=depth + 1, print_kwargs=print_kwargs)

    if magic.startswith(XZ_MAGIC) or file_name.endswith(XZ_EXTENSIONS):
        return decompress_xz(image_path, work_directory, print_kwargs=print_kwargs)

    if magic.startswith(GZIP_MAGIC) or _is_tar(image_path):
        print_api(f'Root filesystem: {image_path}', color='green', **(print_kwargs or {}))
        return image_path

    raise RootfsFormatError(f'Unsupported image format: {image_path}')
