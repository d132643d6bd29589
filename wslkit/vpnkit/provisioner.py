"""
Preparing the VPNKit program directory on the host and installing it into distros.

Program directory content:
    wsl-vpnkit.exe          'resources/vpnkit.exe' of the Docker Desktop installer.
    vpnkit-tap-vsockd       from 'resources/wsl/docker-for-wsl.iso' of the same installer.
    npiperelay.exe          latest release of 'jstarks/npiperelay'.
    wsl-vpnkit              the relay script.
    wsl-vpnkit-install, wsl-vpnkit-uninstall, wsl-vpnkit-configure, wsl-vpnkit-unconfigure, wsl.conf, resolv.conf
                            rendered from 'script_templates'.
"""

import os

from . import reconcile, templates, package_managers
from .. import web, filesystem
from ..file_io import file_io
from ..archiver import sevenz_app_w, zips
from ..distros.distro_store import DistroStore
from ..wrappers import wslw
from ..wrappers.githubw import GitHubWrapper
from ..print_api import print_api


INSTALLER_MEMBERS: list = ['resources/vpnkit.exe', 'resources/wsl/docker-for-wsl.iso']
ISO_TAP_MEMBER: str = 'containers/services/vpnkit-tap-vsockd/lower/sbin/vpnkit-tap-vsockd'
NPIPERELAY_MEMBER: str = 'npiperelay.exe'
PROGRAM_FILE_NAMES: list = [
    'wsl-vpnkit.exe', reconcile.TAP_FILE_NAME, NPIPERELAY_MEMBER, reconcile.RELAY_SCRIPT_NAME
] + templates.RENDERED_FILE_NAMES


def get_missing_program_files(program_directory: str, file_names: list = None) -> list[str]:
    if file_names is None:
        file_names = PROGRAM_FILE_NAMES
    return [
        file_name for file_name in file_names
        if not filesystem.is_file_exists(os.path.join(program_directory, file_name))]


def _require_program_files(program_directory: str, file_names: list = None) -> None:
    missing_files: list = get_missing_program_files(program_directory, file_names)
    if missing_files:
        raise reconcile.RequiredFileMissingError(
            f'Missing in the program directory [{program_directory}]: {", ".join(missing_files)}. '
            f'Execute the provision command first.')


def get_distro_program_directory(program_directory: str) -> str:
    return filesystem.convert_windows_to_linux_path(os.path.abspath(program_directory), add_wsl_mnt=True)


def download_vpnkit_binaries(
        installer_url: str,
        sevenz_path: str,
        work_directory: str,
        program_directory: str,
        print_kwargs: dict = None
) -> None:
    """
    Download the Docker Desktop installer and extract 'wsl-vpnkit.exe' and 'vpnkit-tap-vsockd' out of it.

    :param installer_url: string, URL of 'Docker Desktop Installer.exe'.
    :param sevenz_path: string, path to the 7z executable.
    :param work_directory: string, temporary directory.
    :param program_directory: string, VPNKit program directory.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    installer_path = web.download(installer_url, target_directory=work_directory, **(print_kwargs or {}))
    if not installer_path:
        raise reconcile.RequiredFileMissingError(f'Download failed: {installer_url}')

    installer_directory: str = os.path.join(work_directory, 'installer')
    sevenz_app_w.extract_file(
        installer_path, installer_directory, sevenz_path, members=INSTALLER_MEMBERS,
        without_directories=True, print_kwargs=print_kwargs)

    iso_path: str = os.path.join(installer_directory, 'docker-for-wsl.iso')
    if not filesystem.is_file_exists(iso_path):
        raise reconcile.RequiredFileMissingError(f'docker-for-wsl.iso was not found in: {installer_path}')

    iso_directory: str = os.path.join(work_directory, 'iso')
    sevenz_app_w.extract_file(
        iso_path, iso_directory, sevenz_path, members=[ISO_TAP_MEMBER], without_directories=True,
        print_kwargs=print_kwargs)

    for source_path, file_name in [
        (os.path.join(installer_directory, 'vpnkit.exe'), 'wsl-vpnkit.exe'),
        (os.path.join(iso_directory, reconcile.TAP_FILE_NAME), reconcile.TAP_FILE_NAME)
    ]:
        if not filesystem.is_file_exists(source_path):
            raise reconcile.RequiredFileMissingError(f'{file_name} was not found in: {installer_path}')
        filesystem.copy_file(source_path, os.path.join(program_directory, file_name))
        print_api(f'Placed: {file_name}', **(print_kwargs or {}))


def download_npiperelay(
        repo_url: str,
        asset_pattern: str,
        work_directory: str,
        program_directory: str,
        pat: str = None,
        print_kwargs: dict = None
) -> None:
    github_wrapper = GitHubWrapper(repo_url=repo_url, pat=pat or None)
    archive_path = github_wrapper.download_latest_release(
        target_directory=work_directory, asset_pattern=asset_pattern, **(print_kwargs or {}))
    if not archive_path:
        raise reconcile.RequiredFileMissingError(f'Download failed: {asset_pattern} of {repo_url}')

    member_names: list = [
        name for name in zips.get_file_list_from_zip(archive_path) if os.path.basename(name) == NPIPERELAY_MEMBER]
    if not member_names:
        raise reconcile.RequiredFileMissingError(f'{NPIPERELAY_MEMBER} was not found in: {archive_path}')

    zips.extract_member(archive_path, member_names[0], program_directory, print_kwargs=print_kwargs)


def download_relay_script(
        repo_url: str,
        ref: str,
        script_path: str,
        program_directory: str,
        pat: str = None,
        print_kwargs: dict = None
) -> str:
    """
    Download the 'wsl-vpnkit' script.

    :param repo_url: string, repository of the script.
    :param ref: string, tag or branch. 'latest' is the tag of the latest release.
    :param script_path: string, path of the script inside the repository.
    :param program_directory: string, VPNKit program directory.
    :param pat: string, GitHub personal access token.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: string, path of the script.
    """

    github_wrapper = GitHubWrapper(repo_url=repo_url, pat=pat or None)
    if ref == 'latest':
        ref = github_wrapper.get_latest_release_version()
    github_wrapper.branch = ref

    script_file_path = github_wrapper.download_raw_file(
        script_path, target_directory=program_directory, file_name=reconcile.RELAY_SCRIPT_NAME,
        **(print_kwargs or {}))
    if not script_file_path:
        raise reconcile.RequiredFileMissingError(f'Download failed: {script_path} of {repo_url}@{ref}')

    # The shell doesn't execute CRLF scripts.
    content: bytes = file_io.read_file(script_file_path, file_mode='rb', print_kwargs=print_kwargs)
    if b'\r\n' in content:
        file_io.write_file(
            content.replace(b'\r\n', b'\n'), script_file_path, file_mode='wb', print_kwargs=print_kwargs)

    return script_file_path


def prepare_program_directory(
        vpnkit_config: dict,
        program_directory: str,
        print_kwargs: dict = None
) -> None:
    """
    Download the relay files and render the scripts into the program directory.

    :param vpnkit_config: dict, '[vpnkit]' section of the config.
    :param program_directory: string, VPNKit program directory.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    # 7-Zip is required before anything is downloaded.
    sevenz_path: str = sevenz_app_w.find_7z_executable(vpnkit_config.get('sevenz_path'))
    filesystem.create_directory(program_directory)

    with filesystem.temporary_directory(prefix='wslkit_vpnkit_', print_kwargs=print_kwargs) as work_directory:
        download_vpnkit_binaries(
            vpnkit_config['docker_installer_url'], sevenz_path, work_directory, program_directory,
            print_kwargs=print_kwargs)
        download_npiperelay(
            vpnkit_config['npiperelay_repo_url'], vpnkit_config['npiperelay_asset_pattern'], work_directory,
            program_directory, pat=vpnkit_config.get('github_pat'), print_kwargs=print_kwargs)
        download_relay_script(
            vpnkit_config['wsl_vpnkit_repo_url'], vpnkit_config['wsl_vpnkit_ref'],
            vpnkit_config['wsl_vpnkit_script_path'], program_directory, pat=vpnkit_config.get('github_pat'),
            print_kwargs=print_kwargs)

    templates.write_program_files(program_directory, print_kwargs=print_kwargs)
    print_api(f'Program directory is ready: {program_directory}', color='green', **(print_kwargs or {}))


def _run_script(distro: str, script_path: str, cd: str = None, print_kwargs: dict = None) -> None:
    # Through 'sh', files on '/mnt' may lack the executable bit.
    output = wslw.run_in_distro(distro, ['/bin/sh', script_path], user='root', cd=cd, print_kwargs=print_kwargs)
    if output.strip():
        print_api(output.strip(), **(print_kwargs or {}))


def install(
        distro: str,
        program_directory: str,
        store: DistroStore,
        dependency_package: str = 'socat',
        print_kwargs: dict = None
) -> package_managers.InstallResult:
    """
    Install the relay files from the program directory into the distro and install the dependency.

    :param distro: string, distro name. Must be WSL2.
    :param program_directory: string, VPNKit program directory.
    :param store: DistroStore.
    :param dependency_package: string, package that the relay script needs.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: InstallResult of the dependency.
    """

    store.require_wsl_version(distro, 2)
    _require_program_files(program_directory)

    _run_script(
        distro, f'./{reconcile.INSTALL_SCRIPT_NAME}', cd=get_distro_program_directory(program_directory),
        print_kwargs=print_kwargs)

    with filesystem.temporary_directory(prefix='wslkit_packages_', print_kwargs=print_kwargs) as download_directory:
        return package_managers.install_dependency(
            distro, dependency_package, download_directory, print_kwargs=print_kwargs)


def configure(distro: str, store: DistroStore, program_directory: str = None, print_kwargs: dict = None) -> None:
    """
    Configure the distro DNS. Distros where only the DNS part is needed get the script from the program directory.
    """

    store.get(distro)
    script_path: str = f'{reconcile.BIN_DIRECTORY}/{reconcile.CONFIGURE_SCRIPT_NAME}'
    if program_directory:
        _require_program_files(program_directory, [reconcile.CONFIGURE_SCRIPT_NAME])
        script_path = f'{get_distro_program_directory(program_directory)}/{reconcile.CONFIGURE_SCRIPT_NAME}'

    _run_script(distro, script_path, print_kwargs=print_kwargs)


def unconfigure(distro: str, store: DistroStore, program_directory: str = None, print_kwargs: dict = None) -> None:
    store.get(distro)
    script_path: str = f'{reconcile.BIN_DIRECTORY}/{reconcile.UNCONFIGURE_SCRIPT_NAME}'
    if program_directory:
        _require_program_files(program_directory, [reconcile.UNCONFIGURE_SCRIPT_NAME])
        script_path = f'{get_distro_program_directory(program_directory)}/{reconcile.UNCONFIGURE_SCRIPT_NAME}'

    _run_script(distro, script_path, print_kwargs=print_kwargs)


def uninstall(distro: str, store: DistroStore, program_directory: str, print_kwargs: dict = None) -> None:
    """
    Run the uninstall script of the program directory: it unconfigures and removes the installed files, including
    the installed copy of itself.
    """

    store.get(distro)
    _require_program_files(program_directory, [reconcile.UNINSTALL_SCRIPT_NAME, reconcile.UNCONFIGURE_SCRIPT_NAME])
    _run_script(
        distro, f'./{reconcile.UNINSTALL_SCRIPT_NAME}', cd=get_distro_program_directory(program_directory),
        print_kwargs=print_kwargs)


def provision(
        distro: str,
        vpnkit_config: dict,
        program_directory: str,
        store: DistroStore,
        print_kwargs: dict = None
) -> None:
    """
    Full flow: program directory, install, configure.

    :param distro: string, distro name. Must be WSL2.
    :param vpnkit_config: dict, '[vpnkit]' section of the config.
    :param program_directory: string, VPNKit program directory.
    :param store: DistroStore.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    # Preconditions before the downloads.
    store.require_wsl_version(distro, 2)

    prepare_program_directory(vpnkit_config, program_directory, print_kwargs=print_kwargs)
    install(
        distro, program_directory, store, dependency_package=vpnkit_config.get('dependency_package', 'socat'),
        print_kwargs=print_kwargs)
    configure(distro, store, print_kwargs=print_kwargs)
    print_api(
        f'VPNKit is provisioned in [{distro}]. Restart the distro: wsl --terminate {distro}', color='green',
        **(print_kwargs or {}))
