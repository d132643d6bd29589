"""
Install / uninstall / configure / unconfigure of the VPNKit relay inside a distro.

The state of a distro is two independent flags: binaries installed, DNS configured.
Each procedure moves one flag and can be executed again without changing anything.
'configure' is separate from 'install', since some distros only need the DNS part.

The procedures work over a filesystem root, '/' when running inside the distro.
The same procedures are rendered as shell scripts in 'templates.py' for distros without python.
"""

import os
import stat

from . import config_patcher
from .. import filesystem
from ..filesystem import RequiredFileMissingError
from ..permissions import permissions
from ..print_api import print_api


GATEWAY_ADDRESS: str = '192.168.67.1'
FALLBACK_NAMESERVER: str = '1.1.1.1'

WSL_CONF_PATH: str = '/etc/wsl.conf'
RESOLV_CONF_PATH: str = '/etc/resolv.conf'
NETWORK_SECTION: str = 'network'
GENERATE_RESOLV_CONF_KEY: str = 'generateResolvConf'
GENERATE_RESOLV_CONF_VALUE: str = 'false'
RESOLV_CONF_CONTENT: str = f'nameserver {GATEWAY_ADDRESS}\nnameserver {FALLBACK_NAMESERVER}\n'

BIN_DIRECTORY: str = '/usr/local/bin'
SBIN_DIRECTORY: str = '/sbin'
RELAY_SCRIPT_NAME: str = 'wsl-vpnkit'
INSTALL_SCRIPT_NAME: str = 'wsl-vpnkit-install'
UNINSTALL_SCRIPT_NAME: str = 'wsl-vpnkit-uninstall'
CONFIGURE_SCRIPT_NAME: str = 'wsl-vpnkit-configure'
UNCONFIGURE_SCRIPT_NAME: str = 'wsl-vpnkit-unconfigure'
SCRIPT_NAMES: list = [INSTALL_SCRIPT_NAME, UNINSTALL_SCRIPT_NAME, CONFIGURE_SCRIPT_NAME, UNCONFIGURE_SCRIPT_NAME]
BIN_FILE_NAMES: list = [RELAY_SCRIPT_NAME] + SCRIPT_NAMES
TAP_FILE_NAME: str = 'vpnkit-tap-vsockd'

EXECUTABLE_MODE: int = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH


def resolve_path(root: str, absolute_path: str) -> str:
    """
    Path of the distro file under the root.
    Example: resolve_path('/tmp/root', '/etc/wsl.conf') -> '/tmp/root/etc/wsl.conf'.
    """
    return os.path.join(root, absolute_path.lstrip('/'))


def get_installed_paths() -> list[str]:
    """
    :return: list of absolute distro paths that 'install' creates.
    """

    paths: list = [f'{BIN_DIRECTORY}/{file_name}' for file_name in BIN_FILE_NAMES]
    paths.append(f'{SBIN_DIRECTORY}/{TAP_FILE_NAME}')
    return paths


def configure(root: str = '/', print_kwargs: dict = None) -> None:
    """
    Point the distro DNS at the relay gateway: WSL must stop generating '/etc/resolv.conf', and the file is replaced
    with the gateway and the fallback nameserver.

    :param root: string, filesystem root of the distro.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    config_patcher.ensure_section_key(
        resolve_path(root, WSL_CONF_PATH), NETWORK_SECTION, GENERATE_RESOLV_CONF_KEY, GENERATE_RESOLV_CONF_VALUE,
        print_kwargs=print_kwargs)
    config_patcher.replace_file(
        resolve_path(root, RESOLV_CONF_PATH), RESOLV_CONF_CONTENT, print_kwargs=print_kwargs)
    print_api('VPNKit DNS configured.', color='green', **(print_kwargs or {}))


def unconfigure(root: str = '/', print_kwargs: dict = None) -> None:
    """
    Undo 'configure'. '/etc/resolv.conf' is removed, WSL generates it again on the next distro start.
    '/etc/wsl.conf' is removed if nothing but the bare '[network]' header is left in it.

    :param root: string, filesystem root of the distro.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    config_patcher.replace_file(resolve_path(root, RESOLV_CONF_PATH), '', print_kwargs=print_kwargs)
    config_patcher.remove_key_everywhere(
        resolve_path(root, WSL_CONF_PATH), GENERATE_RESOLV_CONF_KEY, section=NETWORK_SECTION,
        print_kwargs=print_kwargs)
    print_api('VPNKit DNS unconfigured.', color='green', **(print_kwargs or {}))


def install(source_directory: str, root: str = '/', print_kwargs: dict = None) -> list[str]:
    """
    Copy the relay script, the four procedure scripts and 'vpnkit-tap-vsockd' into the distro.

    :param source_directory: string, directory with the files, usually the program directory mounted under '/mnt'.
    :param root: string, filesystem root of the distro.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: list of strings, the installed paths under the root.
    :raises PermissionError: not executed as root.
    :raises RequiredFileMissingError: one of the source files doesn't exist. Nothing is copied in this case.
    """

    if not permissions.is_root():
        raise PermissionError('Installing VPNKit requires root. Execute with: wsl -u root')

    missing_files: list = [
        file_name for file_name in BIN_FILE_NAMES + [TAP_FILE_NAME]
        if not filesystem.is_file_exists(os.path.join(source_directory, file_name))]
    if missing_files:
        raise RequiredFileMissingError(f'Missing in [{source_directory}]: {", ".join(missing_files)}')

    installed_paths: list = []
    bin_directory: str = resolve_path(root, BIN_DIRECTORY)
    filesystem.create_directory(bin_directory)
    for file_name in BIN_FILE_NAMES:
        target_path: str = os.path.join(bin_directory, file_name)
        _copy_executable(os.path.join(source_directory, file_name), target_path, print_kwargs=print_kwargs)
        installed_paths.append(target_path)

    sbin_directory: str = resolve_path(root, SBIN_DIRECTORY)
    filesystem.create_directory(sbin_directory)
    tap_path: str = os.path.join(sbin_directory, TAP_FILE_NAME)
    _copy_executable(os.path.join(source_directory, TAP_FILE_NAME), tap_path, print_kwargs=print_kwargs)
    # Executed by the relay as root.
    os.chown(tap_path, 0, 0)
    installed_paths.append(tap_path)

    print_api('VPNKit installed.', color='green', **(print_kwargs or {}))
    return installed_paths


def _copy_executable(source_path: str, target_path: str, print_kwargs: dict = None) -> None:
    # The old file may be a running executable or a symlink, so it is replaced and not written into.
    if filesystem.is_path_exists_or_link(target_path):
        filesystem.remove_file(target_path)

    filesystem.copy_file(source_path, target_path)
    os.chmod(target_path, EXECUTABLE_MODE)
    print_api(f'Installed: {target_path}', **(print_kwargs or {}))


def uninstall(root: str = '/', print_kwargs: dict = None) -> None:
    """
    'unconfigure', then remove every file that 'install' created. Files that don't exist are skipped.

    :param root: string, filesystem root of the distro.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :raises PermissionError: not executed as root.
    """

    if not permissions.is_root():
        raise PermissionError('Uninstalling VPNKit requires root. Execute with: wsl -u root')

    unconfigure(root=root, print_kwargs=print_kwargs)

    for installed_path in get_installed_paths():
        filesystem.remove_file(resolve_path(root, installed_path), print_kwargs=print_kwargs)

    print_api('VPNKit uninstalled.', color='green', **(print_kwargs or {}))
