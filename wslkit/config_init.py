import os
import copy

from .file_io import tomls
from . import filesystem
from . import print_api

CONFIG_FILE_NAME = 'config.toml'
CONFIG: dict = dict()

# Empty strings are resolved at runtime: 'get_program_directory', 'get_install_root', '7z' search in the PATH.
DEFAULT_CONFIG: dict = {
    'vpnkit': {
        'program_directory': '',
        'docker_installer_url': 'https://desktop.docker.com/win/main/amd64/Docker%20Desktop%20Installer.exe',
        'npiperelay_repo_url': 'https://github.com/jstarks/npiperelay',
        'npiperelay_asset_pattern': '*npiperelay_windows_amd64.zip',
        'wsl_vpnkit_repo_url': 'https://github.com/sakai135/wsl-vpnkit',
        # Tag or branch of the 'wsl-vpnkit' script. 'latest' is the tag of the latest release.
        'wsl_vpnkit_ref': 'v0.2.5',
        'wsl_vpnkit_script_path': 'wsl-vpnkit',
        'github_pat': '',
        'sevenz_path': '',
        'relay_distro': '',
        'dependency_package': 'socat'
    },
    'sideload': {
        'install_root': '',
        'wsl_version': 2,
        'keep_temporary': False
    },
    'logging': {
        'directory': '',
        'level': 'INFO'
    }
}


def get_config(script_directory: str = None, config_file_name: str = CONFIG_FILE_NAME) -> dict:
    """
    Get the config file content, merged over the defaults.
    If the config file doesn't exist, it is created with the defaults.

    :param script_directory: string, path to the script directory. Default is None. If None, the function will
        get the working directory instead.
    :param config_file_name: string, name of the config file. Default is 'config.toml' as specified in the constant:
        'CONFIG_FILE_NAME'.
    :return: dict.
    """

    global CONFIG

    if not script_directory:
        script_directory = filesystem.get_working_directory()

    config_file_path: str = f'{script_directory}{os.sep}{config_file_name}'
    if not filesystem.is_file_exists(config_file_path):
        write_config(DEFAULT_CONFIG, script_directory=script_directory, config_file_name=config_file_name)
        CONFIG = copy.deepcopy(DEFAULT_CONFIG)
        return CONFIG

    CONFIG = merge_with_defaults(tomls.read_toml_file(config_file_path))
    return CONFIG


def merge_with_defaults(config: dict) -> dict:
    """
    Missing sections and keys get the default values. Unknown keys are kept.

    :param config: dict, config as read from the file.
    :return: dict, new dictionary.
    """

    merged: dict = copy.deepcopy(DEFAULT_CONFIG)
    for section_name, section in config.items():
        if isinstance(section, dict):
            merged.setdefault(section_name, dict()).update(section)
        else:
            merged[section_name] = section
    return merged


def write_config(
        config: dict,
        script_directory: str = None,
        config_file_name: str = CONFIG_FILE_NAME,
        print_message: bool = True
):
    """
    Write the config file with the specified content. Existing file is not overwritten.

    :param config: dict, content to write to the file.
    :param script_directory: string, path to the script directory. Default is None. If None, the function will
        get the working directory instead.
    :param config_file_name: string, name of the config file. Default is 'config.toml' as specified in the constant:
        'CONFIG_FILE_NAME'.
    :param print_message: boolean, if True, the function will print the message about the created config file.
    """

    if not script_directory:
        script_directory = filesystem.get_working_directory()

    config_file_path = f'{script_directory}{os.sep}{config_file_name}'

    if not filesystem.is_file_exists(config_file_path):
        tomls.write_toml_file(config, config_file_path)

        if print_message:
            print_api.print_api(f"Created config file with defaults: {config_file_path}", color="yellow")


def _get_local_app_data() -> str:
    return os.environ.get('LOCALAPPDATA') or os.path.join(os.path.expanduser('~'), 'AppData', 'Local')


def get_program_directory(config: dict) -> str:
    """
    VPNKit program directory on the host: configured path, or '%LOCALAPPDATA%\\wslkit\\vpnkit'.
    """

    configured: str = config['vpnkit'].get('program_directory')
    if configured:
        return os.path.expandvars(configured)
    return os.path.join(_get_local_app_data(), 'wslkit', 'vpnkit')


def get_install_root(config: dict) -> str:
    """
    Directory that sideloaded distros are imported into: configured path, or '%LOCALAPPDATA%\\wslkit\\distros'.
    """

    configured: str = config['sideload'].get('install_root')
    if configured:
        return os.path.expandvars(configured)
    return os.path.join(_get_local_app_data(), 'wslkit', 'distros')
