import os
import shutil
from pathlib import Path

from ..print_api import print_api
from .. import process


# Default install locations of 7-Zip on Windows.
SEVENZ_DEFAULT_PATHS: list = [
    r'C:\Program Files\7-Zip\7z.exe',
    r'C:\Program Files (x86)\7-Zip\7z.exe'
]


class SevenZipNotFoundError(Exception):
    pass


def is_path_contains_7z_executable(sevenz_path: str) -> bool:
    """
    Checks if the path contains 7z executable.
    :param sevenz_path: string, The path to the 7z executable.
    :return: bool, True if the path contains 7z executable, False otherwise.
    """

    return '7z' in Path(sevenz_path).name.lower()


def find_7z_executable(sevenz_path: str = None) -> str:
    """
    Find the 7z executable. The configured path wins, then the PATH, then the default install locations.
    7-Zip is never downloaded, it must be installed.

    :param sevenz_path: string, configured path to the 7z executable. Empty or None to search.
    :return: string, path to the 7z executable.
    :raises SevenZipNotFoundError: nothing was found.
    """

    if sevenz_path:
        if not is_path_contains_7z_executable(sevenz_path):
            raise SevenZipNotFoundError(f'The path to 7z does not contain 7z executable: {sevenz_path}')
        if not process.is_command_exists(sevenz_path):
            raise SevenZipNotFoundError(f'7z executable was not found: {sevenz_path}')
        return sevenz_path

    for executable_name in ['7z', '7z.exe', '7za']:
        found_path = shutil.which(executable_name)
        if found_path:
            return found_path

    for default_path in SEVENZ_DEFAULT_PATHS:
        if os.path.isfile(default_path):
            return default_path

    raise SevenZipNotFoundError(
        "7z executable was not found. Install 7-Zip or set [vpnkit] 'sevenz_path' in the config file.")


def extract_file(
        file_path: str,
        extract_to: str,
        sevenz_path: str,
        members: list = None,
        without_directories: bool = False,
        force_overwrite: bool = True,
        print_kwargs: dict = None
) -> str:
    """
    Extracts a file to a directory using 7z executable.
    7z opens formats that the python libraries don't: NSIS/installer executables and ISO images.

    :param file_path: string, The path to the file to extract.
    :param extract_to: string, The directory to extract the file to.
    :param sevenz_path: string, The path to the 7z executable, as returned by 'find_7z_executable'.
    :param members: list of strings, paths inside the archive to extract. If None, everything is extracted.
    :param without_directories: bool, If True, the 'e' command is used and the files are extracted flat.
    :param force_overwrite: bool, If True, the files will be overwritten if they already exist in the output folder.
    :param print_kwargs: dict, The keyword arguments to pass to the print function.
    :return: string, 'extract_to'.
    """

    os.makedirs(extract_to, exist_ok=True)

    command = [sevenz_path, 'e' if without_directories else 'x', file_path, f'-o{extract_to}']
    if force_overwrite:
        command.append('-y')
    if members:
        command.extend(members)

    process.run_command(command, print_kwargs=print_kwargs)
    print_api(f"Extracted {file_path} to {extract_to}", **(print_kwargs or {}))
    return extract_to
