import os
import sys
import pathlib
from pathlib import Path, PureWindowsPath, PurePosixPath
import shutil
import stat
import errno
import tempfile
from contextlib import contextmanager

from .print_api import print_api


class RequiredFileMissingError(Exception):
    pass


def get_working_directory() -> str:
    """
    The function returns working directory of called script file.

    :return: string.
    """
    return str(Path.cwd())


def get_temp_directory() -> str:
    """
    The function returns temporary directory of the system.

    :return: string.
    """

    # Get the temporary directory in 8.3 format and convert to the long path name.
    return str(Path(tempfile.gettempdir()).resolve())


def is_file_exists(file_path: str) -> bool:
    """
    Function checks if the path exists and is a file.

    :param file_path: string, full path to file.
    :return: boolean.
    """

    return os.path.isfile(file_path)


def is_path_exists_or_link(file_path: str) -> bool:
    """
    Like 'os.path.exists', but also 'True' for a dangling symlink.
    '/etc/resolv.conf' inside WSL distros is usually a symlink to a generated file that may not exist.

    :param file_path: string, full path.
    :return: boolean.
    """

    return os.path.lexists(file_path)


def is_directory_exists(directory_path: str) -> bool:
    """
    Function checks if the path exists and is a directory.

    :param directory_path: string, full path to directory.
    :return: boolean.
    """

    return os.path.isdir(directory_path)


def remove_file(file_path: str, print_kwargs: dict = None) -> bool:
    """
    Remove file (or symlink) if it exists.

    :param file_path: string to full file path.
    :param print_kwargs: dict, kwargs for print_api.
    :return: return 'True' if file was removed, and 'False' if it didn't exist.
        Any other error (permissions, path is a directory) propagates.
    """

    try:
        os.remove(file_path)
        print_api(f'File Removed: {file_path}', **(print_kwargs or {}))
        return True
    # Since the file doesn't exist, we actually don't care, since we want to remove it anyway.
    except FileNotFoundError:
        return False


def remove_directory(directory_path: str, force_readonly: bool = False, print_kwargs: dict = None) -> bool:
    """
    Remove directory if it exists.

    :param directory_path: string to full directory path.
    :param force_readonly: boolean, if 'True', then the function will try to remove the read-only attribute from the
        directory and its contents. Extracted root filesystems contain read-only files.
    :param print_kwargs: dict, kwargs for print_api.

    :return: return 'True' if directory removal succeeded, and 'False' if it didn't exist.
    """

    def remove_readonly(func, path, exception_object):
        # 'onerror' passes the 'sys.exc_info()' tuple, 'onexc' passes the exception itself.
        if isinstance(exception_object, tuple):
            exception_object = exception_object[1]
        if getattr(exception_object, 'errno', None) == errno.EACCES:
            os.chmod(path, stat.S_IRWXU | stat.S_IRWXG | stat.S_IRWXO)
            func(path)
        else:
            raise exception_object

    try:
        if force_readonly and sys.version_info >= (3, 12):
            shutil.rmtree(directory_path, onexc=remove_readonly)
        elif force_readonly:
            shutil.rmtree(directory_path, onerror=remove_readonly)
        else:
            shutil.rmtree(directory_path)
        print_api(f'Directory Removed: {directory_path}', **(print_kwargs or {}))
        return True
    except FileNotFoundError:
        return False


def create_directory(directory_fullpath: str) -> None:
    # 'parents=True' creates the parent folders, 'exist_ok=True' doesn't raise if it exists.
    pathlib.Path(directory_fullpath).mkdir(parents=True, exist_ok=True)


def copy_file(
        source_file_path: str,
        target_file_path: str,
        no_overwrite: bool = False,
        preserve_metadata: bool = False
) -> None:
    """
    The function copies file from source to target.

    :param source_file_path: string, full path to source file.
    :param target_file_path: string, full path to target file.
    :param no_overwrite: boolean, if 'True', then the function will not overwrite the file if it exists.
    :param preserve_metadata: boolean, if 'True', then the function will try to preserve the metadata of the file.

    :return: None
    """

    if no_overwrite and is_file_exists(target_file_path):
        raise FileExistsError(f'File already exists: {target_file_path}')

    if preserve_metadata:
        shutil.copy2(source_file_path, target_file_path)
    else:
        shutil.copy(source_file_path, target_file_path)


@contextmanager
def temporary_directory(prefix: str = 'wslkit_', keep: bool = False, print_kwargs: dict = None):
    """
    Context manager that creates a temporary working directory and removes it on exit,
    also when the body raised.

    :param prefix: string, prefix of the directory name.
    :param keep: boolean, if 'True', the directory is left on disk (for debugging a failed import).
    :param print_kwargs: dict, kwargs for print_api.

    Usage:
        with temporary_directory() as work_directory:
            web.download(url, target_directory=work_directory)
    """

    directory_path: str = tempfile.mkdtemp(prefix=prefix)
    print_api(f'Created temporary directory: {directory_path}', **(print_kwargs or {}))
    try:
        yield directory_path
    finally:
        if not keep:
            remove_directory(directory_path, force_readonly=True, print_kwargs=print_kwargs)


def convert_windows_to_linux_path(
        windows_path: str,
        convert_drive: bool = True,
        add_wsl_mnt: bool = False
) -> str:
    """
    Convert a Windows file path to Linux file path. Add WSL "/mnt/" if specified.

    :param windows_path: The Windows path to convert.
    :param convert_drive: boolean, if 'True', then the function will convert the drive letter to lowercase and
        remove the colon.
    :param add_wsl_mnt: boolean, if 'True', then the function will add '/mnt/' to the beginning of the path.
    :return: The converted WSL file path as a string.

    Usage to convert to WSL path:
        convert_windows_to_linux_path('C:\\Users\\user1\\Downloads\\file.txt', convert_drive=True, add_wsl_mnt=True)
        '/mnt/c/Users/user1/Downloads/file.txt'
    """

    if not convert_drive and add_wsl_mnt:
        raise ValueError('Cannot add WSL mnt without converting drive.')

    windows_path_obj = PureWindowsPath(windows_path)

    if convert_drive:
        drive = windows_path_obj.drive.lower().replace(':', '')
        linux_path = PurePosixPath(drive, *windows_path_obj.parts[1:])

        if add_wsl_mnt:
            linux_path = PurePosixPath('/mnt') / linux_path
    else:
        linux_path = PurePosixPath(windows_path_obj.as_posix())

    return str(linux_path)
