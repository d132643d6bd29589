import os
import zipfile

from ..print_api import print_api


def is_zip_magic_number(file_path: str) -> bool:
    """
    Function checks if the file is a zip file using magic number.
    '.appx' and '.appxbundle' packages are zip files too.

    :param file_path: string, full path to the file.
    :return: boolean.
    """

    with open(file_path, 'rb') as file:
        signature = file.read(4)

    return signature in [b'PK\x03\x04', b'PK\x05\x06', b'PK\x07\x08']


def get_file_list_from_zip(file_path: str) -> list:
    """
    Function returns the list of file names and their relative directories inside the zip file.
    :param file_path: string, full path to the zip file.
    :return: list of strings.
    """

    with zipfile.ZipFile(file_path, 'r') as zip_object:
        return zip_object.namelist()


def extract_member(
        archive_path: str,
        member_name: str,
        extract_directory: str,
        print_kwargs: dict = None
) -> str:
    """
    Extract single file from the zip archive, without its directories.

    :param archive_path: string, full path to archived file.
    :param member_name: string, relative path of the file inside the archive, as returned by 'get_file_list_from_zip'.
    :param extract_directory: string, directory to extract to.
    :param print_kwargs: dict, kwargs for print_api.
    :return: string, full path of the extracted file.
    """

    target_path: str = os.path.join(extract_directory, os.path.basename(member_name))
    print_api(f'Extracting [{member_name}] to: {target_path}', **(print_kwargs or {}))
    os.makedirs(extract_directory, exist_ok=True)

    with zipfile.ZipFile(archive_path) as zip_object:
        with zip_object.open(member_name) as source, open(target_path, 'wb') as target:
            while True:
                data = source.read(1024 * 1024)
                if not data:
                    break
                target.write(data)

    return target_path
