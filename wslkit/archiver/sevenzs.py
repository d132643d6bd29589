import os

import py7zr

from ..print_api import print_api


def is_7z_magic_number(file_path: str) -> bool:
    """
    Function checks if the file is a 7z file, by checking the magic number.

    :param file_path: string, full path to the file.
    :return: boolean.
    """

    with open(file_path, 'rb') as file:
        data = file.read(6)

    # The signature is '7z' followed by 'BCAF271C'.
    return data == b'7z\xBC\xAF\x27\x1C'


def get_file_list_from_7z(file_path: str) -> list:
    with py7zr.SevenZipFile(file_path, mode='r') as archive:
        return archive.getnames()


def extract_archive_with_py7zr(
        archive_path: str,
        extract_directory: str,
        print_kwargs: dict = None
) -> str:
    """
    Extract '.7z' archive with 'py7zr'. Some distro images are shipped as '.7z' with the rootfs tarball inside.

    :param archive_path: string, full path to archived file.
    :param extract_directory: string, directory to extract to.
    :param print_kwargs: dict, kwargs for print_api.
    :return: string, full path to directory that the files were extracted to.
    """

    print_api(f'Extracting [{archive_path}] to directory: {extract_directory}', **(print_kwargs or {}))
    os.makedirs(extract_directory, exist_ok=True)

    with py7zr.SevenZipFile(archive_path, mode='r') as archive:
        archive.extractall(path=extract_directory)

    print_api('Extraction done.', color="green", **(print_kwargs or {}))
    return extract_directory
