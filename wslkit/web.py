import os
import ssl
import urllib.request
import urllib.parse
# noinspection PyPackageRequirements
import certifi

from . import filesystem, print_api


# Docker Desktop download server answers 403 to the default urllib agent.
USER_AGENTS = {
    'Chrome 132.0.0, Windows 10/11':
        'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/132.0.0.0 Safari/537.36'
}


def is_status_ok(status_code: int, **kwargs) -> bool:
    """
    Function checks is HTTP response status is 200 OK. If OK - returns True, otherwise False.
    :param status_code: status code integer.
    :return: Boolean.
    """

    if status_code != 200:
        print_api.print_api(f'URL Error, status code: {str(status_code)}', error_type=True, **kwargs)
        return False
    else:
        print_api.print_api('URL Status: 200 OK', color="green", **kwargs)
        return True


def get_filename_from_url(file_url: str) -> str:
    """
    Get the last part of the URL path, without the query string.

    :param file_url: string, full URL.
    :return: string, file name. Example: 'https://host/dir/Docker%20Desktop%20Installer.exe?x=1' ->
        'Docker Desktop Installer.exe'.
    """

    url_path: str = urllib.parse.urlparse(file_url).path
    return urllib.parse.unquote(url_path.rstrip('/').split('/')[-1])


def download(
        file_url: str,
        target_directory: str = None,
        file_name: str = None,
        headers: dict = None,
        **kwargs
) -> str | None:
    """
    The function receives url and target filesystem directory to download the file.

    :param file_url: full URL to download the file.
    :param target_directory: The directory on the filesystem to save the file to.
        If not specified, temporary directory will be used.
    :param file_name: string, file name (example: file.zip) that you want the downloaded file to be saved as.
        If not specified, the default filename from 'file_url' will be used.
    :param headers: dictionary, HTTP headers to use when downloading the file.
    :return: string, full file path of downloaded file. If download failed, 'None' will be returned.
    """

    def print_to_console(print_end=None):
        if file_size_bytes_int:
            print_api.print_api(
                f'Downloaded bytes: {aggregated_bytes_int} / {file_size_bytes_int}', print_end=print_end, **kwargs)
        else:
            print_api.print_api(f'Downloaded bytes: {aggregated_bytes_int}', print_end=print_end, **kwargs)

    # Size of the buffer to read each time from url.
    buffer_size: int = 65536

    if not file_name:
        file_name = get_filename_from_url(file_url=file_url)

    if not target_directory:
        target_directory = filesystem.get_temp_directory()

    file_path: str = f'{target_directory}{os.sep}{file_name}'

    print_api.print_api(f'Downloading: {file_url}', **kwargs)
    print_api.print_api(f'To: {file_path}', **kwargs)

    # 'certifi.where()' returns the path to the certifi CA bundle.
    ssl_context = ssl.create_default_context(cafile=certifi.where())

    if headers is None:
        headers = {'User-Agent': USER_AGENTS['Chrome 132.0.0, Windows 10/11']}

    request = urllib.request.Request(file_url, headers=headers)
    with urllib.request.urlopen(request, context=ssl_context) as file_to_download:
        if not is_status_ok(status_code=file_to_download.status, **kwargs):
            return None

        file_size_bytes_int: int | None = None
        if file_to_download.headers['Content-Length']:
            file_size_bytes_int = int(file_to_download.headers['Content-Length'])

        # Read in buffers, the installers are hundreds of megabytes.
        with open(file_path, 'wb') as output:
            aggregated_bytes_int: int = 0
            while True:
                data = file_to_download.read(buffer_size)
                if data:
                    output.write(data)
                    aggregated_bytes_int = aggregated_bytes_int + len(data)
                    print_to_console(print_end='\r')
                else:
                    print_to_console()
                    break

    if file_size_bytes_int is not None and aggregated_bytes_int != file_size_bytes_int:
        message = f'Download failed: {aggregated_bytes_int} / {file_size_bytes_int}. File: {file_path}'
        print_api.print_api(message, error_type=True, color="red", **kwargs)
        filesystem.remove_file(file_path)
        return None

    print_api.print_api(f'Successfully Downloaded to: {file_path}', color="green", **kwargs)
    return file_path
