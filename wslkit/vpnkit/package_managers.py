"""
Installation of the relay dependency (socat) inside the distro.

Before the relay runs, the distro has no network. So the host finds the download URL of the package,
downloads it, and the distro installs it from the local file.

Each package manager family is a 'PackageManager' subclass in 'PACKAGE_MANAGERS'. Failures are not fatal:
the relay may still work if the dependency is installed by hand, so a warning is printed and 'InstallResult'
tells what happened.
"""

import io
import os
import re
import posixpath
import tarfile
from abc import ABC, abstractmethod
from dataclasses import dataclass

import requests

from ..wrappers import wslw
from .. import web, filesystem
from ..print_api import print_api


# Packages are copied here first, 'xbps-rindex' needs a writable directory.
DISTRO_PACKAGES_DIRECTORY: str = '/tmp/wslkit-packages'
ARCHLINUX_SEARCH_URL: str = 'https://archlinux.org/packages/search/json/'
ARCHLINUX_MIRROR_URL: str = 'https://geo.mirror.pkgbuild.com'
HTTP_TIMEOUT: int = 30

# "'http://archive.ubuntu.com/.../socat_1.7.4.1-3ubuntu4_amd64.deb' socat_1.7.4.1-3ubuntu4_amd64.deb 374140 SHA512:.."
APT_PRINT_URIS_PATTERN = re.compile(r"^'(?P<url>[^']+)'\s+(?P<file_name>\S+)")


class PackageManagerError(Exception):
    pass


@dataclass
class InstallResult:
    package: str
    family: str
    installed: bool
    message: str = ''


class PackageManager(ABC):
    family: str = ''
    admin_group: str = 'wheel'

    def __init__(self, distro: str, download_directory: str, print_kwargs: dict = None):
        """
        :param distro: string, distro name.
        :param download_directory: string, host directory for the downloaded packages. Must be under a drive that
            the distro mounts under '/mnt'.
        :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
        """

        self.distro: str = distro
        self.download_directory: str = download_directory
        self.print_kwargs: dict = print_kwargs or {}

    def run(self, command: list, user: str = 'root') -> str:
        return wslw.run_in_distro(self.distro, command, user=user, print_kwargs=self.print_kwargs)

    @abstractmethod
    def get_package_url(self, name: str) -> str:
        """
        :param name: string, package name.
        :return: string, URL of the package file for the distro architecture.
        :raises PackageManagerError: the package wasn't found.
        """

    @abstractmethod
    def install_local_package(self, name: str, package_path: str) -> None:
        """
        :param name: string, package name.
        :param package_path: string, path of the package file inside the distro.
        """

    @classmethod
    def get_add_user_commands(cls, user: str) -> list[list]:
        """
        Commands that create the user with a home directory and add it to the administrators group.
        :param user: string, user name.
        :return: list of commands.
        """
        return [['useradd', '--create-home', '--shell', '/bin/bash', '--groups', cls.admin_group, user]]

    def is_installed(self, name: str) -> bool:
        output = wslw.run_shell_in_distro(
            self.distro, f'command -v {name} || true', print_kwargs=self.print_kwargs)
        return bool(output.strip())

    def copy_into_distro(self, host_file_path: str) -> str:
        mnt_path: str = filesystem.convert_windows_to_linux_path(host_file_path, add_wsl_mnt=True)
        distro_path: str = posixpath.join(DISTRO_PACKAGES_DIRECTORY, posixpath.basename(mnt_path))
        self.run(['mkdir', '-p', DISTRO_PACKAGES_DIRECTORY])
        self.run(['cp', mnt_path, distro_path])
        return distro_path

    def install_dependency(self, name: str) -> InstallResult:
        """
        Install the package from the file that the host downloads. Best-effort, exceptions are not raised.

        :param name: string, package name.
        :return: InstallResult.
        """

        try:
            if self.is_installed(name):
                print_api(f'[{name}] is already installed in [{self.distro}].', **self.print_kwargs)
                return InstallResult(name, self.family, True, 'already installed')

            package_url: str = self.get_package_url(name)
            print_api(f'[{name}] package: {package_url}', **self.print_kwargs)

            host_file_path = web.download(
                package_url, target_directory=self.download_directory, **self.print_kwargs)
            if not host_file_path:
                raise PackageManagerError(f'Download failed: {package_url}')

            self.install_local_package(name, self.copy_into_distro(host_file_path))
        except (PackageManagerError, wslw.WslCommandError, tarfile.TarError, ValueError, OSError) as e:
            message = f'Could not install [{name}] with [{self.family}], install it manually: {e}'
            print_api(message, color='yellow', **self.print_kwargs)
            return InstallResult(name, self.family, False, str(e))

        print_api(f'Installed [{name}] in [{self.distro}].', color='green', **self.print_kwargs)
        return InstallResult(name, self.family, True, 'installed')


def parse_apt_print_uris(output: str) -> tuple[str, str]:
    """
    Parse the output of 'apt-get download --print-uris <package>'.

    :param output: string.
    :return: tuple of (url, file name).
    """

    for line in output.splitlines():
        match = APT_PRINT_URIS_PATTERN.match(line.strip())
        if match:
            return match.group('url'), match.group('file_name')

    raise PackageManagerError(f'No package URI in apt output: {output.strip()}')


class AptPackageManager(PackageManager):
    family = 'apt'
    admin_group = 'sudo'

    def get_package_url(self, name: str) -> str:
        output = self.run(['apt-get', 'download', '--print-uris', name])
        url, _ = parse_apt_print_uris(output)
        return url

    def install_local_package(self, name: str, package_path: str) -> None:
        self.run(['dpkg', '-i', package_path])


def parse_apkindex(index_text: str, name: str) -> str:
    """
    Get the package version from the 'APKINDEX' file.
    Records are separated by empty lines, 'P:' is the package name and 'V:' the version.

    :param index_text: string, content of 'APKINDEX'.
    :param name: string, package name.
    :return: string, version.
    """

    for record in re.split(r'\n\s*\n', index_text):
        fields: dict = dict()
        for line in record.splitlines():
            if len(line) > 2 and line[1] == ':':
                fields[line[0]] = line[2:].strip()

        if fields.get('P') == name and fields.get('V'):
            return fields['V']

    raise PackageManagerError(f'Package [{name}] is not in APKINDEX.')


def get_first_apk_repository(repositories_text: str) -> str:
    for line in repositories_text.splitlines():
        line = line.strip()
        # Tagged repositories ('@testing https://...') are used only on request.
        if not line or line.startswith(('#', '@')):
            continue
        return line.rstrip('/')

    raise PackageManagerError('No repository in /etc/apk/repositories.')


def read_apkindex_from_archive(archive_bytes: bytes) -> str:
    with tarfile.open(fileobj=io.BytesIO(archive_bytes), mode='r:gz') as archive:
        try:
            member = archive.extractfile('APKINDEX')
        except KeyError:
            member = None
        if member is None:
            raise PackageManagerError('APKINDEX.tar.gz does not contain APKINDEX.')
        return member.read().decode('utf-8', errors='replace')


class ApkPackageManager(PackageManager):
    family = 'apk'

    def get_package_url(self, name: str) -> str:
        repository: str = get_first_apk_repository(self.run(['cat', '/etc/apk/repositories']))
        architecture: str = self.run(['apk', '--print-arch']).strip()

        index_url: str = f'{repository}/{architecture}/APKINDEX.tar.gz'
        response = requests.get(index_url, timeout=HTTP_TIMEOUT)
        response.raise_for_status()

        version: str = parse_apkindex(read_apkindex_from_archive(response.content), name)
        return f'{repository}/{architecture}/{name}-{version}.apk'

    def install_local_package(self, name: str, package_path: str) -> None:
        self.run(['apk', 'add', '--allow-untrusted', package_path])

    @classmethod
    def get_add_user_commands(cls, user: str) -> list[list]:
        # Busybox 'adduser': '-D' no password.
        return [['adduser', '-D', '-s', '/bin/sh', user], ['addgroup', user, cls.admin_group]]


def parse_archlinux_search(search_json: dict, name: str, architecture: str) -> str:
    """
    Build the mirror URL from the archlinux.org package search result.

    :param search_json: dict, response of 'https://archlinux.org/packages/search/json/?name=<package>'.
    :param name: string, package name.
    :param architecture: string, 'uname -m' of the distro.
    :return: string, URL.
    """

    for result in search_json.get('results', []):
        if result.get('pkgname') == name and result.get('arch') in (architecture, 'any'):
            repository: str = result.get('repo')
            file_name: str = result.get('filename')
            if not repository or not file_name:
                raise PackageManagerError(f'Search result of [{name}] has no repository or file name: {result}')
            return f'{ARCHLINUX_MIRROR_URL}/{repository}/os/{architecture}/{file_name}'

    raise PackageManagerError(f'Package [{name}] for [{architecture}] is not on archlinux.org.')


class PacmanPackageManager(PackageManager):
    family = 'pacman'

    def get_package_url(self, name: str) -> str:
        architecture: str = self.run(['uname', '-m']).strip()
        response = requests.get(ARCHLINUX_SEARCH_URL, params={'name': name}, timeout=HTTP_TIMEOUT)
        response.raise_for_status()
        return parse_archlinux_search(response.json(), name, architecture)

    def install_local_package(self, name: str, package_path: str) -> None:
        self.run(['pacman', '-U', '--noconfirm', package_path])


def parse_repoquery_location(output: str) -> str:
    for line in output.splitlines():
        line = line.strip()
        if line.startswith(('http://', 'https://')) and line.endswith('.rpm'):
            return line

    raise PackageManagerError(f'No package location in repoquery output: {output.strip()}')


class RpmPackageManager(PackageManager):
    family = 'rpm'

    def get_package_url(self, name: str) -> str:
        # '-C': metadata from the cache only, there is no network yet.
        output = self.run(['dnf', '-C', '-q', 'repoquery', '--arch', 'noarch,x86_64', '--location', name])
        return parse_repoquery_location(output)

    def install_local_package(self, name: str, package_path: str) -> None:
        self.run(['rpm', '-i', package_path])


def build_xbps_url(repository: str, package_version: str, architecture: str) -> str:
    """
    :param repository: string, output of 'xbps-query -R -p repository <package>'.
    :param package_version: string, output of 'xbps-query -R -p pkgver <package>'. Example: 'socat-1.7.4.4_1'.
    :param architecture: string, output of 'xbps-uhelper arch'.
    :return: string, URL of the '.xbps' file.
    """

    if not repository or not package_version:
        raise PackageManagerError('Package is not in the xbps repository index.')
    return f'{repository.rstrip("/")}/{package_version}.{architecture}.xbps'


class XbpsPackageManager(PackageManager):
    family = 'xbps'

    def get_package_url(self, name: str) -> str:
        repository: str = self.run(['xbps-query', '-R', '-p', 'repository', name]).strip()
        package_version: str = self.run(['xbps-query', '-R', '-p', 'pkgver', name]).strip()
        architecture: str = self.run(['xbps-uhelper', 'arch']).strip()
        return build_xbps_url(repository, package_version, architecture)

    def install_local_package(self, name: str, package_path: str) -> None:
        # The directory of the file becomes a local repository.
        self.run(['xbps-rindex', '-a', package_path])
        self.run(['xbps-install', '-y', '-R', posixpath.dirname(package_path), name])


PACKAGE_MANAGERS: dict = {
    'apt': AptPackageManager,
    'apk': ApkPackageManager,
    'pacman': PacmanPackageManager,
    'rpm': RpmPackageManager,
    'xbps': XbpsPackageManager
}

DISTRO_ID_TO_FAMILY: dict = {
    'debian': 'apt',
    'ubuntu': 'apt',
    'kali': 'apt',
    'pengwin': 'apt',
    'alpine': 'apk',
    'arch': 'pacman',
    'archlinux': 'pacman',
    'manjaro': 'pacman',
    'fedora': 'rpm',
    'rhel': 'rpm',
    'centos': 'rpm',
    'rocky': 'rpm',
    'almalinux': 'rpm',
    'void': 'xbps'
}


def get_family(os_release: dict) -> str | None:
    """
    Get the package manager family from '/etc/os-release' fields: 'ID' first, then each of 'ID_LIKE'.

    :param os_release: dict, parsed '/etc/os-release'.
    :return: string, family name. None if the distro is unknown.
    """

    distro_ids: list = [os_release.get('ID', '')] + os_release.get('ID_LIKE', '').split()
    for distro_id in distro_ids:
        family = DISTRO_ID_TO_FAMILY.get(distro_id.lower())
        if family:
            return family
    return None


def get_package_manager(
        distro: str,
        download_directory: str,
        os_release: dict = None,
        print_kwargs: dict = None
) -> PackageManager | None:
    """
    :param distro: string, distro name.
    :param download_directory: string, host directory for the downloaded packages.
    :param os_release: dict, parsed '/etc/os-release'. Read from the distro if not passed.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: PackageManager of the distro family. None if the family isn't implemented.
    """

    if os_release is None:
        os_release = wslw.read_os_release(distro, print_kwargs=print_kwargs)

    family = get_family(os_release)
    if family is None:
        return None
    return PACKAGE_MANAGERS[family](distro, download_directory, print_kwargs=print_kwargs)


def install_dependency(
        distro: str,
        name: str,
        download_directory: str,
        os_release: dict = None,
        print_kwargs: dict = None
) -> InstallResult:
    """
    Install the package in the distro with the package manager of its family. Best-effort.

    :param distro: string, distro name.
    :param name: string, package name.
    :param download_directory: string, host directory for the downloaded packages.
    :param os_release: dict, parsed '/etc/os-release'. Read from the distro if not passed.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: InstallResult.
    """

    try:
        package_manager = get_package_manager(
            distro, download_directory, os_release=os_release, print_kwargs=print_kwargs)
    except wslw.WslCommandError as e:
        print_api(f'Could not detect the distro of [{distro}]: {e}', color='yellow', **(print_kwargs or {}))
        return InstallResult(name, '', False, str(e))

    if package_manager is None:
        message = f'Package manager of [{distro}] is not supported, install [{name}] manually.'
        print_api(message, color='yellow', **(print_kwargs or {}))
        return InstallResult(name, '', False, message)

    os.makedirs(download_directory, exist_ok=True)
    return package_manager.install_dependency(name)
