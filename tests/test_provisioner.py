"""Tests for preparing the program directory and installing the relay into distros."""

import pytest

from wslkit import config_init, web
from wslkit.archiver import sevenz_app_w
from wslkit.archiver.sevenz_app_w import SevenZipNotFoundError
from wslkit.distros.distro_store import DistroRecord, InMemoryDistroStore, DistroNotFoundError, WslVersionError
from wslkit.filesystem import RequiredFileMissingError
from wslkit.vpnkit import provisioner, package_managers
from wslkit.wrappers import wslw
from wslkit.wrappers.githubw import GitHubWrapper


QUIET: dict = {'stdout': False}


@pytest.fixture
def store() -> InMemoryDistroStore:
    return InMemoryDistroStore([
        DistroRecord('{11111111-1111-1111-1111-111111111111}', 'Ubuntu', r'C:\WSL\Ubuntu', 1000),
        DistroRecord('{22222222-2222-2222-2222-222222222222}', 'Legacy', r'C:\WSL\Legacy', flags=0x7),
    ])


@pytest.fixture
def program_directory(tmp_path):
    directory = tmp_path / 'vpnkit'
    directory.mkdir()
    for file_name in provisioner.PROGRAM_FILE_NAMES:
        (directory / file_name).write_bytes(b'\n')
    return str(directory)


@pytest.fixture
def distro_commands(monkeypatch) -> list:
    commands: list = []

    def fake_run_in_distro(distro, command, user=None, cd=None, input_bytes=None, check=True, print_kwargs=None):
        commands.append({'distro': distro, 'command': command, 'user': user, 'cd': cd})
        return ''

    monkeypatch.setattr(wslw, 'run_in_distro', fake_run_in_distro)
    return commands


def test_install_runs_script_from_program_directory(store, program_directory, distro_commands, monkeypatch) -> None:
    dependencies: list = []

    def fake_install_dependency(distro, name, download_directory, os_release=None, print_kwargs=None):
        dependencies.append((distro, name))
        return package_managers.InstallResult(name, 'apt', True, 'installed')

    monkeypatch.setattr(package_managers, 'install_dependency', fake_install_dependency)

    result = provisioner.install('Ubuntu', program_directory, store, print_kwargs=QUIET)

    assert result.installed is True
    assert dependencies == [('Ubuntu', 'socat')]
    assert distro_commands == [{
        'distro': 'Ubuntu',
        'command': ['/bin/sh', './wsl-vpnkit-install'],
        'user': 'root',
        'cd': provisioner.get_distro_program_directory(program_directory)
    }]


def test_install_into_wsl1_distro(store, program_directory, distro_commands) -> None:
    with pytest.raises(WslVersionError):
        provisioner.install('Legacy', program_directory, store, print_kwargs=QUIET)
    assert distro_commands == []


def test_install_without_program_files(store, tmp_path, distro_commands) -> None:
    with pytest.raises(RequiredFileMissingError, match='provision'):
        provisioner.install('Ubuntu', str(tmp_path), store, print_kwargs=QUIET)
    assert distro_commands == []


def test_configure_installed_script(store, distro_commands) -> None:
    provisioner.configure('Ubuntu', store, print_kwargs=QUIET)

    assert distro_commands[0]['command'] == ['/bin/sh', '/usr/local/bin/wsl-vpnkit-configure']
    assert distro_commands[0]['user'] == 'root'


def test_configure_from_program_directory_in_wsl1_distro(store, program_directory, distro_commands) -> None:
    """The DNS part works in any distro, the script is executed from the program directory."""
    provisioner.unconfigure('Legacy', store, program_directory=program_directory, print_kwargs=QUIET)

    assert distro_commands[0]['command'] == [
        '/bin/sh', f'{provisioner.get_distro_program_directory(program_directory)}/wsl-vpnkit-unconfigure']


def test_configure_unknown_distro(store, distro_commands) -> None:
    with pytest.raises(DistroNotFoundError):
        provisioner.configure('Debian', store, print_kwargs=QUIET)


def test_uninstall(store, program_directory, distro_commands) -> None:
    provisioner.uninstall('Ubuntu', store, program_directory, print_kwargs=QUIET)

    assert distro_commands[0]['command'] == ['/bin/sh', './wsl-vpnkit-uninstall']


def test_provision_without_7z_downloads_nothing(store, tmp_path, monkeypatch) -> None:
    def fail_download(*args, **kwargs):
        raise AssertionError('nothing must be downloaded')

    monkeypatch.setattr(web, 'download', fail_download)
    monkeypatch.setattr(sevenz_app_w.shutil, 'which', lambda name: None)
    monkeypatch.setattr(sevenz_app_w, 'SEVENZ_DEFAULT_PATHS', [])

    vpnkit_config = config_init.merge_with_defaults({})['vpnkit']

    with pytest.raises(SevenZipNotFoundError):
        provisioner.provision('Ubuntu', vpnkit_config, str(tmp_path / 'vpnkit'), store, print_kwargs=QUIET)


def test_provision_into_wsl1_distro_downloads_nothing(store, tmp_path, monkeypatch) -> None:
    def fail_prepare(*args, **kwargs):
        raise AssertionError('program directory must not be prepared')

    monkeypatch.setattr(provisioner, 'prepare_program_directory', fail_prepare)

    with pytest.raises(WslVersionError):
        provisioner.provision('Legacy', {}, str(tmp_path), store, print_kwargs=QUIET)


def test_download_relay_script_of_latest_release(tmp_path, monkeypatch) -> None:
    """'latest' resolves to the release tag and CRLF line endings are converted."""
    requested_urls: list = []

    def fake_download(file_url, target_directory=None, file_name=None, **kwargs):
        requested_urls.append(file_url)
        file_path = tmp_path / file_name
        file_path.write_bytes(b'#!/bin/sh\r\necho relay\r\n')
        return str(file_path)

    monkeypatch.setattr(GitHubWrapper, 'get_latest_release_version', lambda self: 'v0.4.1')
    monkeypatch.setattr(web, 'download', fake_download)

    script_path = provisioner.download_relay_script(
        'https://github.com/sakai135/wsl-vpnkit', 'latest', 'wsl-vpnkit', str(tmp_path), print_kwargs=QUIET)

    assert requested_urls == ['https://raw.githubusercontent.com/sakai135/wsl-vpnkit/v0.4.1/wsl-vpnkit']
    with open(script_path, 'rb') as file_object:
        assert file_object.read() == b'#!/bin/sh\necho relay\n'


def test_missing_program_files(program_directory) -> None:
    assert provisioner.get_missing_program_files(program_directory) == []
    assert provisioner.get_missing_program_files(program_directory, ['wsl-vpnkit.exe', 'other']) == ['other']
