"""Tests for importing distro images and creating the default user."""

import io
import os
import shutil
import tarfile

import pytest

from wslkit.distros import sideload
from wslkit.distros.distro_store import DistroRecord, InMemoryDistroStore
from wslkit.filesystem import RequiredFileMissingError
from wslkit.wrappers import wslw


QUIET: dict = {'stdout': False}


def make_image(file_path, mode: str) -> str:
    with tarfile.open(file_path, mode) as archive:
        member = tarfile.TarInfo('etc/os-release')
        member.size = 10
        archive.addfile(member, io.BytesIO(b'ID=alpine\n'))
    return str(file_path)


@pytest.fixture
def store() -> InMemoryDistroStore:
    return InMemoryDistroStore([DistroRecord('{11111111-1111-1111-1111-111111111111}', 'Ubuntu', r'C:\WSL\Ubuntu')])


@pytest.fixture
def imports(store, monkeypatch) -> list:
    """Registers the imported distro in the store, like 'wsl --import' does in the registry."""
    imported: list = []

    def fake_import_distro(name, install_directory, rootfs_path, version=2, print_kwargs=None):
        imported.append({'name': name, 'install_directory': install_directory, 'rootfs_path': rootfs_path,
                         'rootfs_exists': os.path.isfile(rootfs_path), 'version': version})
        flags = 0xF if version == 2 else 0x7
        store.records[name.lower()] = DistroRecord('{33333333-3333-3333-3333-333333333333}', name, install_directory,
                                                   flags=flags)

    monkeypatch.setattr(wslw, 'import_distro', fake_import_distro)
    return imported


def test_sideload_tar_xz(tmp_path, store, imports) -> None:
    """The decompressed tarball is imported and the temporary files are removed."""
    image_path = make_image(tmp_path / 'alpine-minirootfs.tar.xz', 'w:xz')
    install_root = tmp_path / 'distros'

    record = sideload.sideload('Alpine', image_path, str(install_root), store, print_kwargs=QUIET)

    assert record.name == 'Alpine'
    assert record.wsl_version == 2
    assert imports[0]['install_directory'] == os.path.join(str(install_root), 'Alpine')
    assert imports[0]['rootfs_exists'] is True
    assert imports[0]['rootfs_path'].endswith('alpine-minirootfs.tar')
    assert not os.path.exists(imports[0]['rootfs_path'])


def test_sideload_keep_temporary(tmp_path, store, imports) -> None:
    image_path = make_image(tmp_path / 'alpine.tar.xz', 'w:xz')

    sideload.sideload('Alpine', image_path, str(tmp_path), store, version=1, keep_temporary=True, print_kwargs=QUIET)

    assert imports[0]['version'] == 1
    assert os.path.isfile(imports[0]['rootfs_path'])
    shutil.rmtree(os.path.dirname(imports[0]['rootfs_path']))


def test_sideload_existing_name(tmp_path, store, imports) -> None:
    image_path = make_image(tmp_path / 'ubuntu.tar.gz', 'w:gz')

    with pytest.raises(sideload.DistroExistsError):
        sideload.sideload('ubuntu', image_path, str(tmp_path), store, print_kwargs=QUIET)
    assert imports == []


def test_sideload_into_non_empty_directory(tmp_path, store, imports) -> None:
    image_path = make_image(tmp_path / 'alpine.tar.gz', 'w:gz')
    (tmp_path / 'distros' / 'Alpine').mkdir(parents=True)
    (tmp_path / 'distros' / 'Alpine' / 'ext4.vhdx').write_bytes(b'')

    with pytest.raises(sideload.DistroExistsError):
        sideload.sideload('Alpine', image_path, str(tmp_path / 'distros'), store, print_kwargs=QUIET)


def test_sideload_missing_image(tmp_path, store, imports) -> None:
    with pytest.raises(RequiredFileMissingError):
        sideload.sideload('Alpine', str(tmp_path / 'missing.tar.gz'), str(tmp_path), store, print_kwargs=QUIET)


def test_sideload_with_user(tmp_path, store, imports, monkeypatch) -> None:
    """The user is created with the command of the distro family and becomes the default user."""
    commands: list = []

    def fake_run_in_distro(distro, command, user=None, cd=None, input_bytes=None, check=True, print_kwargs=None):
        commands.append((command, input_bytes))
        if command == ['cat', '/etc/os-release']:
            return 'ID=alpine\nVERSION_ID=3.19.1\n'
        if command[:2] == ['id', '-u']:
            return '1000\n'
        return ''

    monkeypatch.setattr(wslw, 'run_in_distro', fake_run_in_distro)
    image_path = make_image(tmp_path / 'alpine.tar.gz', 'w:gz')

    record = sideload.sideload(
        'Alpine', image_path, str(tmp_path / 'distros'), store, user='dev', password='secret', print_kwargs=QUIET)

    assert record.default_uid == 1000
    assert commands == [
        (['cat', '/etc/os-release'], None),
        (['adduser', '-D', '-s', '/bin/sh', 'dev'], None),
        (['addgroup', 'dev', 'wheel'], None),
        (['chpasswd'], b'dev:secret\n'),
        (['id', '-u', 'dev'], None),
    ]


def test_create_user_in_unknown_distro_uses_useradd(store, monkeypatch) -> None:
    commands: list = []

    def fake_run_in_distro(distro, command, user=None, cd=None, input_bytes=None, check=True, print_kwargs=None):
        commands.append(command)
        if command[0] == 'cat':
            return 'ID=opensuse-tumbleweed\n'
        if command[0] == 'id':
            return '1001\n'
        return ''

    monkeypatch.setattr(wslw, 'run_in_distro', fake_run_in_distro)

    assert sideload.create_user('Ubuntu', 'dev', store, print_kwargs=QUIET) == 1001
    assert commands[1] == ['useradd', '--create-home', '--shell', '/bin/bash', '--groups', 'wheel', 'dev']
    assert store.get('Ubuntu').default_uid == 1001


def test_is_url() -> None:
    assert sideload.is_url('https://example.com/Ubuntu2204.appxbundle')
    assert not sideload.is_url(r'C:\Downloads\Ubuntu2204.appxbundle')
