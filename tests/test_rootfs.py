"""Tests for finding the root filesystem tarball inside distro images."""

import io
import os
import tarfile
import zipfile

import py7zr
import pytest

from wslkit.archiver import rootfs
from wslkit.archiver.rootfs import RootfsFormatError


QUIET: dict = {'stdout': False}


def make_tarball(file_path, mode: str = 'w:gz', marker: bytes = b'alpine') -> str:
    with tarfile.open(file_path, mode) as archive:
        member = tarfile.TarInfo('etc/os-release')
        member.size = len(marker)
        archive.addfile(member, io.BytesIO(marker))
    return str(file_path)


def read_marker(tarball_path: str) -> bytes:
    with tarfile.open(tarball_path) as archive:
        return archive.extractfile('etc/os-release').read()


@pytest.fixture
def work_directory(tmp_path):
    directory = tmp_path / 'work'
    directory.mkdir()
    return str(directory)


def test_tar_gz_is_returned_as_is(tmp_path, work_directory) -> None:
    image_path = make_tarball(tmp_path / 'rootfs.tar.gz')

    assert rootfs.resolve_rootfs(image_path, work_directory, print_kwargs=QUIET) == image_path


def test_plain_tar_is_returned_as_is(tmp_path, work_directory) -> None:
    image_path = make_tarball(tmp_path / 'rootfs.tar', mode='w')

    assert rootfs.resolve_rootfs(image_path, work_directory, print_kwargs=QUIET) == image_path


def test_tar_xz_is_decompressed(tmp_path, work_directory) -> None:
    image_path = make_tarball(tmp_path / 'alpine.tar.xz', mode='w:xz')

    rootfs_path = rootfs.resolve_rootfs(image_path, work_directory, print_kwargs=QUIET)

    assert rootfs_path == os.path.join(work_directory, 'alpine.tar')
    assert read_marker(rootfs_path) == b'alpine'


def test_appx_with_install_tar_gz(tmp_path, work_directory) -> None:
    tarball_path = make_tarball(tmp_path / 'install.tar.gz')
    image_path = tmp_path / 'Debian.appx'
    with zipfile.ZipFile(image_path, 'w') as archive:
        archive.writestr('AppxManifest.xml', '<Package/>')
        archive.write(tarball_path, 'install.tar.gz')

    rootfs_path = rootfs.resolve_rootfs(str(image_path), work_directory, print_kwargs=QUIET)

    assert rootfs_path == os.path.join(work_directory, 'install.tar.gz')
    assert read_marker(rootfs_path) == b'alpine'


def test_appxbundle_selects_x64_package(tmp_path, work_directory) -> None:
    """The bundle is unpacked twice and only the x64 package is used."""
    appx_paths: dict = {}
    for architecture in ['ARM64', 'x64']:
        tarball_path = make_tarball(tmp_path / f'{architecture}.tar.gz', marker=architecture.encode())
        appx_path = tmp_path / f'Ubuntu_2204.1.7.0_{architecture}.appx'
        with zipfile.ZipFile(appx_path, 'w') as archive:
            archive.write(tarball_path, 'install.tar.gz')
        appx_paths[architecture] = appx_path

    image_path = tmp_path / 'Ubuntu2204.appxbundle'
    with zipfile.ZipFile(image_path, 'w') as archive:
        archive.writestr('AppxMetadata/AppxBundleManifest.xml', '<Bundle/>')
        for appx_path in appx_paths.values():
            archive.write(appx_path, appx_path.name)

    rootfs_path = rootfs.resolve_rootfs(str(image_path), work_directory, print_kwargs=QUIET)

    assert read_marker(rootfs_path) == b'x64'


def test_7z_with_tarball(tmp_path, work_directory) -> None:
    tarball_path = make_tarball(tmp_path / 'void-x86_64-ROOTFS.tar.xz', mode='w:xz', marker=b'void')
    image_path = tmp_path / 'void.7z'
    with py7zr.SevenZipFile(image_path, 'w') as archive:
        archive.write(tarball_path, 'void-x86_64-ROOTFS.tar.xz')

    rootfs_path = rootfs.resolve_rootfs(str(image_path), work_directory, print_kwargs=QUIET)

    assert rootfs_path.endswith('void-x86_64-ROOTFS.tar')
    assert read_marker(rootfs_path) == b'void'


def test_7z_without_tarball_is_not_extracted(tmp_path, work_directory) -> None:
    readme_path = tmp_path / 'README.md'
    readme_path.write_text('nothing here')
    image_path = tmp_path / 'docs.7z'
    with py7zr.SevenZipFile(image_path, 'w') as archive:
        archive.write(readme_path, 'README.md')

    with pytest.raises(RootfsFormatError, match='No root filesystem tarball'):
        rootfs.resolve_rootfs(str(image_path), work_directory, print_kwargs=QUIET)

    assert os.listdir(work_directory) == []


def test_unsupported_format(tmp_path, work_directory) -> None:
    image_path = tmp_path / 'notes.txt'
    image_path.write_text('not a distro')

    with pytest.raises(RootfsFormatError, match='Unsupported'):
        rootfs.resolve_rootfs(str(image_path), work_directory, print_kwargs=QUIET)


def test_zip_without_rootfs(tmp_path, work_directory) -> None:
    image_path = tmp_path / 'empty.zip'
    with zipfile.ZipFile(image_path, 'w') as archive:
        archive.writestr('README.md', 'nothing here')

    with pytest.raises(RootfsFormatError):
        rootfs.resolve_rootfs(str(image_path), work_directory, print_kwargs=QUIET)


def test_missing_image(tmp_path, work_directory) -> None:
    with pytest.raises(RootfsFormatError):
        rootfs.resolve_rootfs(str(tmp_path / 'missing.tar.gz'), work_directory, print_kwargs=QUIET)


@pytest.mark.parametrize('member_names, selected', [
    (['Ubuntu_2204.1.7.0_ARM64.appx', 'Ubuntu_2204.1.7.0_x64.appx'], 'Ubuntu_2204.1.7.0_x64.appx'),
    (['DistroLauncher-Appx_1.0.0.0_amd64.appx'], 'DistroLauncher-Appx_1.0.0.0_amd64.appx'),
    (['Distro_1.0.appx', 'Distro_1.0_arm64.appx'], 'Distro_1.0.appx'),
    (['Distro_1.0_arm64.appx'], None),
    (['install.tar.gz'], None),
])
def test_select_appx(member_names, selected) -> None:
    assert rootfs.select_appx(member_names) == selected
