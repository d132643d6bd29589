"""Tests for the VPNKit procedures that run over a distro filesystem root."""

import os
import stat

import pytest

from wslkit.filesystem import RequiredFileMissingError
from wslkit.vpnkit import reconcile


QUIET: dict = {'stdout': False}

EXPECTED_WSL_CONF: str = '[network]\ngenerateResolvConf = false\n'
EXPECTED_RESOLV_CONF: str = 'nameserver 192.168.67.1\nnameserver 1.1.1.1\n'


@pytest.fixture
def root(tmp_path):
    distro_root = tmp_path / 'root'
    (distro_root / 'etc').mkdir(parents=True)
    return distro_root


@pytest.fixture
def source_directory(tmp_path):
    directory = tmp_path / 'program'
    directory.mkdir()
    for file_name in reconcile.BIN_FILE_NAMES + [reconcile.TAP_FILE_NAME]:
        (directory / file_name).write_text(f'#!/bin/sh\necho {file_name}\n')
    return directory


@pytest.fixture
def as_root(monkeypatch):
    chown_calls: list = []
    monkeypatch.setattr(reconcile.permissions, 'is_root', lambda: True)
    monkeypatch.setattr(os, 'chown', lambda path, uid, gid: chown_calls.append((path, uid, gid)))
    return chown_calls


def test_resolve_path_joins_under_root() -> None:
    """Absolute distro paths are placed under the root."""
    assert reconcile.resolve_path('/tmp/root', '/etc/wsl.conf') == os.path.join('/tmp/root', 'etc/wsl.conf')


def test_configure_without_wsl_conf(root) -> None:
    """Configure creates both files with the gateway first."""
    reconcile.configure(root=str(root), print_kwargs=QUIET)

    assert (root / 'etc' / 'wsl.conf').read_text() == EXPECTED_WSL_CONF
    assert (root / 'etc' / 'resolv.conf').read_text() == EXPECTED_RESOLV_CONF


def test_configure_then_unconfigure_removes_created_files(root) -> None:
    """A wsl.conf created by configure is gone after unconfigure."""
    reconcile.configure(root=str(root), print_kwargs=QUIET)
    reconcile.unconfigure(root=str(root), print_kwargs=QUIET)

    assert not (root / 'etc' / 'wsl.conf').exists()
    assert not (root / 'etc' / 'resolv.conf').exists()


def test_configure_keeps_other_sections(root) -> None:
    """Existing sections survive configure and unconfigure."""
    wsl_conf = root / 'etc' / 'wsl.conf'
    original = '[automount]\nenabled = true\noptions = "metadata"\n'
    wsl_conf.write_text(original)

    reconcile.configure(root=str(root), print_kwargs=QUIET)
    assert wsl_conf.read_text() == original + EXPECTED_WSL_CONF

    reconcile.unconfigure(root=str(root), print_kwargs=QUIET)
    assert wsl_conf.read_text() == original + '[network]\n'


def test_configure_twice_is_idempotent(root) -> None:
    """Second configure leaves both files byte-identical."""
    (root / 'etc' / 'wsl.conf').write_text('[network]\ngenerateResolvConf = true\nhostname = box\n')

    reconcile.configure(root=str(root), print_kwargs=QUIET)
    first = ((root / 'etc' / 'wsl.conf').read_bytes(), (root / 'etc' / 'resolv.conf').read_bytes())
    reconcile.configure(root=str(root), print_kwargs=QUIET)

    assert ((root / 'etc' / 'wsl.conf').read_bytes(), (root / 'etc' / 'resolv.conf').read_bytes()) == first


@pytest.mark.skipif(os.name == 'nt', reason='symlinks need privileges on Windows')
def test_configure_replaces_resolv_conf_symlink(root, tmp_path) -> None:
    """The link target of resolv.conf is left alone."""
    link_target = tmp_path / 'run' / 'resolvconf' / 'resolv.conf'
    link_target.parent.mkdir(parents=True)
    link_target.write_text('nameserver 172.20.0.1\n')
    os.symlink(link_target, root / 'etc' / 'resolv.conf')

    reconcile.configure(root=str(root), print_kwargs=QUIET)

    assert not (root / 'etc' / 'resolv.conf').is_symlink()
    assert (root / 'etc' / 'resolv.conf').read_text() == EXPECTED_RESOLV_CONF
    assert link_target.read_text() == 'nameserver 172.20.0.1\n'


def test_unconfigure_on_clean_root(root) -> None:
    """Unconfigure of a distro that was never configured changes nothing."""
    reconcile.unconfigure(root=str(root), print_kwargs=QUIET)

    assert os.listdir(root / 'etc') == []


def test_install_copies_executables(root, source_directory, as_root) -> None:
    """Every file is installed with the executable mode and the tap is owned by root."""
    installed_paths = reconcile.install(str(source_directory), root=str(root), print_kwargs=QUIET)

    assert len(installed_paths) == len(reconcile.BIN_FILE_NAMES) + 1
    for installed_path in reconcile.get_installed_paths():
        file_path = reconcile.resolve_path(str(root), installed_path)
        assert os.path.isfile(file_path)
        if os.name != 'nt':
            assert stat.S_IMODE(os.stat(file_path).st_mode) == 0o755

    tap_path = reconcile.resolve_path(str(root), f'/sbin/{reconcile.TAP_FILE_NAME}')
    assert as_root == [(tap_path, 0, 0)]


def test_install_twice_replaces_files(root, source_directory, as_root) -> None:
    """Second install overwrites the previous copy."""
    reconcile.install(str(source_directory), root=str(root), print_kwargs=QUIET)
    (source_directory / reconcile.RELAY_SCRIPT_NAME).write_text('#!/bin/sh\necho new\n')
    reconcile.install(str(source_directory), root=str(root), print_kwargs=QUIET)

    relay_path = reconcile.resolve_path(str(root), f'/usr/local/bin/{reconcile.RELAY_SCRIPT_NAME}')
    with open(relay_path) as file_object:
        assert file_object.read() == '#!/bin/sh\necho new\n'


def test_install_requires_root(root, source_directory, monkeypatch) -> None:
    """Without root nothing is copied."""
    monkeypatch.setattr(reconcile.permissions, 'is_root', lambda: False)

    with pytest.raises(PermissionError):
        reconcile.install(str(source_directory), root=str(root), print_kwargs=QUIET)

    assert not (root / 'usr').exists()


def test_uninstall_requires_root(root, source_directory, as_root, monkeypatch) -> None:
    """Without root the installed files and the DNS configuration stay."""
    reconcile.install(str(source_directory), root=str(root), print_kwargs=QUIET)
    reconcile.configure(root=str(root), print_kwargs=QUIET)
    monkeypatch.setattr(reconcile.permissions, 'is_root', lambda: False)

    with pytest.raises(PermissionError):
        reconcile.uninstall(root=str(root), print_kwargs=QUIET)

    for installed_path in reconcile.get_installed_paths():
        assert os.path.exists(reconcile.resolve_path(str(root), installed_path))
    assert (root / 'etc' / 'resolv.conf').exists()


def test_install_with_missing_source_file(root, source_directory, as_root) -> None:
    """A missing source file is reported before anything is copied."""
    (source_directory / reconcile.TAP_FILE_NAME).unlink()

    with pytest.raises(RequiredFileMissingError, match=reconcile.TAP_FILE_NAME):
        reconcile.install(str(source_directory), root=str(root), print_kwargs=QUIET)

    assert not (root / 'usr').exists()
    assert not (root / 'sbin').exists()


def test_uninstall_removes_everything(root, source_directory, as_root) -> None:
    """Uninstall unconfigures and removes the installed files, a second run is a no-op."""
    reconcile.install(str(source_directory), root=str(root), print_kwargs=QUIET)
    reconcile.configure(root=str(root), print_kwargs=QUIET)

    reconcile.uninstall(root=str(root), print_kwargs=QUIET)
    reconcile.uninstall(root=str(root), print_kwargs=QUIET)

    for installed_path in reconcile.get_installed_paths():
        assert not os.path.exists(reconcile.resolve_path(str(root), installed_path))
    assert not (root / 'etc' / 'wsl.conf').exists()
    assert not (root / 'etc' / 'resolv.conf').exists()
