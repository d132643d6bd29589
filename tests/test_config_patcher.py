import os

import pytest

from wslkit.file_io import file_io
from wslkit.vpnkit import config_patcher


QUIET: dict = {'stdout': False}

INITIAL_STATES: list = [
    None,
    '',
    '[network]\n',
    '[network]',
    '[network]\ngenerateResolvConf = true\n',
    '[automount]\nenabled = true\n',
    '[automount]\nenabled = true',
    '[network]\nhostname = box\ngenerateResolvConf=true\n[boot]\n  generateResolvConf = true\n',
    '# generateResolvConf = true\n[network]\n',
    '[boot]\nsystemd = true\n[network]\n[network]\n',
]


def write(path, content):
    if content is not None:
        path.write_bytes(content.encode('utf-8'))


def ensure(path):
    config_patcher.ensure_section_key(str(path), 'network', 'generateResolvConf', 'false', print_kwargs=QUIET)


@pytest.mark.parametrize('initial', INITIAL_STATES)
def test_ensure_section_key_twice_equals_once(tmp_path, initial):
    wsl_conf = tmp_path / 'wsl.conf'
    write(wsl_conf, initial)

    ensure(wsl_conf)
    after_first = wsl_conf.read_bytes()
    ensure(wsl_conf)

    assert wsl_conf.read_bytes() == after_first


@pytest.mark.parametrize('initial', INITIAL_STATES)
def test_ensure_section_key_leaves_one_line_below_header(tmp_path, initial):
    wsl_conf = tmp_path / 'wsl.conf'
    write(wsl_conf, initial)

    ensure(wsl_conf)

    lines = wsl_conf.read_text().splitlines()
    key_pattern = config_patcher.get_key_pattern('generateResolvConf')
    key_indexes = [index for index, line in enumerate(lines) if key_pattern.match(line)]
    assert len(key_indexes) == 1
    assert lines[key_indexes[0]] == 'generateResolvConf = false'
    assert lines[key_indexes[0] - 1].strip() == '[network]'
    assert lines.index('[network]') == key_indexes[0] - 1


def test_ensure_section_key_creates_missing_file(tmp_path):
    wsl_conf = tmp_path / 'etc' / 'wsl.conf'

    ensure(wsl_conf)

    assert wsl_conf.read_bytes() == b'[network]\ngenerateResolvConf = false\n'


def test_ensure_section_key_appends_block_after_missing_newline(tmp_path):
    wsl_conf = tmp_path / 'wsl.conf'
    write(wsl_conf, '[automount]\nenabled = true')

    ensure(wsl_conf)

    assert wsl_conf.read_text() == '[automount]\nenabled = true\n[network]\ngenerateResolvConf = false\n'


def test_ensure_section_key_keeps_comments_and_other_keys(tmp_path):
    wsl_conf = tmp_path / 'wsl.conf'
    write(wsl_conf, '# generateResolvConf = true\n[network]\nhostname = box\ngenerateResolvConf = true\n')

    ensure(wsl_conf)

    assert wsl_conf.read_text() == (
        '# generateResolvConf = true\n[network]\ngenerateResolvConf = false\nhostname = box\n')


def test_ensure_section_key_keeps_crlf_of_other_lines(tmp_path):
    wsl_conf = tmp_path / 'wsl.conf'
    wsl_conf.write_bytes(b'[automount]\r\nenabled = true\r\n')

    ensure(wsl_conf)

    assert wsl_conf.read_bytes() == b'[automount]\r\nenabled = true\r\n[network]\ngenerateResolvConf = false\n'


def test_remove_key_without_key_is_a_no_op(tmp_path, monkeypatch):
    wsl_conf = tmp_path / 'wsl.conf'
    original = b'[network]\nhostname = box\n# generateResolvConf = false\n'
    wsl_conf.write_bytes(original)

    def fail_write(*args, **kwargs):
        raise AssertionError('file must not be written')

    monkeypatch.setattr(file_io, 'write_file', fail_write)

    changed = config_patcher.remove_key_everywhere(
        str(wsl_conf), 'generateResolvConf', section='network', print_kwargs=QUIET)

    assert changed is False
    assert wsl_conf.read_bytes() == original


def test_remove_key_on_missing_file_is_a_no_op(tmp_path):
    wsl_conf = tmp_path / 'wsl.conf'

    changed = config_patcher.remove_key_everywhere(
        str(wsl_conf), 'generateResolvConf', section='network', print_kwargs=QUIET)

    assert changed is False
    assert not wsl_conf.exists()


@pytest.mark.parametrize('initial', [
    '[network]\ngenerateResolvConf = false\n',
    '[network]\ngenerateResolvConf = false',
    '[network]\n\ngenerateResolvConf = false\n\n',
    'generateResolvConf = true\n[network]\n  generateResolvConf = false\n',
])
def test_remove_key_leaving_bare_header_deletes_file(tmp_path, initial):
    wsl_conf = tmp_path / 'wsl.conf'
    write(wsl_conf, initial)

    changed = config_patcher.remove_key_everywhere(
        str(wsl_conf), 'generateResolvConf', section='network', print_kwargs=QUIET)

    assert changed is True
    assert not wsl_conf.exists()


def test_remove_key_keeps_the_rest_of_the_file(tmp_path):
    wsl_conf = tmp_path / 'wsl.conf'
    write(wsl_conf, '[network]\nhostname = box\ngenerateResolvConf = false\n[boot]\ngenerateResolvConf = true\n')

    config_patcher.remove_key_everywhere(str(wsl_conf), 'generateResolvConf', section='network', print_kwargs=QUIET)

    assert wsl_conf.read_text() == '[network]\nhostname = box\n[boot]\n'


def test_remove_key_without_section_never_deletes_file(tmp_path):
    wsl_conf = tmp_path / 'wsl.conf'
    write(wsl_conf, '[network]\ngenerateResolvConf = false\n')

    config_patcher.remove_key_everywhere(str(wsl_conf), 'generateResolvConf', print_kwargs=QUIET)

    assert wsl_conf.read_text() == '[network]\n'


def test_replace_file_twice_keeps_second_content(tmp_path):
    resolv_conf = tmp_path / 'resolv.conf'

    config_patcher.replace_file(str(resolv_conf), 'nameserver 10.0.0.1\n', print_kwargs=QUIET)
    config_patcher.replace_file(str(resolv_conf), 'nameserver 192.168.67.1\n', print_kwargs=QUIET)

    assert resolv_conf.read_bytes() == b'nameserver 192.168.67.1\n'


@pytest.mark.skipif(os.name == 'nt', reason='symlinks need privileges on Windows')
def test_replace_file_replaces_dangling_symlink(tmp_path):
    resolv_conf = tmp_path / 'resolv.conf'
    link_target = tmp_path / 'run' / 'resolv.conf'
    os.symlink(link_target, resolv_conf)

    config_patcher.replace_file(str(resolv_conf), 'nameserver 192.168.67.1\n', print_kwargs=QUIET)

    assert not resolv_conf.is_symlink()
    assert not link_target.exists()
    assert resolv_conf.read_text() == 'nameserver 192.168.67.1\n'


def test_replace_file_with_empty_content_only_deletes(tmp_path):
    resolv_conf = tmp_path / 'resolv.conf'
    resolv_conf.write_text('nameserver 10.0.0.1\n')

    config_patcher.replace_file(str(resolv_conf), '', print_kwargs=QUIET)
    assert not resolv_conf.exists()

    config_patcher.replace_file(str(resolv_conf), '', print_kwargs=QUIET)
    assert not resolv_conf.exists()
