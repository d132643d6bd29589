"""
Idempotent patching of INI style files ('[section]' headers, 'key = value' lines, '#' comments),
like '/etc/wsl.conf'.

All three operations can be executed any number of times: the second execution leaves the file byte-identical.
Filesystem errors propagate to the caller.
"""

import os
import re

from ..file_io import file_io
from .. import filesystem


def get_key_pattern(key: str) -> re.Pattern:
    """
    Line of the key: optional leading whitespace, the literal key, optional whitespace, '='.
    Commented lines ('# key = value') don't match.
    """
    return re.compile(rf'^\s*{re.escape(key)}\s*=')


def _read_lines(file_path: str, print_kwargs: dict = None) -> list[str]:
    # Lines keep their endings, so unchanged lines are written back exactly as they were.
    return file_io.read_file(file_path, read_to_list=True, print_kwargs=print_kwargs)


def _is_section_header(line: str, section: str) -> bool:
    return line.strip() == f'[{section}]'


def ensure_section_key(
        file_path: str,
        section: str,
        key: str,
        value: str,
        print_kwargs: dict = None
) -> None:
    """
    Make sure that the file contains exactly one 'key = value' line, directly below the '[section]' header.

    File doesn't exist: it is created with '[section]\\nkey = value\\n'.
    File contains the header: all the lines of the key are removed from the whole file, and the new line is
        inserted right below the first header.
    File doesn't contain the header: all the lines of the key are removed and the section block is appended to the
        end of the file. If the file doesn't end with a newline, one is added first.

    :param file_path: string, full path to the INI file.
    :param section: string, section name without brackets. Example: 'network'.
    :param key: string, key name. Example: 'generateResolvConf'.
    :param value: string, value of the key. Example: 'false'.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    key_line: str = f'{key} = {value}\n'

    if not filesystem.is_file_exists(file_path):
        filesystem.create_directory(os.path.dirname(file_path))
        file_io.write_file(f'[{section}]\n{key_line}', file_path, print_kwargs=print_kwargs)
        return

    key_pattern = get_key_pattern(key)
    lines: list = [line for line in _read_lines(file_path, print_kwargs) if not key_pattern.match(line)]

    for index, line in enumerate(lines):
        if _is_section_header(line, section):
            if not line.endswith('\n'):
                lines[index] = f'{line}\n'
            lines.insert(index + 1, key_line)
            break
    else:
        if lines and not lines[-1].endswith('\n'):
            lines[-1] = f'{lines[-1]}\n'
        lines.append(f'[{section}]\n')
        lines.append(key_line)

    file_io.write_file(''.join(lines), file_path, print_kwargs=print_kwargs)


def remove_key_everywhere(
        file_path: str,
        key: str,
        section: str = None,
        print_kwargs: dict = None
) -> bool:
    """
    Remove all the lines of the key, no matter in which section they are.
    If lines were removed and the only thing left in the file is the bare '[section]' header, the file is deleted.
    File that doesn't exist or doesn't contain the key is not touched at all.

    :param file_path: string, full path to the INI file.
    :param key: string, key name.
    :param section: string, section name without brackets. If None, the file is never deleted.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: boolean, 'True' if the file was changed or deleted.
    """

    if not filesystem.is_file_exists(file_path):
        return False

    key_pattern = get_key_pattern(key)
    lines: list = _read_lines(file_path, print_kwargs)
    kept_lines: list = [line for line in lines if not key_pattern.match(line)]

    if len(kept_lines) == len(lines):
        return False

    content: str = ''.join(kept_lines)
    if section is not None and content.rstrip('\r\n') == f'[{section}]':
        filesystem.remove_file(file_path, print_kwargs=print_kwargs)
        return True

    file_io.write_file(content, file_path, print_kwargs=print_kwargs)
    return True


def replace_file(file_path: str, content: str, print_kwargs: dict = None) -> None:
    """
    Remove the file (or symlink, also dangling one) and write the content instead.
    '/etc/resolv.conf' is a symlink in most distros, writing through it would change the link target.

    :param file_path: string, full path to the file.
    :param content: string, new content, written as is. Empty string only removes the file.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    if filesystem.is_path_exists_or_link(file_path):
        filesystem.remove_file(file_path, print_kwargs=print_kwargs)

    if not content:
        return

    filesystem.create_directory(os.path.dirname(file_path))
    file_io.write_file(content, file_path, print_kwargs=print_kwargs)
