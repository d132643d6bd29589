import re
import shlex
from dataclasses import dataclass

from .. import process
from ..print_api import print_api


WSL_EXECUTABLE: str = 'wsl.exe'


class WslCommandError(Exception):
    pass


@dataclass(frozen=True)
class WslListEntry:
    name: str
    state: str
    version: int
    is_default: bool = False


# '* Ubuntu-22.04    Running         2'
WSL_LIST_VERBOSE_LINE_PATTERN = re.compile(r'^(?P<default>\*)?\s*(?P<name>\S+)\s+(?P<state>\S+)\s+(?P<version>\d+)\s*$')


def decode_output(data: bytes) -> str:
    """
    'wsl.exe' prints its own messages as UTF-16LE, while the commands that run inside the distro print UTF-8.
    Detect by the NUL bytes that UTF-16 of ASCII text contains.

    :param data: bytes, output of the process.
    :return: string.
    """

    if not data:
        return ''

    if data.startswith(b'\xff\xfe') or (len(data) > 1 and data[1:2] == b'\x00'):
        return data.decode('utf-16-le', errors='replace').lstrip('\ufeff')

    return data.decode('utf-8', errors='replace')


def _run_wsl(arguments: list, input_bytes: bytes = None, check: bool = True, print_kwargs: dict = None) -> str:
    cmd = [WSL_EXECUTABLE] + arguments
    try:
        result = process.run_command(cmd, input_bytes=input_bytes, check=False, print_kwargs=print_kwargs)
    except FileNotFoundError:
        raise WslCommandError(f"WSL launcher isn't available: [{WSL_EXECUTABLE}]")

    output: str = decode_output(result.stdout)
    if check and result.returncode != 0:
        error_output: str = decode_output(result.stderr) or output
        raise WslCommandError(
            f"'wsl {' '.join(arguments)}' failed with exit code [{result.returncode}]: {error_output.strip()}")

    return output


def parse_list_verbose(output: str) -> list[WslListEntry]:
    """
    Parse the output of 'wsl --list --verbose'.

    :param output: string, decoded output of the command.
    :return: list of WslListEntry.

    Example output:
          NAME            STATE           VERSION
        * Ubuntu-22.04    Running         2
          Debian          Stopped         2
    """

    entries: list = list()
    for line in output.splitlines():
        line = line.replace('\x00', '').strip()
        if not line or line.startswith('NAME'):
            continue

        match = WSL_LIST_VERBOSE_LINE_PATTERN.match(line)
        if not match:
            continue

        entries.append(WslListEntry(
            name=match.group('name'),
            state=match.group('state'),
            version=int(match.group('version')),
            is_default=bool(match.group('default'))
        ))

    return entries


def get_installed_distros(print_kwargs: dict = None) -> list[WslListEntry]:
    """
    Get a list of installed WSL distros.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: list of WslListEntry.
    """

    output = _run_wsl(['--list', '--verbose'], print_kwargs=print_kwargs)
    return parse_list_verbose(output)


def import_distro(
        name: str,
        install_directory: str,
        rootfs_path: str,
        version: int = 2,
        print_kwargs: dict = None
) -> None:
    """
    Import root filesystem tarball as a new distro: 'wsl --import'.

    :param name: string, the name of the new distro.
    :param install_directory: string, host directory where the distro disk (ext4.vhdx / rootfs) will be placed.
    :param rootfs_path: string, path to '.tar' or '.tar.gz' root filesystem.
    :param version: int, WSL version of the new distro: 1 or 2.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    cmd = [WSL_EXECUTABLE, '--import', name, install_directory, rootfs_path, '--version', str(version)]
    print_api(f'Importing [{name}] to: {install_directory}', **(print_kwargs or {}))
    try:
        process.execute_with_live_output(cmd, print_empty_lines=False, print_kwargs=print_kwargs)
    except process.ProcessExecutionError as e:
        raise WslCommandError(f'Import of [{name}] failed with exit code [{e.return_code}].') from e
    print_api(f'Imported [{name}].', color='green', **(print_kwargs or {}))


def unregister_distro(name: str, print_kwargs: dict = None) -> None:
    print_api(f'Unregistering [{name}]', **(print_kwargs or {}))
    _run_wsl(['--unregister', name], print_kwargs=print_kwargs)


def terminate_distro(name: str, print_kwargs: dict = None) -> None:
    print_api(f'Terminating [{name}]', **(print_kwargs or {}))
    _run_wsl(['--terminate', name], print_kwargs=print_kwargs)


def shutdown(print_kwargs: dict = None) -> None:
    """
    Terminate all the distros and the WSL2 virtual machine.
    Needed after changing '/etc/wsl.conf', since it is read on distro start only.
    """
    print_api('Shutting down WSL', **(print_kwargs or {}))
    _run_wsl(['--shutdown'], print_kwargs=print_kwargs)


def set_default_distro(name: str, print_kwargs: dict = None) -> None:
    print_api(f'Setting default distro: [{name}]', **(print_kwargs or {}))
    _run_wsl(['--set-default', name], print_kwargs=print_kwargs)


def get_run_command(distro: str, command: list, user: str = None, cd: str = None) -> list:
    """
    Build the 'wsl.exe' command line that executes 'command' inside the distro without a login shell.

    :param distro: string, distro name.
    :param command: list of strings, the command and its arguments.
    :param user: string, user to run as. 'root' for the privileged steps.
    :param cd: string, working directory inside the distro (Linux or Windows path).
    :return: list of strings.
    """

    cmd = [WSL_EXECUTABLE, '--distribution', distro]
    if user:
        cmd += ['--user', user]
    if cd:
        cmd += ['--cd', cd]
    cmd += ['--exec'] + list(command)
    return cmd


def run_in_distro(
        distro: str,
        command: list,
        user: str = None,
        cd: str = None,
        input_bytes: bytes = None,
        check: bool = True,
        print_kwargs: dict = None
) -> str:
    """
    Execute command inside the distro and return its output.

    :param distro: string, distro name.
    :param command: list of strings, the command and its arguments.
    :param user: string, user to run as.
    :param cd: string, working directory inside the distro.
    :param input_bytes: bytes, passed to stdin.
    :param check: boolean, raise 'WslCommandError' with the exit code on failure.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: string, decoded stdout.
    """

    cmd = get_run_command(distro, command, user=user, cd=cd)
    result = process.run_command(cmd, input_bytes=input_bytes, check=False, print_kwargs=print_kwargs)

    output: str = decode_output(result.stdout)
    if check and result.returncode != 0:
        error_output: str = decode_output(result.stderr) or output
        raise WslCommandError(
            f'[{distro}] {shlex.join(command)}: exit code [{result.returncode}]: {error_output.strip()}')

    return output


def run_shell_in_distro(
        distro: str,
        script: str,
        user: str = None,
        cd: str = None,
        check: bool = True,
        print_kwargs: dict = None
) -> str:
    """
    Execute shell script text with '/bin/sh -c' inside the distro.

    :param distro: string, distro name.
    :param script: string, the shell script.
    :param user: string, user to run as.
    :param cd: string, working directory inside the distro.
    :param check: boolean, raise 'WslCommandError' with the exit code on failure.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: string, decoded stdout.
    """

    return run_in_distro(
        distro, ['/bin/sh', '-c', script], user=user, cd=cd, check=check, print_kwargs=print_kwargs)


def read_os_release(distro: str, print_kwargs: dict = None) -> dict:
    """
    Read '/etc/os-release' of the distro.

    :param distro: string, distro name.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: dict, keys like 'ID', 'ID_LIKE', 'VERSION_ID'.
    """

    output = run_in_distro(distro, ['cat', '/etc/os-release'], print_kwargs=print_kwargs)
    return parse_os_release(output)


def parse_os_release(text: str) -> dict:
    result: dict = dict()
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue

        key, value = line.split('=', maxsplit=1)
        result[key.strip()] = value.strip().strip('"').strip("'")

    return result


def get_user_uid(distro: str, user: str, print_kwargs: dict = None) -> int:
    """
    Get the UID of the user inside the distro.

    :param distro: string, distro name.
    :param user: string, user name.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: int.
    """

    output = run_in_distro(distro, ['id', '-u', user], user='root', print_kwargs=print_kwargs)
    return int(output.strip())
