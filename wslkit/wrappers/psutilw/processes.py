import os

import psutil

from ...print_api import print_api


def find_processes(
        process_names: list = None,
        cmdline_substrings: list = None
) -> list[dict]:
    """
    Find running processes by executable name or by a part of their command line.

    :param process_names: list of strings, process names to match, case-insensitive. Example: ['wsl-vpnkit.exe'].
    :param cmdline_substrings: list of strings, a process matches if one of its command line arguments
        ends with one of these strings. Example: ['wsl-vpnkit'] matches 'sh /usr/local/bin/wsl-vpnkit'.
    :return: list of dicts: {'pid': int, 'name': str, 'cmdline': str}.
    """

    process_names = [name.lower() for name in (process_names or [])]
    cmdline_substrings = cmdline_substrings or []

    current_pid: int = os.getpid()
    found: list[dict] = []
    for proc in psutil.process_iter(attrs=['pid', 'name', 'cmdline']):
        try:
            pid = proc.info['pid']
            name = proc.info['name'] or ''
            cmdline: list = proc.info['cmdline'] or []
        except (psutil.AccessDenied, psutil.NoSuchProcess, psutil.ZombieProcess):
            continue

        if pid == current_pid:
            continue

        is_match: bool = name.lower() in process_names
        if not is_match:
            for argument in cmdline:
                if any(argument.endswith(substring) for substring in cmdline_substrings):
                    is_match = True
                    break

        if is_match:
            found.append({'pid': pid, 'name': name, 'cmdline': ' '.join(cmdline)})

    return found


def kill_process_by_pid(pid: int, timeout: int = 5, print_kwargs: dict = None) -> None:
    """
    Terminate the process and wait for it. If it didn't exit in time, kill it.

    :param pid: int, process id.
    :param timeout: int, seconds to wait after terminate.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    print_api(f"Terminating process: {pid}.", **(print_kwargs or {}))
    try:
        proc = psutil.Process(pid)
        proc.terminate()
        try:
            proc.wait(timeout=timeout)
        except psutil.TimeoutExpired:
            print_api(f"Process {pid} did not terminate in time, killing.", color='yellow', **(print_kwargs or {}))
            proc.kill()
            proc.wait(timeout=timeout)
    except psutil.NoSuchProcess:
        # Exited by itself in the meantime.
        pass
