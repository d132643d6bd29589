import os
import functools
import shlex
import shutil
import subprocess
from typing import Union

from .print_api import print_api
from .inspect_wrapper import get_target_function_default_args_and_combine_with_current


class ProcessExecutionError(Exception):
    """
    External command finished with non-zero exit code.
    The exit code is kept in 'return_code' and embedded in the message.
    """

    def __init__(self, cmd: list, return_code: int, output: str = ''):
        self.cmd: list = cmd
        self.return_code: int = return_code
        self.output: str = output

        message = f'Command failed with exit code [{return_code}]: {subprocess.list2cmdline(cmd)}'
        if output:
            message = f'{message}\n{output.strip()}'
        super().__init__(message)


def process_execution_decorator(function_name):
    @functools.wraps(function_name)
    def wrapper_process_execution_decorator(*args, **kwargs):
        args, kwargs = get_target_function_default_args_and_combine_with_current(function_name, *args, **kwargs)

        try:
            return function_name(**kwargs)
        # If the main command doesn't exist or cmd/bash can't execute it, 'FileNotFoundError' exception will raise.
        except FileNotFoundError:
            cmd = _execution_parameters_processing(kwargs['cmd'])
            print_api(
                f'Executable non-existent: [{cmd[0]}]', color="red", error_type=True,
                **(kwargs.get('print_kwargs') or {}))
            raise

    return wrapper_process_execution_decorator


@process_execution_decorator
def execute_with_live_output(
        cmd: Union[list, str],
        print_empty_lines: bool = True,
        verbose: bool = True,
        check: bool = True,
        env: dict = None,
        print_kwargs: dict = None
) -> list:
    """
    There are processes that print live, new lines of output. We need to make sure that the script does the same.
    Used for 'wsl --import' and for the relay script attached to the current console.

    :param cmd: List of commands. Can be string (full command line), that will be converted to list.
    :param print_empty_lines: Boolean that sets if the program should print empty lines or not.
    :param verbose: boolean.
        'True': Print all output lines of the process.
        'False': Don't print any lines of output.
    :param check: boolean, if 'True', 'ProcessExecutionError' is raised on non-zero exit code.
    :param env: dict, environment of the process. If None, the current environment is inherited.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: list of output lines.
    """

    cmd = _execution_parameters_processing(cmd)

    # stderr=STDOUT: the error output is merged, so there is one buffer to read line by line.
    # bufsize=1: line buffering, each completed line is flushed right away.
    with subprocess.Popen(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, bufsize=1, text=True, errors='replace',
            env=env) as process:
        lines_list: list = list()
        for line in process.stdout:
            line = line.rstrip('\r\n').replace('\x00', '')

            if not print_empty_lines and line == '':
                continue

            if verbose:
                print_api(line, **(print_kwargs or {}))

            lines_list.append(line)

    if check and process.returncode != 0:
        raise ProcessExecutionError(cmd, process.returncode, '\n'.join(lines_list[-20:]))

    return lines_list


@process_execution_decorator
def execute_in_new_window(
        cmd: Union[list, str],
        env: dict = None,
        print_kwargs: dict = None
) -> subprocess.Popen:
    """
    The function executes list of arguments 'cmd' including the process in a new terminal window.
    Non-Blocking. The process is not tracked after it was started.

    :param cmd: List of commands. Can be string (full command line), that will be converted to list.
    :param env: dict, environment of the process. If None, the current environment is inherited.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: Popen object of opened process.
    """

    cmd = _execution_parameters_processing(cmd)

    print_api(f'Starting in new window: {subprocess.list2cmdline(cmd)}', **(print_kwargs or {}))
    # 'CREATE_NEW_CONSOLE' exists only on Windows.
    creation_flags: int = getattr(subprocess, 'CREATE_NEW_CONSOLE', 0)
    return subprocess.Popen(cmd, creationflags=creation_flags, env=env)


@process_execution_decorator
def run_command(
        cmd: Union[list, str],
        input_bytes: bytes = None,
        check: bool = True,
        env: dict = None,
        print_kwargs: dict = None
) -> subprocess.CompletedProcess:
    """
    Execute the command, wait for it and capture its output as bytes.
    Decoding is left to the caller, since 'wsl.exe' answers in UTF-16 while the commands inside the distro answer
    in UTF-8.

    :param cmd: List of commands. Can be string (full command line), that will be converted to list.
    :param input_bytes: bytes, passed to stdin of the process.
    :param check: boolean, if 'True', 'ProcessExecutionError' is raised on non-zero exit code.
    :param env: dict, environment of the process. If None, the current environment is inherited.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: subprocess.CompletedProcess, 'stdout' and 'stderr' are bytes.
    """

    cmd = _execution_parameters_processing(cmd)

    result = subprocess.run(cmd, input=input_bytes, capture_output=True, env=env)
    if check and result.returncode != 0:
        output: str = (result.stderr or result.stdout or b'').decode('utf-8', errors='replace').replace('\x00', '')
        raise ProcessExecutionError(cmd, result.returncode, output)

    return result


def is_command_exists(cmd: str) -> bool:
    """
    Check if the executable is available, either as a full path or through the PATH environment variable.
    :param cmd: string, executable name or path.
    :return: boolean.
    """

    if os.path.isfile(cmd):
        return True
    return shutil.which(cmd) is not None


def _execution_parameters_processing(cmd: Union[list, str]) -> list:
    """
    The function processes the execution parameters for the 'execute_' functions.

    :param cmd: List of commands. Can be string (full command line), that will be converted to list.
    :return: list, of commands, that will be passed to 'subprocess' functions.
    """

    if isinstance(cmd, str):
        cmd = shlex.split(cmd, posix=os.name != 'nt')

    return list(cmd)
