import os

from . import reconcile
from .. import process, filesystem, console_user_response
from ..wrappers import wslw
from ..wrappers.psutilw import processes
from ..print_api import print_api


RELAY_EXECUTABLE_NAME: str = 'wsl-vpnkit.exe'
NPIPERELAY_EXECUTABLE_NAME: str = 'npiperelay.exe'
INSTALLED_RELAY_SCRIPT_PATH: str = f'{reconcile.BIN_DIRECTORY}/{reconcile.RELAY_SCRIPT_NAME}'


def find_relay_processes() -> list[dict]:
    """
    All the distros share one VM, so only one relay may run. Find the relay executable on the host and the
    'wsl-vpnkit' script launchers.

    :return: list of dicts: {'pid': int, 'name': str, 'cmdline': str}.
    """

    return processes.find_processes(
        process_names=[RELAY_EXECUTABLE_NAME], cmdline_substrings=[reconcile.RELAY_SCRIPT_NAME])


def stop_existing_relays(assume_yes: bool = False, print_kwargs: dict = None) -> bool:
    """
    Check for running relays, ask and terminate them.

    :param assume_yes: boolean, terminate without asking.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: boolean, 'True' if no relay is running now. 'False' if the user refused to terminate.
    """

    running_relays: list = find_relay_processes()
    if not running_relays:
        return True

    print_api('VPNKit relay is already running:', color='yellow', **(print_kwargs or {}))
    for relay_process in running_relays:
        print_api(f"  [{relay_process['pid']}] {relay_process['cmdline'] or relay_process['name']}",
                  **(print_kwargs or {}))

    if not assume_yes and not console_user_response.query_positive_negative('Terminate the running relay?'):
        return False

    for relay_process in running_relays:
        processes.kill_process_by_pid(relay_process['pid'], print_kwargs=print_kwargs)
    return True


def get_relay_environment(program_directory: str, environment: dict = None) -> dict:
    """
    Environment of 'wsl.exe' that starts the relay script. 'WSLENV' passes the variables into the distro.

    :param program_directory: string, VPNKit program directory on the host.
    :param environment: dict, base environment. Default is the current one.
    :return: dict.
    """

    relay_environment: dict = dict(os.environ if environment is None else environment)

    relay_environment['VPNKIT_PATH'] = filesystem.convert_windows_to_linux_path(
        os.path.join(program_directory, RELAY_EXECUTABLE_NAME), add_wsl_mnt=True)
    relay_environment['VPNKIT_NPIPERELAY_PATH'] = filesystem.convert_windows_to_linux_path(
        os.path.join(program_directory, NPIPERELAY_EXECUTABLE_NAME), add_wsl_mnt=True)

    wslenv_names: list = [name for name in relay_environment.get('WSLENV', '').split(':') if name]
    for name in ['VPNKIT_PATH', 'VPNKIT_NPIPERELAY_PATH']:
        if name not in wslenv_names:
            wslenv_names.append(name)
    relay_environment['WSLENV'] = ':'.join(wslenv_names)

    return relay_environment


def start_relay(
        distro: str,
        program_directory: str,
        detached: bool = False,
        assume_yes: bool = False,
        print_kwargs: dict = None
) -> bool:
    """
    Start the installed 'wsl-vpnkit' script as root in the distro.

    :param distro: string, distro name. Must be WSL2 with VPNKit installed.
    :param program_directory: string, VPNKit program directory on the host.
    :param detached: boolean.
        'True': start in a new console window and return.
        'False': run in the current console until the relay exits or Ctrl+C.
    :param assume_yes: boolean, terminate the running relay without asking.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: boolean, 'False' if the relay wasn't started because another one is running.
    """

    if not stop_existing_relays(assume_yes=assume_yes, print_kwargs=print_kwargs):
        print_api('Relay was not started.', color='yellow', **(print_kwargs or {}))
        return False

    cmd = wslw.get_run_command(distro, [INSTALLED_RELAY_SCRIPT_PATH], user='root')
    environment = get_relay_environment(program_directory)

    if detached:
        process.execute_in_new_window(cmd, env=environment, print_kwargs=print_kwargs)
        print_api(f'Relay started in a new window from [{distro}].', color='green', **(print_kwargs or {}))
    else:
        print_api(f'Starting relay from [{distro}], Ctrl+C to stop.', color='green', **(print_kwargs or {}))
        process.execute_with_live_output(cmd, env=environment, print_kwargs=print_kwargs)

    return True
