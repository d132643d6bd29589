import sys
import argparse

from . import common
from .. import config_init, filesystem, process
from ..archiver.sevenz_app_w import SevenZipNotFoundError
from ..distros.distro_store import DistroNotFoundError, WslVersionError
from ..vpnkit import provisioner, reconcile, relay
from ..wrappers.githubw import MoreThanOneReleaseFoundError, NoReleaseFoundError
from ..wrappers.wslw import WslCommandError
from ..print_api import print_api


COMMANDS: list = ['provision', 'install', 'uninstall', 'configure', 'unconfigure', 'start']
LOCAL_COMMANDS: list = ['install', 'uninstall', 'configure', 'unconfigure']

HANDLED_ERRORS: tuple = (
    DistroNotFoundError, WslVersionError, filesystem.RequiredFileMissingError, SevenZipNotFoundError,
    WslCommandError, process.ProcessExecutionError, NoReleaseFoundError, MoreThanOneReleaseFoundError, ValueError,
    KeyError, OSError)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Install and run the VPNKit relay in WSL2 distros.\n'
                    'provision:   download the relay files, install them in the distro and configure its DNS.\n'
                    'install:     install the relay files from the program directory.\n'
                    'uninstall:   unconfigure and remove the relay files.\n'
                    'configure:   point the distro DNS at the relay gateway.\n'
                    'unconfigure: return the DNS that WSL generates.\n'
                    'start:       start the relay.',
        formatter_class=argparse.RawTextHelpFormatter)
    parser.add_argument('command', choices=COMMANDS)
    parser.add_argument(
        '-d', '--distro', type=str, default=None,
        help="Distro name. Default is [vpnkit] 'relay_distro' of the config file.")
    parser.add_argument(
        '-c', '--config-directory', type=str, default=None,
        help="Directory of 'config.toml'. Default is the working directory.")
    parser.add_argument(
        '--from-program-directory', action='store_true', default=False,
        help='configure/unconfigure: execute the script from the program directory, for distros where the relay '
             "isn't installed.")
    parser.add_argument(
        '--local', action='store_true', default=False,
        help='install/uninstall/configure/unconfigure: execute inside the current Linux system, without wsl.exe.')
    parser.add_argument(
        '--root', type=str, default='/',
        help="With '--local': filesystem root to operate on.")
    parser.add_argument(
        '--source', type=str, default=None,
        help="With '--local install': directory of the relay files.")
    parser.add_argument(
        '--detached', action='store_true', default=False,
        help='start: start the relay in a new console window.')
    parser.add_argument(
        '-y', '--yes', action='store_true', default=False,
        help='start: terminate the running relay without asking.')
    return parser


def run_local(command: str, root: str, source: str = None, print_kwargs: dict = None) -> None:
    """
    The same procedures as the generated scripts, executed by python inside the distro.
    """

    if command == 'install':
        if not source:
            raise filesystem.RequiredFileMissingError("'--source' is required for the local install.")
        reconcile.install(source, root=root, print_kwargs=print_kwargs)
    elif command == 'uninstall':
        reconcile.uninstall(root=root, print_kwargs=print_kwargs)
    elif command == 'configure':
        reconcile.configure(root=root, print_kwargs=print_kwargs)
    elif command == 'unconfigure':
        reconcile.unconfigure(root=root, print_kwargs=print_kwargs)


def vpnkit_main(args: argparse.Namespace, config: dict, print_kwargs: dict = None) -> int:
    if args.local:
        if args.command not in LOCAL_COMMANDS:
            print_api(f"'{args.command}' can't be executed with '--local'.", color='red', error_type=True,
                      **(print_kwargs or {}))
            return 1
        run_local(args.command, args.root, source=args.source, print_kwargs=print_kwargs)
        return 0

    vpnkit_config: dict = config['vpnkit']
    distro: str = args.distro or vpnkit_config.get('relay_distro')
    if not distro:
        print_api("Distro wasn't specified: use '-d' or set [vpnkit] 'relay_distro' in the config file.",
                  color='red', error_type=True, **(print_kwargs or {}))
        return 1

    program_directory: str = config_init.get_program_directory(config)
    store = common.get_distro_store()

    if args.command == 'provision':
        provisioner.provision(distro, vpnkit_config, program_directory, store, print_kwargs=print_kwargs)
    elif args.command == 'install':
        provisioner.install(
            distro, program_directory, store, dependency_package=vpnkit_config['dependency_package'],
            print_kwargs=print_kwargs)
    elif args.command == 'uninstall':
        provisioner.uninstall(distro, store, program_directory, print_kwargs=print_kwargs)
    elif args.command == 'configure':
        provisioner.configure(
            distro, store, program_directory=program_directory if args.from_program_directory else None,
            print_kwargs=print_kwargs)
    elif args.command == 'unconfigure':
        provisioner.unconfigure(
            distro, store, program_directory=program_directory if args.from_program_directory else None,
            print_kwargs=print_kwargs)
    elif args.command == 'start':
        store.require_wsl_version(distro, 2)
        if not relay.start_relay(
                distro, program_directory, detached=args.detached, assume_yes=args.yes, print_kwargs=print_kwargs):
            return 1

    return 0


def main(argv: list = None) -> int:
    args = _make_parser().parse_args(argv)
    config, print_kwargs = common.setup(args.config_directory, logger_name='wslkit_vpnkit')

    try:
        return vpnkit_main(args, config, print_kwargs)
    except HANDLED_ERRORS as e:
        return common.report_error(e, print_kwargs)
    except KeyboardInterrupt:
        print_api('Stopped.', color='yellow', **print_kwargs)
        return 0
    finally:
        common.teardown(print_kwargs)


if __name__ == '__main__':
    sys.exit(main())
