import sys
import argparse

from . import common
from .. import process, console_user_response
from ..distros.distro_store import DistroStore, DistroNotFoundError
from ..wrappers import wslw
from ..print_api import print_api


COMMANDS: list = ['list', 'show', 'set-default-uid', 'set-default', 'terminate', 'unregister', 'shutdown']

HANDLED_ERRORS: tuple = (DistroNotFoundError, wslw.WslCommandError, process.ProcessExecutionError, ValueError, OSError)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Registered WSL distros.')
    parser.add_argument('command', choices=COMMANDS)
    parser.add_argument('-d', '--distro', type=str, default=None, help='Distro name.')
    parser.add_argument('--uid', type=int, default=None, help='set-default-uid: the UID.')
    parser.add_argument('--user', type=str, default=None, help='set-default-uid: user name, its UID is used.')
    parser.add_argument(
        '-y', '--yes', action='store_true', default=False, help="unregister: don't ask for confirmation.")
    parser.add_argument(
        '-c', '--config-directory', type=str, default=None,
        help="Directory of 'config.toml'. Default is the working directory.")
    return parser


def format_record_lines(store: DistroStore, name: str) -> list[str]:
    record = store.get(name)
    return [
        f'Name:        {record.name}',
        f'GUID:        {record.guid}',
        f'Base path:   {record.base_path}',
        f'WSL version: {record.wsl_version}',
        f'Default UID: {record.default_uid}',
        f'Flags:       {record.flags:#x}',
        f'Version:     {record.version}'
    ]


def list_distros(store: DistroStore, print_kwargs: dict = None) -> None:
    states: dict = dict()
    try:
        states = {entry.name: entry for entry in wslw.get_installed_distros(print_kwargs=print_kwargs)}
    except wslw.WslCommandError as e:
        print_api(f'Distro states are not available: {e}', color='yellow', **(print_kwargs or {}))

    for name in store.list_names():
        record = store.get(name)
        entry = states.get(name)
        state: str = entry.state if entry else 'Unknown'
        default_marker: str = '*' if entry and entry.is_default else ' '
        print_api(
            f'{default_marker} {record.name:<24} WSL{record.wsl_version}  {state:<10} uid={record.default_uid}  '
            f'{record.base_path}', **(print_kwargs or {}))


def distros_main(args: argparse.Namespace, print_kwargs: dict = None) -> int:
    if args.command == 'shutdown':
        wslw.shutdown(print_kwargs=print_kwargs)
        return 0

    store = common.get_distro_store()
    if args.command == 'list':
        list_distros(store, print_kwargs=print_kwargs)
        return 0

    if not args.distro:
        print_api(f"'{args.command}' requires '-d'.", color='red', error_type=True, **(print_kwargs or {}))
        return 1

    if args.command == 'show':
        for line in format_record_lines(store, args.distro):
            print_api(line, **(print_kwargs or {}))
    elif args.command == 'set-default-uid':
        store.get(args.distro)
        if args.uid is None and not args.user:
            print_api("'set-default-uid' requires '--uid' or '--user'.", color='red', error_type=True,
                      **(print_kwargs or {}))
            return 1

        uid: int = args.uid
        if uid is None:
            uid = wslw.get_user_uid(args.distro, args.user, print_kwargs=print_kwargs)
        store.set(args.distro, 'default_uid', uid)
        print_api(f'Default UID of [{args.distro}]: {uid}', color='green', **(print_kwargs or {}))
    elif args.command == 'set-default':
        store.get(args.distro)
        wslw.set_default_distro(args.distro, print_kwargs=print_kwargs)
    elif args.command == 'terminate':
        store.get(args.distro)
        wslw.terminate_distro(args.distro, print_kwargs=print_kwargs)
    elif args.command == 'unregister':
        record = store.get(args.distro)
        # The distro disk is deleted with the registration.
        if not args.yes and not console_user_response.query_positive_negative(
                f'Unregister [{record.name}] and delete its disk in [{record.base_path}]?'):
            print_api('Nothing was changed.', color='yellow', **(print_kwargs or {}))
            return 1
        wslw.unregister_distro(record.name, print_kwargs=print_kwargs)

    return 0


def main(argv: list = None) -> int:
    args = _make_parser().parse_args(argv)
    _, print_kwargs = common.setup(args.config_directory, logger_name='wslkit_distros')

    try:
        return distros_main(args, print_kwargs)
    except HANDLED_ERRORS as e:
        return common.report_error(e, print_kwargs)
    finally:
        common.teardown(print_kwargs)


if __name__ == '__main__':
    sys.exit(main())
