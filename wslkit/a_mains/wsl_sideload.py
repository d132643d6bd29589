import sys
import getpass
import argparse

from . import common
from .. import config_init, filesystem, process
from ..archiver.rootfs import RootfsFormatError
from ..distros import sideload
from ..distros.distro_store import DistroNotFoundError
from ..wrappers.wslw import WslCommandError
from ..print_api import print_api


HANDLED_ERRORS: tuple = (
    sideload.DistroExistsError, DistroNotFoundError, RootfsFormatError, filesystem.RequiredFileMissingError,
    WslCommandError, process.ProcessExecutionError, OSError)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Import a Linux root filesystem image into WSL, outside the Store.\n'
                    'The image can be: .appxbundle, .appx, .zip, .7z, .tar, .tar.gz, .tar.xz',
        formatter_class=argparse.RawTextHelpFormatter)
    parser.add_argument('-n', '--name', type=str, required=True, help='Name of the new distro.')
    parser.add_argument('-u', '--image', type=str, required=True, help='URL or local path of the image.')
    parser.add_argument(
        '-i', '--install-directory', type=str, default=None,
        help="Root directory of the imported distros. Default is [sideload] 'install_root' of the config file.")
    parser.add_argument('--user', type=str, default=None, help='Create this user and make it the default one.')
    parser.add_argument(
        '--password-prompt', action='store_true', default=False, help="Ask for the password of '--user'.")
    parser.add_argument('--version', type=int, choices=[1, 2], default=None, help='WSL version of the distro.')
    parser.add_argument('--set-default', action='store_true', default=False, help='Make it the default distro.')
    parser.add_argument(
        '--keep-temporary', action='store_true', default=None,
        help="Don't remove the downloaded and extracted files.")
    parser.add_argument(
        '-c', '--config-directory', type=str, default=None,
        help="Directory of 'config.toml'. Default is the working directory.")
    return parser


def sideload_main(args: argparse.Namespace, config: dict, print_kwargs: dict = None) -> int:
    sideload_config: dict = config['sideload']

    password: str | None = None
    if args.user and args.password_prompt:
        password = getpass.getpass(f'Password of [{args.user}]: ')
        if password != getpass.getpass('Repeat: '):
            print_api('Passwords do not match.', color='red', error_type=True, **(print_kwargs or {}))
            return 1

    keep_temporary: bool = args.keep_temporary
    if keep_temporary is None:
        keep_temporary = sideload_config['keep_temporary']

    record = sideload.sideload(
        name=args.name,
        image=args.image,
        install_root=args.install_directory or config_init.get_install_root(config),
        store=common.get_distro_store(),
        version=args.version or sideload_config['wsl_version'],
        user=args.user,
        password=password,
        set_default=args.set_default,
        keep_temporary=keep_temporary,
        print_kwargs=print_kwargs)

    print_api(f'[{record.name}] is ready: {record.base_path} (WSL{record.wsl_version})', color='green',
              **(print_kwargs or {}))
    return 0


def main(argv: list = None) -> int:
    args = _make_parser().parse_args(argv)
    config, print_kwargs = common.setup(args.config_directory, logger_name='wslkit_sideload')

    try:
        return sideload_main(args, config, print_kwargs)
    except HANDLED_ERRORS as e:
        return common.report_error(e, print_kwargs)
    finally:
        common.teardown(print_kwargs)


if __name__ == '__main__':
    sys.exit(main())
