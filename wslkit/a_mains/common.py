import os
import logging

from .. import config_init
from ..basics import ansi_escape_codes
from ..distros.distro_store import DistroStore, InMemoryDistroStore
from ..wrappers.winregw.winreg_lxss import RegistryDistroStore
from ..wrappers.loggingw import loggingw
from ..print_api import print_api


def setup(config_directory: str = None, logger_name: str = 'wslkit') -> tuple[dict, dict]:
    """
    Common start of the entry points: console colors, config file and the logger.

    :param config_directory: string, directory of 'config.toml'. Default is the working directory.
    :param logger_name: string, name of the logger, also the log file name.
    :return: tuple of (config dict, print_kwargs dict).
    """

    ansi_escape_codes.initialize_ansi()
    config: dict = config_init.get_config(config_directory)

    print_kwargs: dict = dict()
    logging_config: dict = config['logging']
    if logging_config.get('directory'):
        try:
            logger = loggingw.create_logger(
                logger_name, add_stream=True, add_timedfile=True,
                directory_path=os.path.expandvars(logging_config['directory']),
                logging_level=logging_config.get('level', 'INFO'))
        except loggingw.LoggingwLoggerAlreadyExistsError:
            logger = loggingw.get_logger_with_level(logger_name, logging_config.get('level', 'INFO'))
        print_kwargs['logger'] = logger

    return config, print_kwargs


def teardown(print_kwargs: dict) -> None:
    logger: logging.Logger = print_kwargs.get('logger')
    if logger:
        loggingw.close_logger(logger)


def get_distro_store() -> DistroStore:
    """
    The registry of the current user on Windows. Elsewhere there are no registrations to read.
    """

    if os.name == 'nt':
        return RegistryDistroStore()
    return InMemoryDistroStore()


def report_error(exception: BaseException, print_kwargs: dict = None) -> int:
    print_kwargs = print_kwargs or {}
    # With a log file, the traceback is kept there.
    print_api(
        f'{type(exception).__name__}: {exception}', color='red', error_type=True,
        traceback_string='logger' in print_kwargs, **print_kwargs)
    return 1
