import os
import logging

from . import handlers
from ... import filesystem


class LoggingwLoggerAlreadyExistsError(Exception):
    pass


def create_logger(
        logger_name: str,
        add_stream: bool = False,
        add_timedfile: bool = False,
        directory_path: str = None,
        file_name: str = None,
        logging_level: str = "INFO",
        backup_count: int = 0
) -> logging.Logger:
    """
    Function to get a logger and add StreamHandler and TimedRotatingFileHandler to it.

    :param logger_name: Name of the logger. Child loggers of this name ('wslkit.vpnkit') will use its handlers.
    :param add_stream: bool, If set to True, StreamHandler will be added to the logger.
    :param add_timedfile: bool, If set to True, TimedRotatingFileHandler will be added to the logger.
        'directory_path' must be provided.
    :param directory_path: full path to the directory where the log file will be saved. Created if it doesn't exist.
    :param file_name: string, name of the log file. If not specified, '<logger_name>.txt' is used.
    :param logging_level: str or int, Logging level of the logger.
    :param backup_count: int, Number of rotated files to keep. 0 keeps all of them.
    :return: Logger.

    Usage:
        logger = create_logger('wslkit', add_stream=True, add_timedfile=True, directory_path='C:\\logs')
        print_api('Starting', logger=logger)
    """

    logger: logging.Logger = logging.getLogger(logger_name)

    if handlers.has_handlers(logger):
        raise LoggingwLoggerAlreadyExistsError(f"Logger '{logger_name}' already has handlers.")

    logger.setLevel(logging_level)
    # The root logger handlers would duplicate every message.
    logger.propagate = False

    if add_stream:
        logger.addHandler(handlers.get_stream_handler())

    if add_timedfile:
        if not directory_path:
            raise ValueError("'directory_path' must be specified when 'add_timedfile' is True.")

        filesystem.create_directory(directory_path)
        if not file_name:
            file_name = f'{logger_name}.txt'

        logger.addHandler(
            handlers.get_timed_rotating_file_handler(
                log_file_path=f'{directory_path}{os.sep}{file_name}', backupCount=backup_count))

    return logger


def get_logger_with_level(logger_name: str, logging_level: str = "INFO") -> logging.Logger:
    """
    Get an existing logger (or a new one without handlers) and set its level.
    :param logger_name: Name of the logger.
    :param logging_level: str or int, Logging level to set.
    :return: Logger.
    """

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging_level)
    return logger


def close_logger(logger: logging.Logger) -> None:
    """
    Flush, close and remove all the handlers of the logger, so the log files are released.
    :param logger: Logger to close.
    """

    for handler in list(logger.handlers):
        handler.flush()
        handler.close()
        logger.removeHandler(handler)
