import logging
from logging.handlers import TimedRotatingFileHandler


DEFAULT_STREAM_FORMATTER: str = "%(levelname)s | %(name)s | %(message)s"
DEFAULT_FILE_FORMATTER: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(lineno)d | %(message)s"


def get_stream_handler(formatter: str = DEFAULT_STREAM_FORMATTER) -> logging.StreamHandler:
    """
    Function to get a StreamHandler.
    This handler that will output messages to the console.

    :param formatter: string, regular syntax for logging.Formatter. If None, no formatter is set.
    :return: StreamHandler.
    """

    handler = logging.StreamHandler()
    if formatter:
        handler.setFormatter(logging.Formatter(formatter))
    return handler


# noinspection PyPep8Naming
def get_timed_rotating_file_handler(
        log_file_path: str,
        when: str = "midnight",
        interval: int = 1,
        backupCount: int = 0,
        delay: bool = False,
        encoding: str = 'utf-8',
        formatter: str = DEFAULT_FILE_FORMATTER
) -> TimedRotatingFileHandler:
    """
    Function to get a TimedRotatingFileHandler.
    This handler will output messages to a file, rotating the log file at certain timed intervals.

    :param log_file_path: Path to the log file.
    :param when: When to rotate the log file. Possible values:
        "S" - Seconds
        "M" - Minutes
        "H" - Hours
        "D" - Days
        "midnight" - Roll over at midnight
    :param interval: Interval to rotate the log file.
    :param backupCount: int, Number of backup files to keep. Default is 0, meaning all the backup files are kept.
    :param delay: bool, If set to True, the log file will be created only if there's something to write.
    :param encoding: Encoding to use for the log file.
    :param formatter: string, regular syntax for logging.Formatter. If None, no formatter is set.
    :return: TimedRotatingFileHandler.
    """

    handler = TimedRotatingFileHandler(
        filename=log_file_path, when=when, interval=interval, backupCount=backupCount, delay=delay, encoding=encoding)
    if formatter:
        handler.setFormatter(logging.Formatter(formatter))
    return handler


def has_handlers(logger: logging.Logger) -> bool:
    """
    Function to check if the logger has handlers.
    :param logger: Logger to check.
    :return: bool, True if the logger has handlers, False otherwise.
    """

    return bool(logger.handlers)
