import sys
import logging

from .basics import ansi_escape_codes
from .basics import tracebacks


def print_api(
        message: any,
        color: str = None,
        print_end: str = '\n',
        error_type: bool = False,
        logger: logging.Logger = None,
        logger_method: str = 'info',
        stdout: bool = True,
        stderr: bool = True,
        stdcolor: bool = True,
        traceback_string: bool = False,
        **kwargs: object) -> None:
    """
    Function of custom api that is responsible for printing messages to console.
    By default, the 'logger' is 'None', meaning regular 'print' function will be used.
    If it is passed, then it will be used to output messages and not the 'print' function.

    Usage in functions:
        The parameter to pass all the arguments to this is 'print_kwargs'.
        Example:
            def some_function(print_kwargs: dict = None):
                print_api(message, **(print_kwargs or {}))

        The description of this argument in the function should be:
            :param print_kwargs: dict, that contains all the arguments for 'print_api' function.

    :param message: Message that will be printed to console. Doesn't have to be string - can be 'any'.
    :param color: color of message to print: 'red', 'green', 'yellow', 'blue', 'cyan', 'white'.
    :param print_end: string, that sets 'end' method for print function. Not available for loggers, so lines
        that end with anything other than '\n' (like the download progress '\r') are not sent to the logger.
    :param error_type: Boolean that sets if the 'message' parameter that was passed would act as 'error'.
        Meaning, that if 'stderr=False', this 'message' won't be displayed.
        If a logger is used and 'logger_method' was left as 'info', the 'error' method will be used.
    :param logger: Logger object that has methods like '.info()', '.error()'.
    :param logger_method: Method of the logger passed as string. Example: 'info', 'warning', 'error'.
    :param stdout: Boolean that sets if the program should output regular prints or not.
    :param stderr: Boolean that sets if the program should output error/exception prints or not.
    :param stdcolor: Boolean that sets if the console output should be colored or not.
    :param traceback_string: Boolean that sets if the traceback of the exception currently being handled
        should be added to the message.
    :return: None
    """

    def print_or_logger():
        nonlocal message
        nonlocal color
        nonlocal logger_method

        if logger_method in ('error', 'critical'):
            is_error = True
        else:
            is_error = error_type

        if sys.exc_info()[0] is not None and traceback_string:
            if message:
                message = f'{message}\n{tracebacks.get_as_string()}'
            else:
                message = tracebacks.get_as_string()

            color = 'red'

        if logger:
            if print_end != '\n':
                return

            if is_error and logger_method == 'info':
                logger_method = 'error'
            elif color == 'yellow' and logger_method == 'info':
                logger_method = 'warning'

            getattr(logger, logger_method)(message)
            return

        if stdcolor:
            if logger_method == 'error' and not color:
                color = 'yellow'
            elif logger_method == 'critical' and not color:
                color = 'red'

            if color is not None:
                message = ansi_escape_codes.colorize(message, color)

        print(message, end=print_end)

    message = str(message)

    if stdout and stderr:
        print_or_logger()
    elif stdout and not stderr:
        if not error_type:
            print_or_logger()
    elif not stdout and stderr:
        if error_type:
            print_or_logger()
