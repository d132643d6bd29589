from typing import Union
import functools

from ..print_api import print_api
from ..inspect_wrapper import get_target_function_default_args_and_combine_with_current


def _get_open_arguments(kwargs: dict) -> dict:
    # Binary modes take neither 'encoding' nor 'newline'.
    if 'b' in kwargs['file_mode']:
        return {}
    return {'encoding': kwargs.get('encoding'), 'newline': kwargs.get('newline')}


def write_file_decorator(function_name):
    @functools.wraps(function_name)
    def wrapper_write_file_decorator(*args, **kwargs):
        args, kwargs = get_target_function_default_args_and_combine_with_current(function_name, *args, **kwargs)
        print_kwargs: dict = kwargs.get('print_kwargs') or {}

        print_api(message=f"Writing file: {kwargs['file_path']}", **print_kwargs)

        # Errors propagate to the caller, a failed write leaves the file in whatever state the OS left it.
        with open(kwargs['file_path'], kwargs['file_mode'], **_get_open_arguments(kwargs)) as output_file:
            # Pass the 'output_file' object to kwargs that will pass the object to the executing function.
            kwargs['file_object'] = output_file
            return function_name(**kwargs)

    return wrapper_write_file_decorator


def read_file_decorator(function_name):
    @functools.wraps(function_name)
    def wrapper_read_file_decorator(*args, **kwargs):
        args, kwargs = get_target_function_default_args_and_combine_with_current(function_name, *args, **kwargs)
        print_kwargs: dict = kwargs.get('print_kwargs') or {}

        print_api(message=f"Reading file: {kwargs['file_path']}", **print_kwargs)
        try:
            with open(kwargs['file_path'], kwargs['file_mode'], **_get_open_arguments(kwargs)) as input_file:
                kwargs['file_object'] = input_file
                return function_name(**kwargs)
        except FileNotFoundError:
            message = f"File doesn't exist: {kwargs['file_path']}"
            print_api(message, error_type=True, logger_method='critical', **print_kwargs)
            raise

    return wrapper_read_file_decorator


@write_file_decorator
def write_file(
        content: Union[str, list[str]],
        file_path: str,
        file_mode: str = 'w',
        encoding: str = 'utf-8',
        newline: str = '',
        convert_list_to_string: bool = False,
        file_object=None,
        print_kwargs: dict = None) -> None:
    """
    Export string to text file.

    :param content: string or list of strings, that includes formatted text content. Bytes for binary modes.
    :param file_path: Full file path string to the file to output. Used in the decorator, then passed to this function.
    :param file_mode: string, file writing mode. Examples: 'x', 'w', 'a'. Default is 'w'.
    :param encoding: string, write the file with encoding. Default is 'utf-8'.
    :param newline: string, passed to 'open()'. Default is '' - no newline translation, so files written on
        Windows for the Linux side keep their '\n' line endings.
    :param convert_list_to_string: Boolean, if True, the list of strings will be converted to one string with '\n'
        separator between the lines.
    :param file_object: file object of the 'open()' function in the decorator. Decorator executes the 'with open()'
        statement and passes to this function. That's why the default is 'None', since we get it from the decorator.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return:
    """

    if isinstance(content, list):
        if convert_list_to_string:
            content = '\n'.join(content)
        else:
            file_object.writelines(content)
            return

    if isinstance(content, (str, bytes)):
        file_object.write(content)
    else:
        raise TypeError(f"Content type is not supported: {type(content)}")


@read_file_decorator
def read_file(
        file_path: str,
        file_mode: str = 'r',
        encoding: str = 'utf-8',
        newline: str = '',
        read_to_list: bool = False,
        file_object=None,
        print_kwargs: dict = None) -> Union[str, bytes, list]:
    """
    Read file and return its content as string.

    :param file_path: String with full file path to read.
    :param file_mode: string, file reading mode. Examples: 'r', 'rb'. Default is 'r'.
    :param encoding: string, read the file with encoding. Default is 'utf-8'. Must be None for 'rb'.
    :param newline: string, passed to 'open()'. Default is '' - line endings are returned untranslated.
    :param read_to_list: Boolean, if True, the file will be read to list of strings, each string is a line
        including its line ending.
    :param file_object: file object of the 'open()' function in the decorator.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: string or list of strings.
    """

    if read_to_list:
        return file_object.readlines()

    return file_object.read()
