try:
    # This is a library in python 3.11 and above.
    import tomllib
except ModuleNotFoundError:
    # This is library from pypi.
    # noinspection PyPackageRequirements
    import tomli as tomllib

from . import file_io


class TomlValueNotImplementedError(Exception):
    pass


# noinspection PyUnusedLocal
@file_io.read_file_decorator
def read_toml_file(
        file_path: str,
        file_mode: str = 'rb',
        encoding=None,
        file_object=None,
        print_kwargs: dict = None) -> dict:
    """
    Read the toml file and return its content as dictionary.

    :param file_path: String with full file path to file.
    :param file_mode: string, file reading mode. 'tomllib' needs binary mode, so the default is 'rb'.
    :param encoding: string, encoding of the file. Default is 'None'.
    :param file_object: file object of the 'open()' function in the decorator. Decorator executes the 'with open()'
        statement and passes to this function. That's why the default is 'None', since we get it from the decorator.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: dict.
    """

    return tomllib.load(file_object)


# noinspection PyUnusedLocal
@file_io.write_file_decorator
def write_toml_file(
        toml_content: dict,
        file_path: str,
        file_mode: str = 'w',
        encoding: str = 'utf-8',
        file_object=None,
        print_kwargs: dict = None
) -> None:
    """
    Write the toml file with the specified content.

    :param toml_content: dict, content to write to the file. One level of tables with scalar values.
    :param file_path: String with full file path to file.
    :param file_mode: string, file writing mode. Examples: 'w', 'x'. Default is 'w'.
    :param encoding: string, encoding of the file. Default is 'utf-8'.
    :param file_object: file object of the 'open()' function in the decorator.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    """

    file_object.write(dumps(toml_content))


def dumps(toml_dict: dict) -> str:
    """
    Dump the toml simple dictionary to string.
    The 'tomllib' library doesn't support dumping to string because of PEP680, so we will use this function.

    Strings are written as TOML literal strings (single quotes), so Windows paths with backslashes
    are kept as is.

    :param toml_dict: dict, toml dictionary to dump.
    :return: string, dumped toml dictionary.
    """

    def process_value(item_value) -> str:
        if isinstance(item_value, bool):
            return str(item_value).lower()
        elif isinstance(item_value, (int, float)):
            return str(item_value)
        elif isinstance(item_value, str):
            if "'" in item_value or '\n' in item_value:
                raise TomlValueNotImplementedError(f"Can't dump string as literal string: {item_value!r}")
            return f"'{item_value}'"
        elif isinstance(item_value, list):
            return '[' + ', '.join(process_value(value) for value in item_value) + ']'
        else:
            raise TomlValueNotImplementedError(f"Value type is not supported: {type(item_value)}")

    toml_string: str = ''
    for key, value in toml_dict.items():
        if isinstance(value, dict):
            if toml_string:
                toml_string += '\n'
            toml_string += f'[{key}]\n'
            for sub_key, sub_value in value.items():
                toml_string += f'{sub_key} = {process_value(sub_value)}\n'
        else:
            toml_string = f'{key} = {process_value(value)}\n' + toml_string

    return toml_string
