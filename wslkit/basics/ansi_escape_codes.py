import os
import sys


ANSI_END = '\033[0m'


def initialize_ansi() -> None:
    """
    On Windows platforms, this is needed in order for ANSI escape codes to work in CMD and in the
    console windows that 'wsl.exe' opens.

    :return: None
    """

    if sys.platform.lower() == "win32":
        os.system("")


def get_colors_basic_dict(color: str) -> str:
    """
    Get the escape code string of the color name.

    :param color: string, one of: 'red', 'green', 'yellow', 'blue', 'cyan', 'white'.
    :return: string, the escape code.
    """

    colors_basic_dict = {
        'red': ColorsBasic.RED,
        'green': ColorsBasic.GREEN,
        'yellow': ColorsBasic.YELLOW,
        'blue': ColorsBasic.BLUE,
        'cyan': ColorsBasic.CYAN,
        'white': ColorsBasic.WHITE
    }

    return colors_basic_dict[color]


def colorize(message: str, color: str) -> str:
    return get_colors_basic_dict(color) + message + ColorsBasic.END


# https://en.wikipedia.org/wiki/ANSI_escape_code#Colors
class ColorsBasic:
    """
    Usage:
        print(f'{ColorsBasic.GREEN}green{ColorsBasic.END}')
    """

    initialize_ansi()

    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    WHITE = '\033[97m'
    END = ANSI_END
