import os
import string

from . import reconcile
from ..file_io import file_io
from .. import filesystem


TEMPLATES_DIRECTORY: str = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'script_templates')
TEMPLATE_EXTENSION: str = '.template'
# Program directory files that are rendered from the templates with the same name.
RENDERED_FILE_NAMES: list = reconcile.SCRIPT_NAMES + ['wsl.conf', 'resolv.conf']


class ScriptTemplate(string.Template):
    # '$' belongs to the shell.
    delimiter = '@'


def get_template_values() -> dict:
    """
    Substitutions of all the templates, taken from the python procedures so both renditions use the same paths.
    """

    return {
        'bin_directory': reconcile.BIN_DIRECTORY,
        'sbin_directory': reconcile.SBIN_DIRECTORY,
        'bin_files': ' '.join(reconcile.BIN_FILE_NAMES),
        'tap_file': reconcile.TAP_FILE_NAME,
        'unconfigure_script': reconcile.UNCONFIGURE_SCRIPT_NAME,
        'wsl_conf_path': reconcile.WSL_CONF_PATH,
        'resolv_conf_path': reconcile.RESOLV_CONF_PATH,
        'section': reconcile.NETWORK_SECTION,
        'key': reconcile.GENERATE_RESOLV_CONF_KEY,
        'value': reconcile.GENERATE_RESOLV_CONF_VALUE,
        'gateway': reconcile.GATEWAY_ADDRESS,
        'fallback_nameserver': reconcile.FALLBACK_NAMESERVER
    }


def load_template(file_name: str) -> ScriptTemplate:
    template_path: str = os.path.join(TEMPLATES_DIRECTORY, f'{file_name}{TEMPLATE_EXTENSION}')
    return ScriptTemplate(file_io.read_file(template_path, print_kwargs={'stdout': False}))


def render(file_name: str, values: dict = None) -> str:
    """
    Render the template of the program directory file.

    :param file_name: string, name of the rendered file. Example: 'wsl-vpnkit-configure'.
    :param values: dict, substitutions. Default is 'get_template_values()'.
    :return: string with LF line endings, the scripts are executed by the Linux shell.
    :raises KeyError: substitution is missing.
    """

    if values is None:
        values = get_template_values()

    content: str = load_template(file_name).substitute(values)
    return content.replace('\r\n', '\n')


def write_program_files(program_directory: str, print_kwargs: dict = None) -> list[str]:
    """
    Render all the templates into the program directory.

    :param program_directory: string, VPNKit program directory on the host.
    :param print_kwargs: dict, that contains all the arguments for 'print_api' function.
    :return: list of strings, written file paths.
    """

    filesystem.create_directory(program_directory)

    values: dict = get_template_values()
    written_paths: list = []
    for file_name in RENDERED_FILE_NAMES:
        file_path: str = os.path.join(program_directory, file_name)
        file_io.write_file(render(file_name, values), file_path, print_kwargs=print_kwargs)
        written_paths.append(file_path)

    return written_paths
