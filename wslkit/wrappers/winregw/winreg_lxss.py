import os

from ...distros.distro_store import (
    DistroStore, DistroRecord, DistroNotFoundError, FIELD_TO_VALUE_NAME, INTEGER_FIELDS, validate_field)

if os.name == 'nt':
    import winreg


LXSS_REGISTRY_PATH: str = r"Software\Microsoft\Windows\CurrentVersion\Lxss"


def _query_value(key, value_name: str, default=None):
    try:
        value, _ = winreg.QueryValueEx(key, value_name)
        return value
    except FileNotFoundError:
        return default


def get_distro_keys() -> dict:
    """
    Get all the distro registrations of the current user.

    :return: dict, GUID of the registration (sub key name) to dict of its values.
    """

    distros: dict = dict()
    try:
        lxss_key = winreg.OpenKey(winreg.HKEY_CURRENT_USER, LXSS_REGISTRY_PATH)
    except FileNotFoundError:
        # WSL was never used by this user.
        return distros

    with lxss_key:
        subkey_count = winreg.QueryInfoKey(lxss_key)[0]
        for i in range(subkey_count):
            guid = winreg.EnumKey(lxss_key, i)
            # Besides the '{guid}' keys there are 'AppxInstallerCache' and similar.
            if not guid.startswith('{'):
                continue

            with winreg.OpenKey(lxss_key, guid) as distro_key:
                distro_name = _query_value(distro_key, FIELD_TO_VALUE_NAME['name'])
                if not distro_name:
                    continue

                distros[guid] = {
                    'name': distro_name,
                    'base_path': _query_value(distro_key, FIELD_TO_VALUE_NAME['base_path'], ''),
                    'default_uid': _query_value(distro_key, FIELD_TO_VALUE_NAME['default_uid'], 0),
                    'flags': _query_value(distro_key, FIELD_TO_VALUE_NAME['flags'], 0),
                    'version': _query_value(distro_key, FIELD_TO_VALUE_NAME['version'], 0)
                }

    return distros


class RegistryDistroStore(DistroStore):
    """
    Distro registrations of the current user in the Windows registry.
    """

    def __init__(self):
        if os.name != 'nt':
            raise OSError('The registry distro store is available on Windows only.')

    def list_names(self) -> list[str]:
        return [values['name'] for values in get_distro_keys().values()]

    def _find(self, name: str) -> tuple[str, dict]:
        for guid, values in get_distro_keys().items():
            if values['name'].lower() == name.lower():
                return guid, values

        raise DistroNotFoundError(f'Distro is not registered: {name}')

    def get(self, name: str) -> DistroRecord:
        guid, values = self._find(name)
        return DistroRecord(guid=guid, **values)

    def set(self, name: str, field: str, value) -> None:
        value = validate_field(field, value)
        guid, _ = self._find(name)

        if field in INTEGER_FIELDS:
            value_type = winreg.REG_DWORD
        else:
            value_type = winreg.REG_SZ

        with winreg.OpenKey(
                winreg.HKEY_CURRENT_USER, f'{LXSS_REGISTRY_PATH}\\{guid}', 0, winreg.KEY_SET_VALUE) as distro_key:
            winreg.SetValueEx(distro_key, FIELD_TO_VALUE_NAME[field], 0, value_type, value)
