"""
Access to the WSL distro registrations.

WSL keeps one registry key per distro under 'HKCU\\Software\\Microsoft\\Windows\\CurrentVersion\\Lxss\\{guid}'.
The toolkit never creates these records, 'wsl --import' does. It only reads them and overwrites single fields
(like 'DefaultUid' after a user was created in a sideloaded distro).

'DistroStore' is the interface, 'RegistryDistroStore' (in 'wrappers/winregw/winreg_lxss.py') is the real one and
'InMemoryDistroStore' is used when there is no registry (tests, non-Windows hosts).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace


# Flags bitmask of the registration.
LXSS_DISTRO_FLAGS_ENABLE_INTEROP: int = 0x1
LXSS_DISTRO_FLAGS_APPEND_NT_PATH: int = 0x2
LXSS_DISTRO_FLAGS_ENABLE_DRIVE_MOUNTING: int = 0x4
LXSS_DISTRO_FLAGS_VM_MODE: int = 0x8

# Registry value name of each field of 'DistroRecord'.
FIELD_TO_VALUE_NAME: dict = {
    'name': 'DistributionName',
    'base_path': 'BasePath',
    'default_uid': 'DefaultUid',
    'flags': 'Flags',
    'version': 'Version'
}
INTEGER_FIELDS: tuple = ('default_uid', 'flags', 'version')


class DistroNotFoundError(Exception):
    pass


class WslVersionError(Exception):
    pass


@dataclass(frozen=True)
class DistroRecord:
    guid: str
    name: str
    base_path: str
    default_uid: int = 0
    flags: int = LXSS_DISTRO_FLAGS_ENABLE_INTEROP | LXSS_DISTRO_FLAGS_APPEND_NT_PATH | \
        LXSS_DISTRO_FLAGS_ENABLE_DRIVE_MOUNTING | LXSS_DISTRO_FLAGS_VM_MODE
    version: int = 2

    @property
    def wsl_version(self) -> int:
        """
        'Version' of the registration is the filesystem layout version, WSL2 is marked by the VM mode flag.
        """
        if self.flags & LXSS_DISTRO_FLAGS_VM_MODE:
            return 2
        return 1


class DistroStore(ABC):
    @abstractmethod
    def list_names(self) -> list[str]:
        """
        :return: list of strings, names of all the registered distros.
        """

    @abstractmethod
    def get(self, name: str) -> DistroRecord:
        """
        :param name: string, distro name. Case-insensitive, like 'wsl.exe'.
        :return: DistroRecord.
        :raises DistroNotFoundError: no distro with this name is registered.
        """

    @abstractmethod
    def set(self, name: str, field: str, value) -> None:
        """
        Overwrite one field of an existing registration.

        :param name: string, distro name.
        :param field: string, one of: 'base_path', 'default_uid', 'flags', 'version'.
        :param value: new value, integer for integer fields.
        :raises DistroNotFoundError: no distro with this name is registered.
        """

    def exists(self, name: str) -> bool:
        try:
            self.get(name)
            return True
        except DistroNotFoundError:
            return False

    def require_wsl_version(self, name: str, version: int) -> DistroRecord:
        """
        Precondition check: the distro exists and runs as the required WSL version.

        :param name: string, distro name.
        :param version: int, 1 or 2.
        :return: DistroRecord.
        """

        record = self.get(name)
        if record.wsl_version != version:
            raise WslVersionError(
                f'Distro [{record.name}] is WSL{record.wsl_version}, WSL{version} is required. '
                f'Convert it with: wsl --set-version {record.name} {version}')
        return record


def validate_field(field: str, value):
    if field not in FIELD_TO_VALUE_NAME or field == 'name':
        raise ValueError(f'Unsupported distro field: {field}')

    if field in INTEGER_FIELDS:
        return int(value)
    return str(value)


class InMemoryDistroStore(DistroStore):
    def __init__(self, records: list[DistroRecord] = None):
        self.records: dict = dict()
        for record in records or []:
            self.records[record.name.lower()] = record

    def list_names(self) -> list[str]:
        return [record.name for record in self.records.values()]

    def get(self, name: str) -> DistroRecord:
        try:
            return self.records[name.lower()]
        except KeyError:
            raise DistroNotFoundError(f'Distro is not registered: {name}')

    def set(self, name: str, field: str, value) -> None:
        record = self.get(name)
        self.records[name.lower()] = replace(record, **{field: validate_field(field, value)})
