import os


def is_root() -> bool:
    """
    Check if the effective user is root. The install and configure steps inside the distro write to
    '/usr/local/bin', '/sbin' and '/etc', so they are executed with 'wsl -u root'.
    :return: True / False.
    """

    # 'geteuid' doesn't exist on Windows.
    if not hasattr(os, 'geteuid'):
        return False

    return os.geteuid() == 0
