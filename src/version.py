"""
Alarmist Version Information
"""

from typing import Dict, Optional, Union

VERSION = "0.4.0"

VERSION_INFO: Dict[str, Union[int, Optional[str]]] = {
    "major": 0,
    "minor": 4,
    "patch": 0,
    "pre_release": None,
}

APP_NAME = "Alarmist"


def get_version() -> str:
    return VERSION


def get_full_version() -> str:
    """Version with pre-release suffix when one is set."""
    version = VERSION
    if VERSION_INFO["pre_release"]:
        version += f"-{VERSION_INFO['pre_release']}"
    return version


def get_app_info() -> str:
    """Application name and version, e.g. ``Alarmist v0.4.0``."""
    return f"{APP_NAME} v{get_version()}"
