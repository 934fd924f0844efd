"""This module contains helper functions that are shared by different modules."""

import sys
from importlib.metadata import PackageNotFoundError, version
from typing import TYPE_CHECKING, Optional, Union

from colorama import Back, Fore
from colorama.ansi import AnsiBack, AnsiFore

if TYPE_CHECKING:  # pragma: no cover
    from topicq.util.configuration import Configuration


def color_print_line(
    back: Optional[Union[str, AnsiBack]], fore: Optional[Union[str, AnsiFore]], message: str
):
    """Print string with colors and reset the color afterwards."""
    color = ""
    if back:
        color += back
    if fore:
        color += fore

    print(color + message + Fore.RESET + Back.RESET)


def print_fcolor(fore: AnsiFore, message: str):
    """Print string with colored font and reset the color afterwards."""
    color_print_line(None, fore, message)


def get_package_version() -> str:
    """Installed version of topicq."""
    try:
        return version("topicq")
    except PackageNotFoundError:  # pragma: no cover
        return "unknown"


def get_versions_string(config: Optional["Configuration"] = None) -> str:
    """
    Returns the python and topicq version. If a configuration was loaded then its
    version is added as well
    """
    padding = 25
    version_string = f"{'python version:'.ljust(padding)}{sys.version.split()[0]}"
    version_string += f"\n{'topicq version:'.ljust(padding)}{get_package_version()}"
    if config:
        config_version = f"{config.version}, {config.config_path or 'None'}"
    else:
        config_version = "no configuration loaded"
    version_string += f"\n{'configuration version:'.ljust(padding)}{config_version}"
    return version_string
