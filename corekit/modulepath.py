"""File names for loadable modules, decorated by platform convention."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Optional

__all__ = ["ModuleStyle", "NATIVE_STYLE", "build_path"]


class ModuleStyle(Enum):
    """Naming conventions for shared libraries."""

    DL = "dl"
    """ELF-style shared objects: ``lib<name>.so``."""
    DLD = "dld"
    """HP-UX shared libraries: ``lib<name>.sl``."""
    WIN32 = "win32"
    """Windows dynamic-link libraries: ``<name>.dll``."""


NATIVE_STYLE = ModuleStyle.WIN32 if sys.platform.startswith(("win", "cygwin")) else ModuleStyle.DL

_UNIX_SUFFIX = {ModuleStyle.DL: ".so", ModuleStyle.DLD: ".sl"}


def _unix_path(directory: Optional[str], module_name: str, suffix: str) -> str:
    has_prefix = module_name.startswith("lib")
    if directory:
        if has_prefix:
            return f"{directory}/{module_name}"
        return f"{directory}/lib{module_name}{suffix}"
    if has_prefix:
        return module_name
    return f"lib{module_name}{suffix}"


def _win32_path(directory: Optional[str], module_name: str) -> str:
    has_suffix = len(module_name) > 4 and module_name[-4:].lower() == ".dll"
    name = module_name if has_suffix else f"{module_name}.dll"
    if directory:
        return f"{directory}\\{name}"
    return name


def build_path(
    directory: Optional[str],
    module_name: str,
    style: ModuleStyle | str = NATIVE_STYLE,
) -> str:
    """Return the file name of ``module_name`` inside ``directory``.

    A None or empty ``directory`` gives a bare file name. No check is made
    that the file exists.
    """
    if module_name is None:
        raise ValueError("module_name must not be None")
    style = ModuleStyle(style)
    if style is ModuleStyle.WIN32:
        return _win32_path(directory, module_name)
    return _unix_path(directory, module_name, _UNIX_SUFFIX[style])