"""
Entry registries: map a registered application name to a launch entry.

The default registry follows the XDG base directory convention and looks for
`applications/<name>` under the user and system data directories.
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import structlog

from handlr.core.entry import LaunchEntry
from handlr.core.errors import NotFound, RegistryError

log = structlog.get_logger()

DESKTOP_GROUP = "Desktop Entry"
DEFAULT_DATA_DIRS = "/usr/local/share:/usr/share"


class Registry(Protocol):
    """Protocol for anything that resolves application names to entries."""

    def lookup(self, name: str) -> LaunchEntry:
        """Return the entry registered under name. Raises NotFound if absent."""
        ...

    def contains(self, name: str) -> bool:
        """True if name is registered."""
        ...


def data_dirs() -> list[Path]:
    """XDG data directories in search order (user first)."""
    home = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    system = os.environ.get("XDG_DATA_DIRS") or DEFAULT_DATA_DIRS
    dirs = [Path(home)]
    dirs.extend(Path(d) for d in system.split(":") if d)
    return dirs


def parse_desktop_entry(text: str, name: str = "") -> LaunchEntry:
    """Read the Exec and Terminal keys of a desktop file's main group."""
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # keys are case-sensitive
    try:
        parser.read_string(text)
    except configparser.Error as e:
        raise RegistryError(f"malformed desktop entry '{name}': {e}") from e

    if not parser.has_section(DESKTOP_GROUP):
        raise RegistryError(f"'{name}' has no [{DESKTOP_GROUP}] group")
    group = parser[DESKTOP_GROUP]
    exec_ = group.get("Exec")
    if not exec_:
        raise RegistryError(f"'{name}' has no Exec key")
    terminal = group.get("Terminal", "false").strip().lower() == "true"
    return LaunchEntry(exec=exec_, terminal=terminal, name=group.get("Name", name))


class XdgRegistry:
    """Registry backed by desktop files in the XDG data directories."""

    def __init__(self, dirs: list[Path] | None = None):
        self._dirs = dirs

    @property
    def dirs(self) -> list[Path]:
        return self._dirs if self._dirs is not None else data_dirs()

    def find(self, name: str) -> Path | None:
        """Path of the first `applications/<name>` file, or None."""
        for base in self.dirs:
            candidate = base / "applications" / name
            if candidate.is_file():
                return candidate
        return None

    def contains(self, name: str) -> bool:
        return self.find(name) is not None

    def lookup(self, name: str) -> LaunchEntry:
        path = self.find(name)
        if path is None:
            log.debug("lookup_missing", name=name)
            raise NotFound(name)
        try:
            text = path.read_text()
        except OSError as e:
            raise RegistryError(f"cannot read {path}: {e}") from e
        log.debug("lookup", name=name, path=str(path))
        return parse_desktop_entry(text, name)


class StaticRegistry:
    """In-memory registry over a fixed name -> entry mapping."""

    def __init__(self, entries: Mapping[str, LaunchEntry] | None = None):
        self._entries = dict(entries or {})

    def contains(self, name: str) -> bool:
        return name in self._entries

    def lookup(self, name: str) -> LaunchEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise NotFound(name) from None
