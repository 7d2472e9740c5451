"""Operating system families known to the metric definitions."""

from __future__ import annotations

import enum

import psutil

from .errors import ConfigurationError


class OSType(enum.Enum):
    LINUX = "linux"
    MAC = "mac"
    WINDOWS = "windows"
    UNKNOWN = "unknown"

    @classmethod
    def current(cls) -> OSType:
        """The OS this process runs on, or the test override if one is set."""
        if _override is not None:
            return _override
        return detect()

    @classmethod
    def from_name(cls, name: str) -> OSType:
        """Map a configuration value or a ``uname -s`` output to an OSType."""
        key = name.strip().lower()
        aliases = {
            "linux": cls.LINUX,
            "mac": cls.MAC,
            "macos": cls.MAC,
            "darwin": cls.MAC,
            "osx": cls.MAC,
            "windows": cls.WINDOWS,
            "unknown": cls.UNKNOWN,
        }
        try:
            return aliases[key]
        except KeyError:
            raise ConfigurationError(f"unknown OS type {name!r}") from None


_override: OSType | None = None


def detect() -> OSType:
    if psutil.LINUX:
        return OSType.LINUX
    if psutil.MACOS:
        return OSType.MAC
    if psutil.WINDOWS:
        return OSType.WINDOWS
    return OSType.UNKNOWN


def set_current(os_type: OSType) -> None:
    """Test hook: make :meth:`OSType.current` return *os_type*."""
    global _override
    _override = os_type


def reset() -> None:
    """Return :meth:`OSType.current` to real detection."""
    global _override
    _override = None
