"""Version information for the inidict package."""

from importlib import metadata as _md

try:
    __version__ = _md.version("inidict")
except _md.PackageNotFoundError:
    __version__ = "unknown"
