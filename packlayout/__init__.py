"""packlayout - Bit-exact layout analysis for packed binary structs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("packlayout")
except PackageNotFoundError:
    __version__ = "(local)"
