# src/natcal/__init__.py
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("natcal")
except PackageNotFoundError:
    __version__ = "0.0.0"

from natcal.item import UpsertRecord, compose, parse, render  # noqa: E402

__all__ = ["UpsertRecord", "compose", "parse", "render", "__version__"]
