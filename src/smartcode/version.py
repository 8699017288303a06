"""Version lookup for smartcode.

The installed distribution's metadata wins; a source checkout that was never
installed falls back to the ``VERSION`` file bundled in the package.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import metadata, resources


DISTRIBUTION = "smart-code-search"


def _bundled_version() -> str:
    try:
        return resources.files("smartcode").joinpath("VERSION").read_text(encoding="utf-8").strip()
    except (FileNotFoundError, ModuleNotFoundError):
        return "0+unknown"


@lru_cache(maxsize=1)
def get_version() -> str:
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return _bundled_version()


__version__ = get_version()
