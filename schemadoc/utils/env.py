"""``.env`` support for the ``SCHEMADOC_*`` settings read by :mod:`schemadoc.utils.config`."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

__all__ = ["load_env"]


# Path read by the first call; "" when no file was found.
_env_file: Optional[str] = None


def load_env(*, dotenv_path: Optional[str | Path] = None) -> Optional[str]:
    """Read ``.env`` on the first call only and return its path.

    Without *dotenv_path* the file is searched from the working directory
    upwards. Later calls return ``None``. Variables already set in the
    process are never overwritten.
    """

    global _env_file
    if _env_file is not None:
        return None

    path = str(dotenv_path) if dotenv_path is not None else find_dotenv(usecwd=True)
    _env_file = path
    if path:
        load_dotenv(path, override=False)
    return path
