# fleet_dump/Z_utils/Z02_object_writer.py
"""
Writes named JSON documents to disk.

Each object becomes ``<directory>/<name>.json``, re-indented with two spaces
per level. Only whitespace changes: keys, strings and numbers are written
exactly as they appear in the raw document.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Union

from fleet_dump.A_core.A00_logging import get_logger
from fleet_dump.A_core.A02_exceptions import WriteError
from fleet_dump.Z_utils.Z03_raw_json import indent_raw

logger = get_logger(__name__)


class DumpableInstalledObject(Protocol):
    """Anything with a name and a raw JSON document."""

    @property
    def name(self) -> str: ...

    def json(self) -> Union[bytes, str]: ...


def object_path(directory: Union[str, Path], name: str) -> Path:
    """File path an object named ``name`` is written to."""
    return Path(directory) / f"{name}.json"


def format_json(raw: Union[bytes, str]) -> str:
    """Re-indent a raw JSON document for writing to disk."""
    text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    return indent_raw(text) + "\n"


def dump_installed_object(directory: Union[str, Path], obj: DumpableInstalledObject) -> Path:
    """
    Write one object to ``directory``, creating the directory if needed.

    Args:
        directory: Destination directory.
        obj: Object exposing ``name`` and ``json()``.

    Returns:
        Path of the written file.

    Raises:
        WriteError: If the document is not valid JSON or the file cannot be written.
    """
    path = object_path(directory, obj.name)

    try:
        formatted = format_json(obj.json())
    except ValueError as e:
        raise WriteError(f"Failed to format JSON: {e}", file_path=str(path)) from e

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(formatted, encoding="utf-8")
    except OSError as e:
        raise WriteError(f"Failed to write file: {e}", file_path=str(path)) from e

    logger.debug(f"Wrote {path}")
    return path
