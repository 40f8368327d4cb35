"""Crash-safe file writes.

Each write goes to a temp file in the target directory, is fsynced, then
replaces the target with ``os.replace``. A reader never sees a half-written
file. Separate files are still written independently.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


def atomic_write_text(path: Path, content: str, encoding: str = "utf-8") -> Path:
    """Write ``content`` to ``path`` atomically, creating parent directories.

    Args:
        path: Target file
        content: Text to write
        encoding: Text encoding

    Returns:
        The target path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = None
    success = False

    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.stem}_",
            suffix=".tmp",
            delete=False,
            encoding=encoding,
            newline="\n",
        ) as tmp_file:
            tmp_path = tmp_file.name
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())

        os.replace(tmp_path, path)
        success = True

    finally:
        # Remove the temp file if the replace did not happen
        if tmp_path and not success:
            try:
                os.unlink(tmp_path)
            except (FileNotFoundError, OSError):
                pass

    return path


def atomic_write_json(path: Path, data: Any) -> Path:
    """Serialize ``data`` as indented JSON and write it atomically."""
    return atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
