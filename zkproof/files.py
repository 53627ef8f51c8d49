# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import json
import os
import tempfile

from pathlib import Path
from typing import Any


def save_string(path: str | Path, string: str) -> None:
    """
    Write text to `path` as UTF-8, creating missing parent directories.
    An existing file is overwritten.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(string, encoding="utf-8")


def save_json(path: str | Path, data: Any) -> None:
    """
    Write `data` as indented JSON with sorted keys.

    Raises:
        TypeError: If `data` is not JSON serializable.
        OSError: If the file cannot be written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)


def load_json(path: str | Path) -> Any:
    """
    Parse a JSON file such as gnark's vk.json or a pallet submission.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the content is not JSON.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def load_string(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8").strip()


def load_bytes(path: str | Path) -> bytes:
    return Path(path).read_bytes()


def write_temporary(directory: str | Path, data: bytes) -> Path:
    """
    Write bytes to a fresh, fully flushed file inside `directory`.

    The file is synced to disk before this returns, so publishing it with
    `os.link` or `os.replace` never exposes a partially written file.

    Args:
        directory: Directory that will hold the temporary file.
        data: Content to write.

    Returns:
        Path of the temporary file. The caller owns it and must remove it.

    Raises:
        OSError: If the file cannot be created or written.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    fd, name = tempfile.mkstemp(dir=directory, prefix=".tmp-")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
    except OSError:
        Path(name).unlink(missing_ok=True)
        raise
    return Path(name)
