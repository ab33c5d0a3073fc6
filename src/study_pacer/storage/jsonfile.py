"""JSON document helpers (fcntl.flock + atomic write)."""

import fcntl
import json
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from study_pacer.errors import PersistenceError

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def validate_user_id(user_id: str) -> str:
    if not _USER_ID_PATTERN.match(user_id):
        raise ValueError(f"Invalid user id: {user_id!r}")
    return user_id


def user_dir(root: Path, user_id: str) -> Path:
    d = root / validate_user_id(user_id)
    d.mkdir(parents=True, exist_ok=True)
    return d


@contextmanager
def locked(path: Path) -> Iterator[None]:
    """Hold an exclusive lock for a read-modify-write of ``path``."""
    lock_path = path.with_name(path.name + ".lock")
    try:
        lock_file = open(lock_path, "w")
    except OSError as e:
        raise PersistenceError(f"Cannot lock {path.name}: {e}") from e
    with lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        yield


def read_json(path: Path) -> dict | None:
    """Read a JSON document. Returns None only when the file does not exist."""
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PersistenceError(f"Failed to read {path.name}: {e}") from e


def write_json(path: Path, data: dict) -> None:
    """Write via a temp file and os.replace so readers never see a partial file."""
    try:
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, indent=2, default=str)
        os.replace(tmp.name, path)
    except OSError as e:
        raise PersistenceError(f"Failed to write {path.name}: {e}") from e
