from __future__ import annotations

"""
Atomic JSON snapshot persistence for the file-backed directory.

- Atomic write (temp file + os.replace) with directory fsync
- Rolling backups (.bak1, .bak2, ...) rotated before each save
- Load fallback: primary -> bak1 -> bak2 -> ...

Values in the directory are bytes; on disk they are kept base64-encoded
inside one JSON object so a snapshot stays a single readable document.
"""

import base64
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

log = logging.getLogger(__name__)

JsonDict = Dict[str, Any]
PathLike = Union[str, Path]


def _fsync_dir(dir_path: Path) -> None:
    try:
        fd = os.open(str(dir_path), os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        os.replace(str(tmp_path), str(path))
        _fsync_dir(path.parent)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def read_json(path: Path) -> Optional[JsonDict]:
    if not path.exists():
        return None
    try:
        obj = json.loads(path.read_bytes().decode("utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        log.warning("unreadable snapshot %s", path)
        return None
    return obj if isinstance(obj, dict) else None


def _rotate_backups(path: Path, keep: int) -> None:
    if keep <= 0:
        return

    # move .bak(N-1) -> .bakN
    for i in range(keep, 1, -1):
        src = path.with_suffix(path.suffix + f".bak{i-1}")
        dst = path.with_suffix(path.suffix + f".bak{i}")
        if src.exists():
            os.replace(str(src), str(dst))

    if path.exists():
        os.replace(str(path), str(path.with_suffix(path.suffix + ".bak1")))


class AtomicStore:
    """Snapshot store for a flat key -> bytes mapping."""

    def __init__(self, path: PathLike, *, keep_backups: int = 2) -> None:
        self.path = Path(path)
        self.keep_backups = int(keep_backups)

    def load(self) -> Dict[str, bytes]:
        paths = [self.path]
        for i in range(1, max(1, self.keep_backups) + 1):
            paths.append(self.path.with_suffix(self.path.suffix + f".bak{i}"))

        for p in paths:
            obj = read_json(p)
            if obj is None:
                continue
            entries = obj.get("entries", {})
            if not isinstance(entries, dict):
                continue
            try:
                return {str(k): base64.b64decode(v) for k, v in entries.items()}
            except (TypeError, ValueError):
                log.warning("corrupt entries in snapshot %s", p)
                continue

        return {}

    def save(self, entries: Dict[str, bytes]) -> None:
        doc = {
            "version": 1,
            "entries": {k: base64.b64encode(v).decode("ascii") for k, v in entries.items()},
        }
        data = json.dumps(doc, sort_keys=True, separators=(",", ":")).encode("utf-8")

        _rotate_backups(self.path, keep=self.keep_backups)
        atomic_write_bytes(self.path, data)
