from __future__ import annotations

"""
File helpers for the prefs store.

Writes go through a temp file in the target directory and os.replace, so a
reader only ever sees the old or the new prefs file. The previous file is
copied into the backups directory first; the newest `keep` copies survive.
"""

import json
import os
import shutil
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


MISSING = "missing"
NOT_OBJECT = "not_object"
CORRUPT_PREFIX = "corrupt_json"


@dataclass(frozen=True)
class LoadResult:
    ok: bool
    data: Dict[str, Any]
    error: Optional[str] = None

    @property
    def corrupt(self) -> bool:
        return bool(self.error) and str(self.error).startswith(CORRUPT_PREFIX)


def _stamp() -> str:
    return time.strftime("%Y%m%dT%H%M%SZ", time.gmtime())


def load_object(path: str) -> LoadResult:
    """
    Read a JSON object from `path`. Never raises for a bad file; the reason
    is reported in `error` (missing, not_object, corrupt_json:<detail>, or the
    OS error text).
    """
    if not os.path.exists(path):
        return LoadResult(ok=False, data={}, error=MISSING)
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except json.JSONDecodeError as e:
        return LoadResult(ok=False, data={}, error=f"{CORRUPT_PREFIX}:{e.msg} at line {e.lineno}")
    except OSError as e:
        return LoadResult(ok=False, data={}, error=str(e))
    if not isinstance(obj, dict):
        return LoadResult(ok=False, data={}, error=NOT_OBJECT)
    return LoadResult(ok=True, data=obj)


def list_backups(path: str, backups_dir: str) -> List[str]:
    """Backups of `path`, newest first."""
    if not backups_dir or not os.path.isdir(backups_dir):
        return []
    prefix = os.path.basename(path) + "."
    found = [os.path.join(backups_dir, n) for n in os.listdir(backups_dir) if n.startswith(prefix)]
    found.sort(key=os.path.getmtime, reverse=True)
    return found


def _copy_to_backups(path: str, backups_dir: str, *, tag: str, keep: int) -> Optional[str]:
    if not os.path.exists(path):
        return None
    os.makedirs(backups_dir, exist_ok=True)
    base = os.path.basename(path)
    stamp = _stamp()
    seq = 0
    # several writes can land in the same second
    while os.path.exists(os.path.join(backups_dir, f"{base}.{stamp}.{seq}.{tag}.json")):
        seq += 1
    dst = os.path.join(backups_dir, f"{base}.{stamp}.{seq}.{tag}.json")
    shutil.copy2(path, dst)
    for old in list_backups(path, backups_dir)[keep:]:
        try:
            os.remove(old)
        except OSError:
            pass
    return dst


def write_atomic(path: str, data: Dict[str, Any], *, backups_dir: Optional[str] = None, keep: int = 10) -> None:
    target_dir = os.path.dirname(path) or "."
    os.makedirs(target_dir, exist_ok=True)
    if backups_dir and keep > 0:
        _copy_to_backups(path, backups_dir, tag="prewrite", keep=keep)
    fd, tmp = tempfile.mkstemp(prefix=".prefs_", suffix=".tmp", dir=target_dir)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, sort_keys=True)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            try:
                os.remove(tmp)
            except OSError:
                pass


def move_aside(path: str, backups_dir: str) -> Optional[str]:
    """
    Move an unreadable file to backups/<name>.<stamp>.corrupt.json.
    Returns the new location, or None when there was nothing to move.
    """
    if not os.path.exists(path):
        return None
    os.makedirs(backups_dir, exist_ok=True)
    dst = os.path.join(backups_dir, f"{os.path.basename(path)}.{_stamp()}.corrupt.json")
    shutil.move(path, dst)
    return dst
