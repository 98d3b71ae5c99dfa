from __future__ import annotations

"""
PrefsStore: typed key/value preference store.

This is the configuration provider handed to the module provider and updater.
There is no process-wide instance: callers construct one (optionally backed by
a JSON file) and pass it by reference. Every write is persisted atomically
before observers are notified.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, ValidationError

from mediamodules.core.config.io import MISSING, load_object, move_aside, write_atomic
from mediamodules.core.errors import ConfigError


logger = logging.getLogger("mediamodules.prefs")

PrefValue = Union[StrictBool, StrictInt, StrictStr]
PrefObserver = Callable[[str], None]


class PrefsFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    schema_version: int = Field(default=1, ge=1, le=10)
    prefs: Dict[str, PrefValue] = Field(default_factory=dict)


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, str):
        return "char"
    return type(value).__name__


class PrefsStore:
    def __init__(
        self,
        *,
        path: Optional[str] = None,
        backups_dir: Optional[str] = None,
        read_only: bool = False,
        max_backups: int = 10,
        initial: Optional[Mapping[str, Any]] = None,
    ):
        self.path = path
        self.backups_dir = backups_dir
        self.read_only = bool(read_only)
        self.max_backups = int(max_backups)
        self._lock = threading.RLock()
        self._values: Dict[str, Any] = {}
        self._observers: List[Tuple[str, PrefObserver]] = []
        self.reload()
        if initial:
            # in-memory seed; applies to read-only stores too
            try:
                seeded = PrefsFile(prefs=dict(initial)).prefs
            except ValidationError as e:
                raise ConfigError("Initial prefs invalid.", error=str(e)[:300]) from e
            self._values.update(seeded)

    # ---- reads ----
    def get_bool(self, key: str, default: bool = False) -> bool:
        return self._get_typed(key, default, "bool")

    def get_int(self, key: str, default: int = 0) -> int:
        return self._get_typed(key, default, "int")

    def get_char(self, key: str, default: str = "") -> str:
        return self._get_typed(key, default, "char")

    def has_user_value(self, key: str) -> bool:
        with self._lock:
            return key in self._values

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(k for k in self._values if k.startswith(prefix))

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._values)

    # ---- writes ----
    def set_bool(self, key: str, value: bool) -> None:
        self._check_type(key, value, "bool")
        self.set_many({key: value})

    def set_int(self, key: str, value: int) -> None:
        self._check_type(key, value, "int")
        self.set_many({key: value})

    def set_char(self, key: str, value: str) -> None:
        self._check_type(key, value, "char")
        self.set_many({key: value})

    def set_many(self, values: Dict[str, Any]) -> None:
        """
        Write several prefs as one unit: either all values land (and are
        persisted) or none do.
        """
        for k, v in values.items():
            if not k:
                raise ConfigError("Pref key required.")
            if _type_name(v) not in {"bool", "int", "char"}:
                raise ConfigError("Unsupported pref value type.", key=k, type=_type_name(v))
        changed: List[str] = []
        with self._lock:
            self._ensure_writable()
            for k, v in values.items():
                cur = self._values.get(k)
                if k in self._values and _type_name(cur) != _type_name(v):
                    raise ConfigError("Pref type mismatch.", key=k, stored=_type_name(cur), given=_type_name(v))
            updated = dict(self._values)
            for k, v in values.items():
                if k not in self._values or self._values[k] != v:
                    changed.append(k)
                updated[k] = v
            if changed:
                self._persist(updated)
                self._values = updated
        for k in changed:
            self._notify(k)

    def clear_user_pref(self, key: str) -> None:
        with self._lock:
            self._ensure_writable()
            if key not in self._values:
                return
            updated = dict(self._values)
            del updated[key]
            self._persist(updated)
            self._values = updated
        self._notify(key)

    def reload(self) -> None:
        if not self.path:
            return
        rr = load_object(self.path)
        if not rr.ok:
            if rr.error == MISSING:
                with self._lock:
                    self._values = {}
                return
            if rr.corrupt and self.backups_dir:
                moved = move_aside(self.path, self.backups_dir)
                logger.warning("Corrupt prefs file moved aside to %s; starting empty.", moved)
                with self._lock:
                    self._values = {}
                return
            raise ConfigError("Prefs file unreadable.", path=self.path, error=str(rr.error))
        try:
            parsed = PrefsFile.model_validate(rr.data)
        except ValidationError as e:
            raise ConfigError("Prefs file invalid.", path=self.path, error=str(e)[:300]) from e
        with self._lock:
            self._values = dict(parsed.prefs)

    # ---- observers ----
    def add_observer(self, prefix: str, fn: PrefObserver) -> None:
        with self._lock:
            self._observers.append((str(prefix), fn))

    def remove_observer(self, fn: PrefObserver) -> None:
        with self._lock:
            self._observers = [(p, f) for p, f in self._observers if f != fn]

    # ---- internals ----
    def _get_typed(self, key: str, default: Any, expected: str) -> Any:
        with self._lock:
            if key not in self._values:
                return default
            value = self._values[key]
        if _type_name(value) != expected:
            raise ConfigError("Pref has unexpected type.", key=key, expected=expected, stored=_type_name(value))
        return value

    @staticmethod
    def _check_type(key: str, value: Any, expected: str) -> None:
        if _type_name(value) != expected:
            raise ConfigError("Pref value has wrong type.", key=key, expected=expected, given=_type_name(value))

    def _ensure_writable(self) -> None:
        if self.read_only:
            raise ConfigError("Prefs store is read-only.")

    def _persist(self, values: Dict[str, Any]) -> None:
        if not self.path:
            return
        payload = PrefsFile(prefs=values).model_dump()
        write_atomic(self.path, payload, backups_dir=self.backups_dir, keep=self.max_backups)

    def _notify(self, key: str) -> None:
        with self._lock:
            observers = [fn for prefix, fn in self._observers if key.startswith(prefix)]
        for fn in observers:
            try:
                fn(key)
            except Exception as e:  # noqa: BLE001
                logger.warning("Pref observer failed for %s: %s", key, e)
