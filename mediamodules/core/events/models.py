from __future__ import annotations

import json
import re
import time
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediamodules.core.events.redaction import redact


# "<area>.<name>", e.g. module.installed, update.check_failed
_EVENT_TYPE_RE = re.compile(r"^[a-z][a-z0-9_-]*(\.[a-z0-9_*-]+)+$")


class EventSeverity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class SourceSubsystem(str, Enum):
    provider = "provider"
    updater = "updater"
    prefs = "prefs"


class BaseEvent(BaseModel):
    """
    One lifecycle notification. Immutable once built; the payload is redacted
    and must survive a JSON round trip so it can be written to logs as is.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    event_type: str
    timestamp: float = Field(default_factory=time.time)
    source_subsystem: SourceSubsystem
    severity: EventSeverity = EventSeverity.INFO
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("event_type")
    @classmethod
    def _dotted_type(cls, v: str) -> str:
        v = str(v or "").strip()
        if not _EVENT_TYPE_RE.match(v):
            raise ValueError("event_type must look like '<area>.<name>'")
        return v

    @field_validator("payload")
    @classmethod
    def _jsonable_and_redacted(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        safe = redact(v)
        try:
            json.dumps(safe, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise ValueError("payload must be JSON-serializable") from e
        return safe

    @property
    def module_id(self) -> Optional[str]:
        mid = self.payload.get("module_id")
        return str(mid) if mid else None
