from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediamodules.core.config.keys import (
    KEY_EME_ENABLED,
    KEY_LOGGING_DUMP,
    KEY_LOGGING_LEVEL,
    KEY_PROVIDER_LASTCHECK,
)


class ProviderSettings(BaseModel):
    """
    Snapshot of the provider-wide prefs. Per-module prefs live in ModuleRecord.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    eme_enabled: bool = True
    provider_last_check: int = Field(default=0, ge=0)  # epoch seconds
    logging_dump: bool = False
    logging_level: int = Field(default=logging.WARNING, ge=0, le=logging.CRITICAL)

    @field_validator("logging_level", mode="before")
    @classmethod
    def _clamp_level(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return max(0, min(int(v), logging.CRITICAL))
        return v

    @classmethod
    def from_prefs(cls, prefs: Any) -> "ProviderSettings":
        defaults = cls()
        return cls(
            eme_enabled=prefs.get_bool(KEY_EME_ENABLED, defaults.eme_enabled),
            provider_last_check=max(0, prefs.get_int(KEY_PROVIDER_LASTCHECK, 0)),
            logging_dump=prefs.get_bool(KEY_LOGGING_DUMP, defaults.logging_dump),
            logging_level=prefs.get_int(KEY_LOGGING_LEVEL, defaults.logging_level),
        )
