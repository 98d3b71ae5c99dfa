from __future__ import annotations

"""
Module provider models (catalog entries, persisted records, resolved state).

Records are immutable snapshots: the provider re-reads the prefs store after
every mutation rather than editing a record in place.
"""

import re
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


RESTRICTED_PREFIX = "gmp-eme-"

_MODULE_ID_RE = re.compile(r"[a-zA-Z0-9][a-zA-Z0-9._-]{0,127}")


def _check_module_id(v: str) -> str:
    v = str(v or "").strip()
    if not v:
        raise ValueError("module id required")
    if not _MODULE_ID_RE.fullmatch(v):
        raise ValueError("module id contains invalid characters")
    return v


class EffectiveState(str, Enum):
    ABSENT = "ABSENT"
    NEVER_ACTIVATE = "NEVER_ACTIVATE"
    ALWAYS_ACTIVATE = "ALWAYS_ACTIVATE"


class DisabledReason(str, Enum):
    NONE = "NONE"
    HIDDEN = "HIDDEN"
    NOT_INSTALLED = "NOT_INSTALLED"
    DISABLED_BY_USER = "DISABLED_BY_USER"
    DISABLED_BY_POLICY = "DISABLED_BY_POLICY"


class ModuleAction(str, Enum):
    FIND_UPDATES = "FIND_UPDATES"
    PREFERENCES = "PREFERENCES"


class CatalogEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(default="", max_length=120)
    description: str = Field(default="", max_length=300)
    homepage_url: str = ""
    license_url: str = ""

    @field_validator("id")
    @classmethod
    def _id_safe(cls, v: str) -> str:
        return _check_module_id(v)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def restricted(self) -> bool:
        return self.id.startswith(RESTRICTED_PREFIX)


class ModuleRecord(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    enabled: bool = False
    hidden: bool = False
    version: str = ""
    last_update_epoch_millis: int = Field(default=0, ge=0)
    auto_update: bool = False

    @field_validator("id")
    @classmethod
    def _id_safe(cls, v: str) -> str:
        return _check_module_id(v)

    @field_validator("version", mode="before")
    @classmethod
    def _norm_version(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def installed(self) -> bool:
        return self.version != ""


class GlobalSwitch(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    eme_enabled: bool = True


class Resolution(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    state: EffectiveState
    disabled_reason: DisabledReason = DisabledReason.NONE

    @property
    def disabled_by_policy(self) -> bool:
        return self.disabled_reason == DisabledReason.DISABLED_BY_POLICY

    @property
    def active(self) -> bool:
        return self.state == EffectiveState.ALWAYS_ACTIVATE


class ModuleView(BaseModel):
    """
    Presentation-neutral listing row. Safe to render in CLI output or logs.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    module_id: str
    name: str = ""
    description: str = ""
    state: EffectiveState
    active: bool = False
    disabled_reason: DisabledReason = DisabledReason.NONE
    disabled_by_policy: bool = False
    show_warning: bool = False
    show_disabled_postfix: bool = False
    actions: List[ModuleAction] = Field(default_factory=list)
    version: str = ""
    update_date_epoch_millis: int = 0
    auto_update: bool = False


class AddonDescriptor(BaseModel):
    """
    Install candidate produced by an install manager's check_for_addons().
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    version: str = ""
    is_valid: bool = True
    is_installed: bool = False
