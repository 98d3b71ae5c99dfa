from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from mediamodules.core.events.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class MediaModulesError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return f"{self.code}: {self.user_message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


class ConfigError(MediaModulesError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class InvalidRecord(MediaModulesError):
    """Raised for a module id that is not part of the catalog."""

    def __init__(self, user_message: str = "Unknown module.", **ctx: Any):
        super().__init__("invalid_record", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class InstallFailed(MediaModulesError):
    """The install manager rejected an install; the module record was not touched."""

    def __init__(self, user_message: str = "Module install failed.", **ctx: Any):
        super().__init__("install_failed", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)


class ActionUnavailable(MediaModulesError):
    def __init__(self, user_message: str = "Action not available for this module.", **ctx: Any):
        super().__init__("action_unavailable", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class ProviderNotStarted(MediaModulesError):
    def __init__(self, user_message: str = "Module provider is not running.", **ctx: Any):
        super().__init__("provider_not_started", user_message, severity=Severity.ERROR, recoverable=True, context=ctx)
