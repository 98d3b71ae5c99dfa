"""
Internal event bus for module lifecycle notifications.
"""

from mediamodules.core.events.bus import EventBus
from mediamodules.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from mediamodules.core.events.redaction import redact, redact_module_payload

__all__ = [
    "EventBus",
    "BaseEvent",
    "EventSeverity",
    "SourceSubsystem",
    "redact",
    "redact_module_payload",
]
