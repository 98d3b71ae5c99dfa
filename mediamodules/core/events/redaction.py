from __future__ import annotations

"""
Redaction helpers for event and error payloads.

Lifecycle events are shaped through an allowlist so install manager
descriptors (which may carry download URLs or hashes) never leak into logs.
"""

from typing import Any, Dict


REDACT_KEYS = {
    "password",
    "secret",
    "token",
    "api_key",
    "authorization",
    "url",
    "hash_value",
}

MODULE_PAYLOAD_ALLOW = {
    "module_id",
    "enabled",
    "hidden",
    "installed",
    "version",
    "previous_version",
    "last_update",
    "auto_update",
    "eme_enabled",
    "previous",
    "state",
    "disabled_by_policy",
    "reason",
    "action",
    "user_requested",
    "installed_count",
    "count",
}


def _redact(obj: Any) -> Any:
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if str(k).lower() in REDACT_KEYS:
                out[k] = "***REDACTED***"
            else:
                out[k] = _redact(v)
        return out
    if isinstance(obj, list):
        return [_redact(x) for x in obj]
    return obj


def redact(obj: Any) -> Any:
    return _redact(obj)


def redact_module_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Keep only safe, non-sensitive fields.
    """
    p = payload or {}
    out: Dict[str, Any] = {}
    for k in MODULE_PAYLOAD_ALLOW:
        if k in p:
            out[k] = p.get(k)
    return out
