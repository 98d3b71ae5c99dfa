from __future__ import annotations

"""
Preference keys read and written by the module provider.

Per-module keys are templates; `{0}` is replaced with the module id.
"""

KEY_LOGGING_DUMP = "media.gmp-provider.logging.dump"
KEY_LOGGING_LEVEL = "media.gmp-provider.logging.level"

KEY_EME_ENABLED = "media.eme.enabled"
KEY_PROVIDER_LASTCHECK = "media.gmp-manager.lastCheck"

KEY_PLUGIN_ENABLED = "media.{0}.enabled"
KEY_PLUGIN_HIDDEN = "media.{0}.hidden"
KEY_PLUGIN_VERSION = "media.{0}.version"
KEY_PLUGIN_LAST_UPDATE = "media.{0}.lastUpdate"
KEY_PLUGIN_AUTOUPDATE = "media.{0}.autoupdate"

PLUGIN_KEYS = (
    KEY_PLUGIN_ENABLED,
    KEY_PLUGIN_HIDDEN,
    KEY_PLUGIN_VERSION,
    KEY_PLUGIN_LAST_UPDATE,
    KEY_PLUGIN_AUTOUPDATE,
)


def pref_key(template: str, module_id: str) -> str:
    if "{0}" not in template:
        raise ValueError(f"not a per-module key template: {template}")
    if not module_id:
        raise ValueError("module_id required")
    return template.replace("{0}", str(module_id))
