from __future__ import annotations

"""
ModuleProvider: catalog + prefs-backed records + lifecycle events.

This is the single public API for reading module state and applying user
toggles. It ensures:
- every known module has a record once the provider has started
- hidden modules never show up in listings
- the effective state always comes from the pure resolver
- every mutation is persisted through the injected PrefsStore, then announced
  on the event bus
"""

import logging
from typing import Any, Dict, List, Optional, Set

from mediamodules.core.config.keys import (
    KEY_EME_ENABLED,
    KEY_LOGGING_DUMP,
    KEY_PLUGIN_AUTOUPDATE,
    KEY_PLUGIN_ENABLED,
    KEY_PLUGIN_HIDDEN,
    KEY_PLUGIN_LAST_UPDATE,
    KEY_PLUGIN_VERSION,
    KEY_PROVIDER_LASTCHECK,
    PLUGIN_KEYS,
    pref_key,
)
from mediamodules.core.config.models import ProviderSettings
from mediamodules.core.errors import ActionUnavailable, ProviderNotStarted
from mediamodules.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from mediamodules.core.events.redaction import redact_module_payload
from mediamodules.core.logger import configure_from_prefs
from mediamodules.core.modules.catalog import ModuleCatalog
from mediamodules.core.modules.models import (
    GlobalSwitch,
    ModuleAction,
    ModuleRecord,
    ModuleView,
    Resolution,
)
from mediamodules.core.modules.resolver import available_actions, build_view, effective_state


logger = logging.getLogger("mediamodules.provider")

LOGGING_PREFS_PREFIX = KEY_LOGGING_DUMP.rsplit(".", 1)[0] + "."

# record defaults for a module that has never been seen
PLUGIN_DEFAULTS: Dict[str, Any] = {
    KEY_PLUGIN_ENABLED: False,
    KEY_PLUGIN_HIDDEN: False,
    KEY_PLUGIN_VERSION: "",
    KEY_PLUGIN_LAST_UPDATE: 0,
    KEY_PLUGIN_AUTOUPDATE: False,
}


class ModuleProvider:
    def __init__(
        self,
        *,
        prefs: Any,
        catalog: Optional[ModuleCatalog] = None,
        event_bus: Any = None,
        log_dir: Optional[str] = None,
    ):
        self.prefs = prefs
        self.catalog = catalog or ModuleCatalog()
        self.event_bus = event_bus
        self.log_dir = log_dir
        self._started = False
        self._hidden: Set[str] = set()

    # ---- lifecycle ----
    def startup(self) -> None:
        if self._started:
            return
        configure_from_prefs(self.prefs, log_dir=self.log_dir)
        self.prefs.add_observer(LOGGING_PREFS_PREFIX, self._on_logging_pref_changed)
        self._seed_defaults()
        # Hidden state is fixed for the lifetime of this startup.
        self._hidden = {mid for mid in self.catalog.ids() if self.prefs.get_bool(pref_key(KEY_PLUGIN_HIDDEN, mid), False)}
        self._started = True
        logger.info("Module provider started: %d module(s), %d hidden", len(self.catalog), len(self._hidden))
        self._emit("provider.started", {"count": len(self.catalog)})

    def shutdown(self) -> None:
        if not self._started:
            return
        self.prefs.remove_observer(self._on_logging_pref_changed)
        self._hidden = set()
        self._started = False
        logger.info("Module provider shut down")
        self._emit("provider.stopped", {})

    def restart(self) -> None:
        self.shutdown()
        self.startup()

    @property
    def started(self) -> bool:
        return self._started

    # ---- reads ----
    def settings(self) -> ProviderSettings:
        return ProviderSettings.from_prefs(self.prefs)

    def global_switch(self) -> GlobalSwitch:
        # independent of the logging prefs
        return GlobalSwitch(eme_enabled=self.prefs.get_bool(KEY_EME_ENABLED, True))

    def is_restricted(self, module_id: str) -> bool:
        return self.catalog.is_restricted(module_id)

    def get_record(self, module_id: str) -> ModuleRecord:
        self._require_started()
        entry = self.catalog.get(module_id)
        mid = entry.id
        return ModuleRecord(
            id=mid,
            enabled=self.prefs.get_bool(pref_key(KEY_PLUGIN_ENABLED, mid), False),
            hidden=mid in self._hidden,
            version=self.prefs.get_char(pref_key(KEY_PLUGIN_VERSION, mid), ""),
            last_update_epoch_millis=max(0, self.prefs.get_int(pref_key(KEY_PLUGIN_LAST_UPDATE, mid), 0)),
            auto_update=self.prefs.get_bool(pref_key(KEY_PLUGIN_AUTOUPDATE, mid), False),
        )

    def resolve(self, module_id: str) -> Resolution:
        record = self.get_record(module_id)
        return effective_state(record, self.global_switch(), self.is_restricted)

    def get_module(self, module_id: str) -> Optional[ModuleView]:
        """
        Listing row for one module, or None when the module is hidden.
        """
        record = self.get_record(module_id)
        if record.hidden:
            return None
        return build_view(self.catalog.get(module_id), record, self.global_switch())

    def list_modules(self) -> List[ModuleView]:
        self._require_started()
        switch = self.global_switch()
        out: List[ModuleView] = []
        for entry in self.catalog:
            record = self.get_record(entry.id)
            if record.hidden:
                continue
            out.append(build_view(entry, record, switch))
        return out

    # ---- user toggles ----
    def set_enabled(self, module_id: str, enabled: bool) -> ModuleRecord:
        record = self.get_record(module_id)
        if record.enabled == bool(enabled):
            return record
        self.prefs.set_bool(pref_key(KEY_PLUGIN_ENABLED, record.id), bool(enabled))
        updated = self.get_record(module_id)
        logger.info("Module %s %s", record.id, "enabled" if enabled else "disabled")
        self._emit("module.enabled" if enabled else "module.disabled", {"module_id": record.id, "enabled": bool(enabled)})
        return updated

    def set_auto_update(self, module_id: str, auto_update: bool) -> ModuleRecord:
        record = self.get_record(module_id)
        if record.auto_update == bool(auto_update):
            return record
        self.prefs.set_bool(pref_key(KEY_PLUGIN_AUTOUPDATE, record.id), bool(auto_update))
        self._emit("module.auto_update_changed", {"module_id": record.id, "auto_update": bool(auto_update)})
        return self.get_record(module_id)

    def set_eme_enabled(self, enabled: bool) -> GlobalSwitch:
        previous = self.global_switch().eme_enabled
        self.prefs.set_bool(KEY_EME_ENABLED, bool(enabled))
        if previous != bool(enabled):
            logger.warning("Restricted modules globally %s", "allowed" if enabled else "blocked")
            self._emit(
                "provider.global_switch_changed",
                {"eme_enabled": bool(enabled), "previous": previous},
                severity=EventSeverity.WARN,
            )
        return self.global_switch()

    def show_preferences(self, module_id: str) -> ModuleView:
        """
        Open the preferences view for a module; announces module.options_displayed.
        """
        record = self.get_record(module_id)
        res = effective_state(record, self.global_switch(), self.is_restricted)
        if ModuleAction.PREFERENCES not in available_actions(res, record):
            raise ActionUnavailable(
                "Preferences are not available for this module.",
                module_id=record.id,
                state=res.state.value,
                reason=res.disabled_reason.value,
            )
        self._emit("module.options_displayed", {"module_id": record.id, "action": ModuleAction.PREFERENCES.value})
        return build_view(self.catalog.get(record.id), record, self.global_switch())

    # ---- install bookkeeping (used by ModuleUpdater) ----
    def record_install(self, module_id: str, *, version: str, when_epoch_millis: int) -> ModuleRecord:
        before = self.get_record(module_id)
        self.prefs.set_many(
            {
                pref_key(KEY_PLUGIN_VERSION, before.id): str(version),
                pref_key(KEY_PLUGIN_LAST_UPDATE, before.id): int(when_epoch_millis),
            }
        )
        after = self.get_record(module_id)
        event = "module.updated" if before.installed else "module.installed"
        logger.info("Module %s %s: %r -> %r", after.id, event.split(".", 1)[1], before.version, after.version)
        self._emit(event, {"module_id": after.id, "version": after.version, "previous_version": before.version, "installed": True})
        return after

    def last_check_epoch_seconds(self) -> int:
        return max(0, self.prefs.get_int(KEY_PROVIDER_LASTCHECK, 0))

    def mark_checked(self, epoch_seconds: int) -> None:
        self.prefs.set_int(KEY_PROVIDER_LASTCHECK, int(epoch_seconds))

    # ---- helpers ----
    def _seed_defaults(self) -> None:
        if getattr(self.prefs, "read_only", False):
            return
        defaults: Dict[str, Any] = {}
        for mid in self.catalog.ids():
            for template in PLUGIN_KEYS:
                key = pref_key(template, mid)
                if not self.prefs.has_user_value(key):
                    defaults[key] = PLUGIN_DEFAULTS[template]
        if defaults:
            self.prefs.set_many(defaults)
            logger.debug("Seeded %d default module pref(s)", len(defaults))

    def _require_started(self) -> None:
        if not self._started:
            raise ProviderNotStarted()

    def _on_logging_pref_changed(self, key: str) -> None:
        configure_from_prefs(self.prefs, log_dir=self.log_dir)
        logger.debug("Logging reconfigured after %s changed", key)

    def _emit(self, event_type: str, payload: Dict[str, Any], *, severity: EventSeverity = EventSeverity.INFO) -> None:
        if self.event_bus is None:
            return
        self.event_bus.publish_nowait(
            BaseEvent(
                event_type=event_type,
                source_subsystem=SourceSubsystem.provider,
                severity=severity,
                payload=redact_module_payload(payload),
            )
        )
