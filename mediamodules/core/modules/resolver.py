from __future__ import annotations

"""
Module state resolver.

Pure functions only: given a record snapshot, the global switch and a
restricted predicate, decide the effective state and which actions apply.
No prefs access, no logging, no events.
"""

from typing import Callable, FrozenSet

from mediamodules.core.modules.models import (
    CatalogEntry,
    DisabledReason,
    EffectiveState,
    GlobalSwitch,
    ModuleAction,
    ModuleRecord,
    ModuleView,
    Resolution,
)


RestrictedPredicate = Callable[[str], bool]


def effective_state(record: ModuleRecord, global_switch: GlobalSwitch, is_restricted: RestrictedPredicate) -> Resolution:
    if record.hidden:
        return Resolution(state=EffectiveState.ABSENT, disabled_reason=DisabledReason.HIDDEN)
    if is_restricted(record.id) and not global_switch.eme_enabled:
        return Resolution(state=EffectiveState.NEVER_ACTIVATE, disabled_reason=DisabledReason.DISABLED_BY_POLICY)
    if not record.installed:
        return Resolution(state=EffectiveState.NEVER_ACTIVATE, disabled_reason=DisabledReason.NOT_INSTALLED)
    if not record.enabled:
        return Resolution(state=EffectiveState.NEVER_ACTIVATE, disabled_reason=DisabledReason.DISABLED_BY_USER)
    return Resolution(state=EffectiveState.ALWAYS_ACTIVATE)


def available_actions(resolution: Resolution, record: ModuleRecord) -> FrozenSet[ModuleAction]:
    # Enable/disable are never offered: activation follows install state and policy.
    if resolution.state == EffectiveState.ABSENT:
        return frozenset()
    if resolution.state == EffectiveState.NEVER_ACTIVATE:
        if record.installed:
            return frozenset({ModuleAction.FIND_UPDATES, ModuleAction.PREFERENCES})
        return frozenset({ModuleAction.FIND_UPDATES})
    return frozenset({ModuleAction.FIND_UPDATES, ModuleAction.PREFERENCES})


def build_view(entry: CatalogEntry, record: ModuleRecord, global_switch: GlobalSwitch) -> ModuleView:
    """
    Listing row for one module.

    The install warning is only shown when the module is missing and the user
    can act on it; a module blocked by the global switch shows the disabled
    postfix without the install warning.
    """
    res = effective_state(record, global_switch, lambda _mid: entry.restricted)
    actions = available_actions(res, record)
    return ModuleView(
        module_id=record.id,
        name=entry.name,
        description=entry.description,
        state=res.state,
        active=res.active,
        disabled_reason=res.disabled_reason,
        disabled_by_policy=res.disabled_by_policy,
        show_warning=res.disabled_reason == DisabledReason.NOT_INSTALLED,
        show_disabled_postfix=res.state == EffectiveState.NEVER_ACTIVATE,
        actions=sorted(actions, key=lambda a: a.value),
        version=record.version,
        update_date_epoch_millis=record.last_update_epoch_millis,
        auto_update=record.auto_update,
    )
