"""
Installable media module provider: catalog, state resolution and updates.

Effective module state is always computed by the pure resolver from a record
snapshot and the global restricted-content switch; the provider and updater
only read and write prefs around it.
"""

from mediamodules.core.modules.catalog import ModuleCatalog, is_restricted
from mediamodules.core.modules.models import (
    AddonDescriptor,
    CatalogEntry,
    DisabledReason,
    EffectiveState,
    GlobalSwitch,
    ModuleAction,
    ModuleRecord,
    ModuleView,
    Resolution,
)
from mediamodules.core.modules.provider import ModuleProvider
from mediamodules.core.modules.resolver import available_actions, build_view, effective_state
from mediamodules.core.modules.updater import InstallManager, ModuleUpdater

__all__ = [
    "AddonDescriptor",
    "CatalogEntry",
    "DisabledReason",
    "EffectiveState",
    "GlobalSwitch",
    "InstallManager",
    "ModuleAction",
    "ModuleCatalog",
    "ModuleProvider",
    "ModuleRecord",
    "ModuleUpdater",
    "ModuleView",
    "Resolution",
    "available_actions",
    "build_view",
    "effective_state",
    "is_restricted",
]
