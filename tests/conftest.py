from __future__ import annotations

import logging

import pytest

from mediamodules.core.config.keys import (
    KEY_EME_ENABLED,
    KEY_PLUGIN_AUTOUPDATE,
    KEY_PLUGIN_ENABLED,
    KEY_PLUGIN_HIDDEN,
    KEY_PLUGIN_LAST_UPDATE,
    KEY_PLUGIN_VERSION,
    pref_key,
)
from mediamodules.core.config.paths import ConfigFsPaths
from mediamodules.core.config.prefs import PrefsStore
from mediamodules.core.events.bus import EventBus
from mediamodules.core.logger import LOGGER_NAME
from mediamodules.core.modules.catalog import ModuleCatalog
from mediamodules.core.modules.provider import ModuleProvider

from tests.helpers.fakes import EventCapture, FakeClock


@pytest.fixture
def tmp_config_root(tmp_path):
    """
    Provides an isolated root with config/ under tmp_path.
    """
    return ConfigFsPaths(root=str(tmp_path)).ensure()


@pytest.fixture
def prefs(tmp_config_root):
    return PrefsStore(path=tmp_config_root.prefs, backups_dir=tmp_config_root.backups_dir)


@pytest.fixture
def catalog():
    return ModuleCatalog()


@pytest.fixture
def captured():
    return EventCapture()


@pytest.fixture
def event_bus(captured):
    bus = EventBus()
    bus.subscribe("*", captured)
    return bus


@pytest.fixture
def provider(prefs, catalog, event_bus):
    """
    Started provider with every module not installed, disabled, auto updates
    off and the global switch on.
    """
    prefs.set_bool(KEY_EME_ENABLED, True)
    for mid in catalog.ids():
        prefs.set_many(
            {
                pref_key(KEY_PLUGIN_ENABLED, mid): False,
                pref_key(KEY_PLUGIN_LAST_UPDATE, mid): 0,
                pref_key(KEY_PLUGIN_AUTOUPDATE, mid): False,
                pref_key(KEY_PLUGIN_VERSION, mid): "",
                pref_key(KEY_PLUGIN_HIDDEN, mid): False,
            }
        )
    p = ModuleProvider(prefs=prefs, catalog=catalog, event_bus=event_bus)
    p.startup()
    yield p
    p.shutdown()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """
    setup_logging mutates the shared package logger; undo it per test.
    """
    lg = logging.getLogger(LOGGER_NAME)
    saved_handlers, saved_level, saved_propagate = list(lg.handlers), lg.level, lg.propagate
    yield
    for h in list(lg.handlers):
        if h not in saved_handlers:
            lg.removeHandler(h)
            h.close()
    lg.setLevel(saved_level)
    lg.propagate = saved_propagate
