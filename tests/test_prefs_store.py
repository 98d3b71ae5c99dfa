from __future__ import annotations

import json
import os

import pytest

from mediamodules.core.config.io import list_backups
from mediamodules.core.config.models import ProviderSettings
from mediamodules.core.config.keys import (
    KEY_EME_ENABLED,
    KEY_LOGGING_LEVEL,
    KEY_PLUGIN_VERSION,
    pref_key,
)
from mediamodules.core.config.prefs import PrefsStore
from mediamodules.core.errors import ConfigError


def test_pref_key_substitutes_module_id():
    assert pref_key(KEY_PLUGIN_VERSION, "gmp-eme-adobe") == "media.gmp-eme-adobe.version"
    with pytest.raises(ValueError):
        pref_key(KEY_EME_ENABLED, "gmp-eme-adobe")
    with pytest.raises(ValueError):
        pref_key(KEY_PLUGIN_VERSION, "")


def test_typed_reads_return_defaults_when_unset():
    store = PrefsStore()
    assert store.get_bool("a.b", True) is True
    assert store.get_int("a.c", 7) == 7
    assert store.get_char("a.d") == ""
    assert store.has_user_value("a.b") is False


def test_type_mismatch_rejected():
    store = PrefsStore()
    store.set_int("x.level", 3)
    with pytest.raises(ConfigError):
        store.get_bool("x.level")
    with pytest.raises(ConfigError):
        store.set_bool("x.level", True)
    with pytest.raises(ConfigError):
        store.set_int("x.other", True)  # bool is not an int pref
    store.clear_user_pref("x.level")
    store.set_bool("x.level", True)
    assert store.get_bool("x.level") is True


def test_values_persist_across_instances(tmp_config_root):
    a = PrefsStore(path=tmp_config_root.prefs, backups_dir=tmp_config_root.backups_dir)
    a.set_char("media.m1.version", "1.2.3.4")
    a.set_bool("media.m1.enabled", True)

    b = PrefsStore(path=tmp_config_root.prefs, backups_dir=tmp_config_root.backups_dir)
    assert b.get_char("media.m1.version") == "1.2.3.4"
    assert b.get_bool("media.m1.enabled") is True

    with open(tmp_config_root.prefs, "r", encoding="utf-8") as f:
        raw = json.load(f)
    assert raw["prefs"]["media.m1.version"] == "1.2.3.4"
    assert os.listdir(tmp_config_root.backups_dir)


def test_set_many_is_all_or_nothing():
    store = PrefsStore(initial={"media.m1.lastUpdate": 0})
    with pytest.raises(ConfigError):
        store.set_many({"media.m1.version": "1.0", "media.m1.lastUpdate": "soon"})
    assert store.has_user_value("media.m1.version") is False
    assert store.get_int("media.m1.lastUpdate") == 0


def test_corrupt_file_moved_aside(tmp_config_root):
    with open(tmp_config_root.prefs, "w", encoding="utf-8") as f:
        f.write("{not json")
    store = PrefsStore(path=tmp_config_root.prefs, backups_dir=tmp_config_root.backups_dir)
    assert store.snapshot() == {}
    assert any(n.endswith(".corrupt.json") for n in os.listdir(tmp_config_root.backups_dir))


def test_invalid_value_types_in_file_rejected(tmp_config_root):
    with open(tmp_config_root.prefs, "w", encoding="utf-8") as f:
        json.dump({"schema_version": 1, "prefs": {"media.m1.version": [1, 2]}}, f)
    with pytest.raises(ConfigError):
        PrefsStore(path=tmp_config_root.prefs, backups_dir=tmp_config_root.backups_dir)


def test_read_only_store_refuses_writes():
    store = PrefsStore(read_only=True, initial={"a": True})
    assert store.get_bool("a") is True
    with pytest.raises(ConfigError):
        store.set_bool("a", True)
    with pytest.raises(ConfigError):
        store.clear_user_pref("a")


def test_observers_fire_for_matching_prefix_only():
    store = PrefsStore()
    seen = []
    store.add_observer("media.gmp-provider.", seen.append)
    store.set_int(KEY_LOGGING_LEVEL, 0)
    store.set_bool(KEY_EME_ENABLED, False)
    store.set_int(KEY_LOGGING_LEVEL, 0)  # unchanged, no notification
    assert seen == [KEY_LOGGING_LEVEL]


def test_observer_failure_does_not_block_write():
    store = PrefsStore()

    def bad(_key):  # noqa: ANN001
        raise RuntimeError("boom")

    store.add_observer("", bad)
    store.set_bool("a", True)
    assert store.get_bool("a") is True


def test_provider_settings_from_prefs():
    store = PrefsStore()
    settings = ProviderSettings.from_prefs(store)
    assert settings.eme_enabled is True
    assert settings.provider_last_check == 0

    store.set_bool(KEY_EME_ENABLED, False)
    store.set_int(KEY_LOGGING_LEVEL, 500)
    settings = ProviderSettings.from_prefs(store)
    assert settings.eme_enabled is False
    assert settings.logging_level == 50


def test_backups_are_rotated(tmp_config_root):
    store = PrefsStore(path=tmp_config_root.prefs, backups_dir=tmp_config_root.backups_dir, max_backups=2)
    for i in range(5):
        store.set_int("media.gmp-manager.lastCheck", i + 1)
    kept = list_backups(tmp_config_root.prefs, tmp_config_root.backups_dir)
    assert len(kept) == 2
    assert all(os.path.basename(p).endswith(".prewrite.json") for p in kept)
