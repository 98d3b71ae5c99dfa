from __future__ import annotations

import pytest

from mediamodules.core.events.bus import EventBus
from mediamodules.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from mediamodules.core.events.redaction import redact_module_payload


def _ev(event_type: str, **payload) -> BaseEvent:  # noqa: ANN003
    return BaseEvent(event_type=event_type, source_subsystem=SourceSubsystem.provider, payload=payload)


def test_publish_subscribe_multiple_subscribers():
    bus = EventBus()
    order = []
    bus.subscribe("module.enabled", lambda ev: order.append(("late", ev.event_id)), priority=20)
    bus.subscribe("module.enabled", lambda ev: order.append(("early", ev.event_id)), priority=10)

    ev = _ev("module.enabled", module_id="gmp-gmpopenh264")
    assert bus.publish(ev) is True
    assert order == [("early", ev.event_id), ("late", ev.event_id)]


def test_prefix_and_wildcard_matching():
    bus = EventBus()
    seen = {"prefix": [], "all": [], "exact": []}
    bus.subscribe("module.*", lambda ev: seen["prefix"].append(ev.event_type))
    bus.subscribe("*", lambda ev: seen["all"].append(ev.event_type))
    bus.subscribe("update.check_started", lambda ev: seen["exact"].append(ev.event_type))

    for t in ("module.installed", "modules.other", "update.check_started"):
        bus.publish(_ev(t))

    assert seen["prefix"] == ["module.installed"]
    assert seen["all"] == ["module.installed", "modules.other", "update.check_started"]
    assert seen["exact"] == ["update.check_started"]


def test_handler_exception_isolated():
    bus = EventBus()
    ok = {"n": 0}
    errors = []

    def bad(_ev):  # noqa: ANN001
        raise RuntimeError("boom")

    def good(_ev):  # noqa: ANN001
        ok["n"] += 1

    bus.subscribe("module.enabled", bad, priority=10)
    bus.subscribe("module.enabled", good, priority=20)
    bus.subscribe("error.raised", errors.append)
    bus.publish(_ev("module.enabled"))

    assert ok["n"] == 1
    assert len(errors) == 1
    assert errors[0].severity == EventSeverity.ERROR
    assert errors[0].payload["handler"] == "bad"
    assert bus.get_stats()["handler_errors_total"] == 1


def test_failing_error_handler_does_not_recurse():
    bus = EventBus()

    def bad(_ev):  # noqa: ANN001
        raise RuntimeError("boom")

    bus.subscribe("*", bad)
    bus.publish(_ev("module.enabled"))
    stats = bus.get_stats()
    assert stats["per_type_published"] == {"module.enabled": 1, "error.raised": 1}
    assert stats["handler_errors_total"] == 2


def test_disabled_bus_drops_events():
    bus = EventBus(enabled=False)
    got = []
    bus.subscribe("*", got.append)
    assert bus.publish(_ev("module.enabled")) is False
    assert got == []
    bus.set_enabled(True)
    assert bus.publish_nowait(_ev("module.enabled")) is True
    assert len(got) == 1


def test_unsubscribe_and_recent():
    bus = EventBus(keep_recent=10)
    got = []

    def handler(ev):  # noqa: ANN001
        got.append(ev.event_type)

    bus.subscribe("*", handler)
    bus.publish(_ev("a.one"))
    assert bus.unsubscribe(handler) == 1
    bus.publish(_ev("a.two"))

    assert got == ["a.one"]
    assert [e["event_type"] for e in bus.dump_recent()] == ["a.two", "a.one"]
    assert bus.get_stats()["subscribers"] == 0


def test_payload_must_be_jsonable_and_is_redacted():
    ev = _ev("update.check_failed", url="https://example.invalid/x", reason="timeout")
    assert ev.payload["url"] == "***REDACTED***"
    with pytest.raises(ValueError):
        _ev("module.enabled", obj=object())
    with pytest.raises(ValueError):
        _ev("  ")
    with pytest.raises(ValueError):
        _ev("NotDotted")
    assert _ev("module.enabled", module_id="gmp-eme-adobe").module_id == "gmp-eme-adobe"
    assert _ev("provider.started").module_id is None


def test_module_payload_allowlist():
    out = redact_module_payload({"module_id": "gmp-gmpopenh264", "hash_value": "abc", "download_path": "/tmp/x"})
    assert out == {"module_id": "gmp-gmpopenh264"}
