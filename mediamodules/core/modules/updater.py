from __future__ import annotations

"""
Update checks and installs for catalog modules.

The install manager is injected (anything with async `check_for_addons()` and
`install_addon(addon)`); nothing here downloads or verifies bits. One
check/install per module id runs at a time; other ids and plain record reads
are never blocked.
"""

import asyncio
import inspect
import logging
import time
from typing import Any, AsyncIterable, Awaitable, Callable, Dict, Iterable, Optional, Protocol, Tuple, Union

from pydantic import ValidationError

from mediamodules.core.errors import InstallFailed
from mediamodules.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from mediamodules.core.events.redaction import redact_module_payload
from mediamodules.core.modules.models import AddonDescriptor, EffectiveState


logger = logging.getLogger("mediamodules.updater")

SEC_IN_A_DAY = 24 * 60 * 60


class InstallManager(Protocol):
    def check_for_addons(self) -> Union[Awaitable[Union[Iterable[Any], AsyncIterable[Any], None]], AsyncIterable[Any]]: ...

    async def install_addon(self, addon: Any) -> Optional[str]: ...


def _now_millis() -> int:
    return int(time.time() * 1000)


def as_descriptor(item: Any) -> Optional[AddonDescriptor]:
    if isinstance(item, AddonDescriptor):
        return item
    try:
        if isinstance(item, dict):
            return AddonDescriptor.model_validate(item)
        return AddonDescriptor.model_validate(item, from_attributes=True)
    except ValidationError:
        logger.debug("Ignoring malformed update candidate: %r", type(item).__name__)
        return None


async def _first_candidate(candidates: Any, module_id: str) -> Optional[Tuple[Any, AddonDescriptor]]:
    """
    Walk the (one-shot) candidate sequence until the first installable match.
    The rest of the sequence is left unconsumed.
    """
    if candidates is None:
        return None
    if hasattr(candidates, "__aiter__"):
        async for item in candidates:
            d = as_descriptor(item)
            if d is not None and d.id == module_id and d.is_valid and not d.is_installed:
                return item, d
        return None
    for item in candidates:
        d = as_descriptor(item)
        if d is not None and d.id == module_id and d.is_valid and not d.is_installed:
            return item, d
    return None


class ModuleUpdater:
    def __init__(
        self,
        *,
        provider: Any,
        install_manager: InstallManager,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.provider = provider
        self.install_manager = install_manager
        self.clock = clock or _now_millis
        self._locks: Dict[str, asyncio.Lock] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    async def find_updates(self, module_id: str, *, user_requested: bool = True) -> bool:
        """
        Check for and install an update of one module.

        Returns True when something was installed, False when there was nothing
        to do. Raises InvalidRecord for unknown ids and InstallFailed when the
        check or install fails (the module record is then left untouched).
        """
        mid = self.provider.get_record(module_id).id
        async with self._lock_for(mid):
            return await self._find_updates_locked(mid, user_requested=bool(user_requested))

    async def check_all(self, *, user_requested: bool = True) -> Dict[str, bool]:
        results: Dict[str, bool] = {}
        for view in self.provider.list_modules():
            results[view.module_id] = await self.find_updates(view.module_id, user_requested=user_requested)
        self._emit("update.check_all_completed", {"installed_count": sum(1 for v in results.values() if v), "count": len(results)})
        return results

    # ---- internals ----
    def _lock_for(self, module_id: str) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if loop is not self._loop:
            # locks are bound to the loop that first waits on them
            self._locks = {}
            self._loop = loop
        lock = self._locks.get(module_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[module_id] = lock
        return lock

    async def _find_updates_locked(self, module_id: str, *, user_requested: bool) -> bool:
        record = self.provider.get_record(module_id)
        res = self.provider.resolve(module_id)
        if res.state == EffectiveState.ABSENT:
            logger.debug("Skipping update check for hidden module %s", module_id)
            return False

        now_ms = int(self.clock())
        if not user_requested:
            if not record.auto_update:
                logger.debug("Background update of %s skipped: auto update off", module_id)
                return False
            since = now_ms // 1000 - int(self.provider.last_check_epoch_seconds())
            if since <= SEC_IN_A_DAY:
                logger.debug("Background update of %s skipped: last check %ss ago", module_id, since)
                return False

        self._emit("update.check_started", {"module_id": module_id, "user_requested": user_requested})
        try:
            candidates = self.install_manager.check_for_addons()
            # a coroutine returning the candidates, or an async generator yielding them
            if inspect.isawaitable(candidates):
                candidates = await candidates
            found = await _first_candidate(candidates, module_id)
        except Exception as e:  # noqa: BLE001
            logger.error("Update check for %s failed: %s", module_id, e)
            self._emit("update.check_failed", {"module_id": module_id, "reason": str(e)[:200]}, severity=EventSeverity.ERROR)
            raise InstallFailed("Update check failed.", module_id=module_id, stage="check", error=str(e)[:200]) from e
        self.provider.mark_checked(now_ms // 1000)

        if found is None:
            logger.info("No update available for %s", module_id)
            self._emit("update.none_available", {"module_id": module_id})
            return False
        item, descriptor = found

        try:
            reported = await self.install_manager.install_addon(item)
        except Exception as e:  # noqa: BLE001
            logger.error("Install of %s failed: %s", module_id, e)
            self._emit("module.install_failed", {"module_id": module_id, "reason": str(e)[:200]}, severity=EventSeverity.ERROR)
            raise InstallFailed(module_id=module_id, stage="install", error=str(e)[:200]) from e

        version = (reported if isinstance(reported, str) else "").strip() or descriptor.version.strip()
        if not version:
            logger.error("Install of %s reported no version", module_id)
            self._emit("module.install_failed", {"module_id": module_id, "reason": "no version reported"}, severity=EventSeverity.ERROR)
            raise InstallFailed("Install finished without reporting a version.", module_id=module_id, stage="install")

        self.provider.record_install(module_id, version=version, when_epoch_millis=int(self.clock()))
        return True

    def _emit(self, event_type: str, payload: Dict[str, Any], *, severity: EventSeverity = EventSeverity.INFO) -> None:
        bus = getattr(self.provider, "event_bus", None)
        if bus is None:
            return
        bus.publish_nowait(
            BaseEvent(
                event_type=event_type,
                source_subsystem=SourceSubsystem.updater,
                severity=severity,
                payload=redact_module_payload(payload),
            )
        )
