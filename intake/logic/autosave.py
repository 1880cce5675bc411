"""Debounced auto-save with an observable save status.

`AutoSaveController` coalesces bursts of Draft State changes into a single
call of an injected async save function and reports progress through a
status that only moves along idle -> saving -> (saved | error) -> idle.

All timer handling and status transitions run synchronously on the event
loop; the save call is the only suspension point. Timer handles and the
in-flight task are owned by the controller instance.
"""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.5
DEFAULT_SAVED_DISPLAY = 2.0
DEFAULT_ERROR_DISPLAY = 3.0


class SaveStatus:
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


SaveFn = Callable[[Mapping[str, Any]], Awaitable[Any]]
StatusListener = Callable[[str], None]


class AutoSaveController:
    """Own the debounce timer, the status display timer and the in-flight save.

    - `on_change(snapshot)` restarts the debounce timer when the snapshot
      differs structurally from the last one observed.
    - When the timer fires the latest observed snapshot is saved, unless a
      save is already running; then the request is remembered and a new
      debounce cycle starts once the running save completes.
    - `saved`/`error` revert to `idle` after their display duration unless
      a newer transition happened in the meantime (generation check).
    - `teardown()` cancels every timer; a save still in flight completes
      but its status transition is never reported.
    """

    def __init__(
        self,
        save: SaveFn,
        *,
        delay: float = DEFAULT_DELAY,
        saved_display: float = DEFAULT_SAVED_DISPLAY,
        error_display: float = DEFAULT_ERROR_DISPLAY,
        enabled: bool = True,
        on_status_change: Optional[StatusListener] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._save = save
        self.delay = delay
        self.saved_display = saved_display
        self.error_display = error_display
        self._enabled = enabled
        self._on_status_change = on_status_change
        self._loop = loop

        self._status = SaveStatus.IDLE
        self._generation = 0
        self._alive = True
        self._debounce: Optional[asyncio.TimerHandle] = None
        self._display: Optional[asyncio.TimerHandle] = None
        self._in_flight: Optional[asyncio.Task] = None
        self._pending = False
        self._observed: Optional[Dict[str, Any]] = None
        self._saved: Optional[Dict[str, Any]] = None

    # -- read-only state -------------------------------------------------

    @property
    def status(self) -> str:
        return self._status

    @property
    def is_saving(self) -> bool:
        return self._in_flight is not None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def alive(self) -> bool:
        return self._alive

    def has_pending_timer(self) -> bool:
        return self._debounce is not None

    def is_dirty(self) -> bool:
        """True when the latest observed snapshot has not been saved yet."""
        return self._observed is not None and self._observed != self._saved

    # -- inputs ------------------------------------------------------------

    def prime(self, snapshot: Mapping[str, Any]) -> None:
        """Set the baseline loaded from the store without saving it."""
        self._cancel_debounce()
        self._observed = dict(snapshot)
        self._saved = dict(snapshot)

    def on_change(self, snapshot: Mapping[str, Any]) -> None:
        if not self._alive or not self._enabled:
            return
        current = dict(snapshot)
        if self._observed is not None and current == self._observed:
            return
        self._observed = current
        self._arm_debounce()

    def set_enabled(self, enabled: bool) -> None:
        if enabled == self._enabled:
            return
        self._enabled = enabled
        if not enabled:
            self._cancel_debounce()
            self._cancel_display()
            self._pending = False
        elif self._alive and self._in_flight is None and self._status != SaveStatus.IDLE:
            # Display timers were dropped while disabled; nothing will revert this status
            self._set_status(SaveStatus.IDLE)
        logger.info("autosave.enabled value=%s", enabled)

    def cancel(self) -> None:
        """Drop the pending debounce timer; the draft itself is untouched."""
        self._cancel_debounce()
        self._pending = False

    def reset(self) -> None:
        self.cancel()
        if self._alive and self._enabled:
            self._set_status(SaveStatus.IDLE)

    def teardown(self) -> None:
        if not self._alive:
            return
        self._alive = False
        self._cancel_debounce()
        self._cancel_display()
        self._pending = False
        logger.info("autosave.teardown in_flight=%s", self._in_flight is not None)

    async def save_now(self) -> bool:
        """Save the latest snapshot immediately, skipping the debounce delay.

        Used for explicit retries and before submission. Waits for a save
        already in flight first. Returns True when the store holds the
        latest observed snapshot afterwards.
        """
        if not self._alive or not self._enabled:
            return False
        while self._in_flight is not None:
            await self._in_flight
        self._cancel_debounce()
        self._pending = False
        if self._observed is None or self._observed == self._saved:
            return True
        self._start_save()
        if self._in_flight is not None:
            await self._in_flight
        return self._observed == self._saved

    async def drain(self) -> None:
        """Wait for the save in flight, if any, to complete."""
        task = self._in_flight
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    # -- internals ---------------------------------------------------------

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def _cancel_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    def _cancel_display(self) -> None:
        if self._display is not None:
            self._display.cancel()
            self._display = None

    def _arm_debounce(self) -> None:
        self._cancel_debounce()
        self._debounce = self._get_loop().call_later(self.delay, self._on_debounce_fired)

    def _on_debounce_fired(self) -> None:
        self._debounce = None
        if not self._alive or not self._enabled:
            return
        self._start_save()

    def _start_save(self) -> None:
        if self._in_flight is not None:
            # Picked up by a fresh debounce cycle once the running save ends
            self._pending = True
            return
        snapshot = self._observed
        if snapshot is None or snapshot == self._saved:
            return
        self._set_status(SaveStatus.SAVING)
        self._in_flight = self._get_loop().create_task(self._run_save(snapshot))

    async def _run_save(self, snapshot: Dict[str, Any]) -> None:
        try:
            await self._save(MappingProxyType(snapshot))
        except asyncio.CancelledError:
            self._in_flight = None
            raise
        except Exception:
            logger.error("autosave.save_failed keys=%s", sorted(snapshot), exc_info=True)
            self._finish(snapshot, ok=False)
        else:
            self._finish(snapshot, ok=True)

    def _finish(self, snapshot: Dict[str, Any], ok: bool) -> None:
        self._in_flight = None
        if ok:
            self._saved = snapshot
        if not self._alive or not self._enabled:
            return
        if ok:
            self._set_status(SaveStatus.SAVED, revert_after=self.saved_display)
        else:
            self._set_status(SaveStatus.ERROR, revert_after=self.error_display)
        if self._pending:
            self._pending = False
            self._arm_debounce()

    def _set_status(self, status: str, revert_after: Optional[float] = None) -> None:
        self._generation += 1
        self._cancel_display()
        previous = self._status
        self._status = status
        if revert_after is not None:
            self._display = self._get_loop().call_later(
                revert_after, self._revert_to_idle, self._generation
            )
        if previous == status:
            return
        logger.info("autosave.status from=%s to=%s", previous, status)
        if self._on_status_change is not None:
            try:
                self._on_status_change(status)
            except Exception:
                logger.error("autosave.status_listener_failed status=%s", status, exc_info=True)

    def _revert_to_idle(self, generation: int) -> None:
        self._display = None
        if not self._alive or not self._enabled or generation != self._generation:
            return
        self._set_status(SaveStatus.IDLE)


__all__ = [
    "DEFAULT_DELAY",
    "DEFAULT_SAVED_DISPLAY",
    "DEFAULT_ERROR_DISPLAY",
    "SaveStatus",
    "AutoSaveController",
]
