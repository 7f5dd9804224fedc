"""
Fusion Scheduler — Periodic Capture & Fusion on asyncio
========================================================
Drives a ``FusionSession`` from host-supplied capture callables:

  - one periodic task per capture source (facial ≈ 2 s, voice ≈ 1.5 s),
  - text is event driven: ``text_input()`` is called on every keystroke
    and analysed once typing pauses (``TextDebouncer``, ≈ 600 ms),
  - a fusion tick every ≈ 3 s, plus an immediate tick whenever a
    modality produces a new observation (``fuse_on_update``).

Classifier work runs in a worker thread (``asyncio.to_thread``) so the
event loop never blocks on feature extraction.  A capture callable, a
fusion tick or an ``on_state`` callback that raises is logged and counted
in ``stats``; the loop carries on at the next interval.

A capture callable returns the keyword arguments for the matching
``FusionSession.submit_*`` method, or ``None`` when it has nothing::

    def grab_frame():
        return {"pixels": camera.read(), "timestamp": time.time()}

Integration::

    scheduler = FusionScheduler(session, on_state=publish)
    scheduler.add_source(Modality.FACIAL, grab_frame)
    await scheduler.start()
    ...
    scheduler.text_input(textbox.value)
    ...
    await scheduler.stop()
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from moodfusion.core.emotions import Modality
from moodfusion.core.emotional_state import FusedEmotionState
from moodfusion.core.session import FusionSession
from moodfusion.utils.helpers import load_config, setup_logging

logger = setup_logging()

CaptureFn = Callable[[], Union[Optional[dict], Awaitable[Optional[dict]]]]
StateCallback = Callable[[FusedEmotionState], Union[None, Awaitable[None]]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class TextDebouncer:
    """Run ``callback(text)`` once no new text has arrived for ``delay`` seconds."""

    def __init__(self, callback: Callable[[str], Awaitable[None]], delay: float = 0.6):
        self._callback = callback
        self.delay = delay
        self._pending: Optional[asyncio.Task] = None

    def push(self, text: str) -> None:
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._fire_later(text))

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _fire_later(self, text: str) -> None:
        await asyncio.sleep(self.delay)
        try:
            await self._callback(text)
        except Exception:
            logger.warning("Text analysis failed", exc_info=True)


class FusionScheduler:
    """Background capture and fusion loops for one session."""

    def __init__(
        self,
        session: FusionSession,
        on_state: Optional[StateCallback] = None,
        config: Optional[dict] = None,
    ) -> None:
        if config is None:
            config = session.config or load_config()

        sched_cfg = config["scheduler"]
        self._session = session
        self._on_state = on_state
        self._intervals = {
            Modality.FACIAL: sched_cfg["facial_interval_sec"],
            Modality.VOICE: sched_cfg["voice_interval_sec"],
        }
        self.fusion_interval = sched_cfg["fusion_interval_sec"]
        self.fuse_on_update = sched_cfg["fuse_on_update"]
        self._debouncer = TextDebouncer(self._analyze_text, sched_cfg["text_debounce_sec"])

        self._sources: dict[Modality, tuple[CaptureFn, float]] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._running = False
        self._stats = {"captures": 0, "capture_errors": 0, "fusion_errors": 0, "ticks": 0}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def add_source(self, modality: Modality, capture: CaptureFn, interval: Optional[float] = None) -> None:
        """Register a periodic capture callable for the facial or voice modality."""
        modality = Modality(modality)
        if modality is Modality.TEXT:
            raise ValueError("Text is event driven; feed it through text_input()")
        self._sources[modality] = (capture, interval or self._intervals[modality])
        if self._running:
            self._start_source(modality)

    async def start(self) -> None:
        """Start every registered capture loop plus the fusion loop."""
        if self._running:
            return
        self._running = True
        for modality in self._sources:
            self._start_source(modality)
        self._tasks["fusion"] = asyncio.create_task(self._fusion_loop())
        logger.info(
            "Scheduler started (sources: %s, fusion every %.1fs)",
            ", ".join(m.value for m in self._sources) or "none",
            self.fusion_interval,
        )

    async def stop(self) -> None:
        """Cancel all loops and any pending text analysis."""
        self._running = False
        self._debouncer.cancel()
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Scheduler stopped")

    async def stop_modality(self, modality: Modality, clear: bool = True) -> None:
        """Stop one capture loop; fusion continues with the remaining modalities."""
        modality = Modality(modality)
        if modality is Modality.TEXT:
            self._debouncer.cancel()
        task = self._tasks.pop(modality.value, None)
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._sources.pop(modality, None)
        if clear:
            self._session.clear_modality(modality)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def text_input(self, text: str) -> None:
        """Report the current text (call on every change)."""
        self._debouncer.push(text)

    async def fuse_now(self) -> Optional[FusedEmotionState]:
        state = await asyncio.to_thread(self._session.tick)
        self._stats["ticks"] += 1
        if state is not None and self._on_state is not None:
            await _maybe_await(self._on_state(state))
        return state

    # ------------------------------------------------------------------
    # Loops
    # ------------------------------------------------------------------

    def _start_source(self, modality: Modality) -> None:
        capture, interval = self._sources[modality]
        old = self._tasks.pop(modality.value, None)
        if old is not None:
            old.cancel()
        self._tasks[modality.value] = asyncio.create_task(self._capture_loop(modality, capture, interval))

    async def _capture_loop(self, modality: Modality, capture: CaptureFn, interval: float) -> None:
        while self._running:
            try:
                payload = await _maybe_await(capture())
                self._stats["captures"] += 1
                if payload is not None:
                    obs = await self._submit(modality, payload)
                    if obs is not None and self.fuse_on_update:
                        await self.fuse_now()
            except Exception:
                self._stats["capture_errors"] += 1
                logger.warning("Capture for %s failed", modality.value, exc_info=True)
            await asyncio.sleep(interval)

    async def _submit(self, modality: Modality, payload: dict):
        work = asyncio.ensure_future(asyncio.to_thread(self._session.submit, modality, **payload))
        try:
            return await asyncio.shield(work)
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; let its frame land
            # before stop_modality() clears the slot.
            await work
            raise

    async def _fusion_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.fusion_interval)
            try:
                await self.fuse_now()
            except Exception:
                self._stats["fusion_errors"] += 1
                logger.warning("Fusion tick failed", exc_info=True)

    async def _analyze_text(self, text: str) -> None:
        obs = await asyncio.to_thread(self._session.submit_text, text)
        if obs is not None and self.fuse_on_update:
            await self.fuse_now()
