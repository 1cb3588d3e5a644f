from __future__ import annotations

import heapq
import itertools
from typing import Callable, List, Optional, Tuple

from .core import GameEngine, LockDelay, Outcome


class Timer:
    """Handle for a callback scheduled on a `Scheduler`."""

    def __init__(self, due_ms: int, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def _fire(self) -> None:
        self.fired = True
        self.callback()


class Scheduler:
    """Millisecond clock that only moves when told to.

    Real-time front-ends feed it wall-clock ticks through `advance_to`;
    tests and environments step it with `advance`. Timers fire in due
    order, and `now_ms` equals the timer's due time while its callback runs,
    so callbacks that re-arm themselves stay on schedule.
    """

    def __init__(self, now_ms: int = 0) -> None:
        self.now_ms = int(now_ms)
        self._queue: List[Tuple[int, int, Timer]] = []
        self._seq = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Timer:
        timer = Timer(self.now_ms + max(0, int(delay_ms)), callback)
        heapq.heappush(self._queue, (timer.due_ms, next(self._seq), timer))
        return timer

    def advance_to(self, now_ms: int) -> None:
        while self._queue and self._queue[0][0] <= now_ms:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now_ms = max(self.now_ms, due)
            timer._fire()
        self.now_ms = max(self.now_ms, int(now_ms))

    def advance(self, delta_ms: int) -> None:
        self.advance_to(self.now_ms + int(delta_ms))

    def pending_count(self) -> int:
        return sum(1 for _, _, timer in self._queue if timer.active)

    def cancel_all(self) -> None:
        for _, _, timer in self._queue:
            timer.cancel()
        self._queue.clear()


def _cancel(timer: Optional[Timer]) -> None:
    if timer is not None:
        timer.cancel()


class TimingCoordinator:
    """Gravity, lock-delay and line-clear timers for one engine.

    Timer callbacks go through `dispatch`, which runs an engine operation
    and hands the resulting `Outcome` back to `apply`. The session passes
    its serialized command path here; the default applies outcomes directly.
    """

    def __init__(
        self,
        engine: GameEngine,
        scheduler: Scheduler,
        dispatch: Optional[Callable[[Callable[[], Outcome]], Outcome]] = None,
        lock_delay_ms: Optional[int] = None,
        line_clear_delay_ms: Optional[int] = None,
    ) -> None:
        self.engine = engine
        self.scheduler = scheduler
        self.dispatch = dispatch or self._dispatch_directly
        self.lock_delay_ms = engine.config.lock_delay_ms if lock_delay_ms is None else lock_delay_ms
        self.line_clear_delay_ms = (
            engine.config.line_clear_delay_ms if line_clear_delay_ms is None else line_clear_delay_ms
        )
        self.running = False
        self._gravity: Optional[Timer] = None
        self._lock_delay: Optional[Timer] = None
        self._line_clear: Optional[Timer] = None

    def _dispatch_directly(self, operation: Callable[[], Outcome]) -> Outcome:
        outcome = operation()
        self.apply(outcome)
        return outcome

    @property
    def gravity_active(self) -> bool:
        return self._gravity is not None and self._gravity.active

    @property
    def lock_delay_active(self) -> bool:
        return self._lock_delay is not None and self._lock_delay.active

    @property
    def line_clear_active(self) -> bool:
        return self._line_clear is not None and self._line_clear.active

    # Gravity -----------------------------------------------------------

    def start(self) -> None:
        self.running = True
        if not self.gravity_active and not self.engine.state.game_over:
            self._arm_gravity()

    def _arm_gravity(self) -> None:
        # Interval is re-read every cycle so speed-ups apply right away.
        self._gravity = self.scheduler.call_later(self.engine.state.gravity_interval_ms, self._on_gravity)

    def _on_gravity(self) -> None:
        self._gravity = None
        if self.engine.state.game_over:
            return
        self.dispatch(self.engine.gravity_tick)
        if self.running and self._gravity is None and not self.engine.state.game_over:
            self._arm_gravity()

    # Lock delay --------------------------------------------------------

    def _arm_lock_delay(self) -> None:
        self._lock_delay = self.scheduler.call_later(self.lock_delay_ms, self._on_lock_delay)

    def _on_lock_delay(self) -> None:
        self._lock_delay = None
        self.dispatch(self.engine.lock_expired)

    def cancel_lock_delay(self) -> None:
        _cancel(self._lock_delay)
        self._lock_delay = None

    # Line clear --------------------------------------------------------

    def _on_line_clear(self) -> None:
        self._line_clear = None
        self.dispatch(self.engine.finish_clear)

    # Outcomes ----------------------------------------------------------

    def apply(self, outcome: Outcome) -> None:
        if outcome.lock_delay is LockDelay.START:
            if not self.lock_delay_active:
                self._arm_lock_delay()
        elif outcome.lock_delay is LockDelay.RESTART:
            self.cancel_lock_delay()
            self._arm_lock_delay()
        elif outcome.lock_delay is LockDelay.CANCEL:
            self.cancel_lock_delay()

        if outcome.clearing:
            _cancel(self._line_clear)
            self._line_clear = self.scheduler.call_later(self.line_clear_delay_ms, self._on_line_clear)

        if outcome.game_over:
            self.cancel_all()

    def pause(self) -> None:
        self.running = False
        _cancel(self._gravity)
        self._gravity = None
        self.cancel_lock_delay()

    def resume(self) -> None:
        self.start()

    def cancel_all(self) -> None:
        self.pause()
        _cancel(self._line_clear)
        self._line_clear = None
