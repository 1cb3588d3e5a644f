from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from blockfall.settings import MemorySettingsStore, SettingsStore

from .core import Action, GameEngine, Outcome
from .randomizer import BagRandomizer
from .rules import GameConfig, ScoringRules
from .state import GameState
from .timing import Scheduler, TimingCoordinator


logger = logging.getLogger(__name__)

Subscriber = Callable[[GameState], None]


class GameSession:
    """Single owner of a running game.

    Commands, timer callbacks and `update` all run under one re-entrant lock,
    so transitions never interleave. Every new snapshot is pushed to
    subscribers. On game over the high score is saved at most once.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        settings: Optional[SettingsStore] = None,
        scheduler: Optional[Scheduler] = None,
        randomizer: Optional[BagRandomizer] = None,
        autostart: bool = True,
    ) -> None:
        self.engine = GameEngine(config, rules, randomizer)
        self.scheduler = scheduler or Scheduler()
        self.settings: SettingsStore = settings if settings is not None else MemorySettingsStore()
        self.timing = TimingCoordinator(self.engine, self.scheduler, dispatch=self._run)
        self._lock = threading.RLock()
        self._subscribers: List[Subscriber] = []
        self._paused = False
        self._game_over_handled = False
        self._high_score = self.settings.load_high_score()
        self._top_score = max(self._high_score, self.engine.state.score)
        if autostart:
            self.timing.start()

    # Read surface ------------------------------------------------------

    @property
    def state(self) -> GameState:
        return self.engine.state

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def high_score(self) -> int:
        """Last known persisted high score."""
        return self._high_score

    @property
    def top_score(self) -> int:
        return self._top_score

    @property
    def show_ghost_piece(self) -> bool:
        return self.settings.show_ghost_piece()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback`; it receives the current state right away."""
        with self._lock:
            self._subscribers.append(callback)
            callback(self.engine.state)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, state: GameState) -> None:
        if state.score > self._top_score:
            self._top_score = state.score
        for callback in list(self._subscribers):
            callback(state)

    # Serialized command path -------------------------------------------

    def _run(self, operation: Callable[[], Outcome]) -> Outcome:
        with self._lock:
            before = self.engine.state
            outcome = operation()
            self.timing.apply(outcome)
            after = self.engine.state
            if after is not before:
                self._publish(after)
            if after.game_over and not self._game_over_handled:
                self._handle_game_over(after)
            return outcome

    def _command(self, operation: Callable[[], Outcome]) -> bool:
        with self._lock:
            if self._paused:
                return False
            return self._run(operation).accepted

    def _handle_game_over(self, state: GameState) -> None:
        self._game_over_handled = True
        logger.info("Game over: score=%d lines=%d", state.score, state.lines_cleared)
        if state.score <= self._high_score:
            return
        try:
            self.settings.save_high_score(state.score)
        except OSError as exc:
            logger.warning("Could not save high score %d: %s", state.score, exc)
            return
        logger.debug("Saved new high score %d", state.score)
        self._high_score = state.score

    # Commands ----------------------------------------------------------

    def move_horizontal(self, dx: int) -> bool:
        return self._command(lambda: self.engine.move_horizontal(dx))

    def soft_drop(self) -> bool:
        return self._command(self.engine.soft_drop)

    def hard_drop(self) -> bool:
        return self._command(self.engine.hard_drop)

    def rotate(self, clockwise: bool = True) -> bool:
        return self._command(lambda: self.engine.rotate(clockwise))

    def hold(self) -> bool:
        return self._command(self.engine.hold)

    def apply(self, action: Action) -> bool:
        return self._command(lambda: self.engine.step(action))

    def restart(self, seed: Optional[int] = None) -> None:
        with self._lock:
            self.timing.cancel_all()
            state = self.engine.restart(seed)
            self._paused = False
            self._game_over_handled = False
            logger.debug("Restarted game")
            self._publish(state)
            self.timing.start()

    def pause(self) -> None:
        with self._lock:
            if self._paused:
                return
            self._paused = True
            self.timing.pause()

    def resume(self) -> None:
        with self._lock:
            if not self._paused:
                return
            self._paused = False
            self.timing.resume()

    def update(self, now_ms: int) -> None:
        """Advance timers to `now_ms`, firing anything that is due."""
        with self._lock:
            self.scheduler.advance_to(now_ms)

    def advance(self, delta_ms: int) -> None:
        with self._lock:
            self.scheduler.advance(delta_ms)

    def load(self, state: GameState) -> None:
        """Install `state` as-is, dropping pending lock-delay and line-clear timers."""
        with self._lock:
            running = self.timing.running and not self._paused
            self.timing.cancel_all()
            self.engine.load(state)
            self._game_over_handled = state.game_over
            self._publish(state)
            if running:
                self.timing.start()
