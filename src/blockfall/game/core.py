from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, Dict, Optional

from .grid import GameGrid
from .pieces import Piece, PieceSpec, PieceType, kick_offsets, rotates
from .randomizer import BagRandomizer
from .rules import GameConfig, ScoringRules
from .state import GameState


class Action(IntEnum):
    LEFT = 0
    RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    HOLD = 6
    NONE = 7


class LockDelay(Enum):
    """What the timing layer should do with the lock-delay timer."""

    KEEP = "keep"
    START = "start"  # arm unless already running
    RESTART = "restart"
    CANCEL = "cancel"


@dataclass(frozen=True)
class Outcome:
    accepted: bool
    lock_delay: LockDelay = LockDelay.KEEP
    clearing: bool = False
    game_over: bool = False

    @classmethod
    def rejected(cls, lock_delay: LockDelay = LockDelay.KEEP) -> "Outcome":
        return cls(accepted=False, lock_delay=lock_delay)


class GameEngine:
    """Piece lifecycle state machine.

    Every command reads `self.state` and either replaces it with a new
    `GameState` or leaves it untouched. The engine has no notion of time:
    it reports through `Outcome` when lock delay or the line-clear pause
    should be armed, and expects `lock_expired` / `finish_clear` to be
    called back when they elapse.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        randomizer: Optional[BagRandomizer] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.rules = rules or ScoringRules()
        self.randomizer = randomizer or BagRandomizer(self.config.random_seed)
        self.last_move_was_rotation = False
        self._pending_clear_points = 0
        self.state = self._new_state()

    # Lifecycle ---------------------------------------------------------

    def _spawn(self, spec: PieceSpec) -> Piece:
        return Piece(spec, self.config.spawn_column, self.config.spawn_y, 0)

    def _draw(self) -> Piece:
        return self._spawn(self.randomizer.next())

    def _new_state(self) -> GameState:
        current = self._draw()
        upcoming = self._draw()
        return GameState(
            board=GameGrid.empty(self.config.width, self.config.height),
            current_piece=current,
            next_piece=upcoming,
            gravity_interval_ms=self.rules.gravity_interval_ms(0),
        )

    def restart(self, seed: Optional[int] = None) -> GameState:
        self.randomizer.restart(seed)
        self.last_move_was_rotation = False
        self._pending_clear_points = 0
        self.state = self._new_state()
        return self.state

    def load(self, state: GameState) -> None:
        """Replace the whole state, e.g. to set up a position."""
        self.state = state
        self.last_move_was_rotation = False
        self._pending_clear_points = 0

    def _can_act(self) -> bool:
        return not self.state.game_over and not self.state.is_clearing

    def _placed(self, piece: Piece) -> LockDelay:
        if self.state.board.is_grounded(piece):
            return LockDelay.RESTART
        return LockDelay.CANCEL

    # Player commands ---------------------------------------------------

    def move_horizontal(self, dx: int) -> Outcome:
        if dx not in (-1, 1):
            raise ValueError(f"dx must be -1 or 1, got {dx!r}")
        if not self._can_act():
            return Outcome.rejected()
        moved = self.state.current_piece.moved(dx=dx)
        if not self.state.board.is_valid_position(moved):
            return Outcome.rejected()
        self.last_move_was_rotation = False
        self.state = self.state.evolve(current_piece=moved)
        return Outcome(True, self._placed(moved))

    def soft_drop(self) -> Outcome:
        if not self._can_act():
            return Outcome.rejected()
        moved = self.state.current_piece.moved(dy=1)
        if not self.state.board.is_valid_position(moved):
            return Outcome.rejected(LockDelay.START)
        self.last_move_was_rotation = False
        self.state = self.state.evolve(
            current_piece=moved,
            score=self.state.score + self.rules.soft_drop_points,
        )
        return Outcome(True, self._placed(moved))

    def hard_drop(self) -> Outcome:
        if not self._can_act():
            return Outcome.rejected()
        piece = self.state.current_piece
        distance = self.state.board.drop_distance(piece)
        # A hard drop never locks as a T-Spin, even when it falls zero rows
        self.last_move_was_rotation = False
        self.state = self.state.evolve(
            current_piece=piece.moved(dy=distance),
            score=self.state.score + distance * self.rules.hard_drop_points,
        )
        return self._lock_current()

    def rotate(self, clockwise: bool = True) -> Outcome:
        if not self._can_act():
            return Outcome.rejected()
        piece = self.state.current_piece
        if not rotates(piece.spec):
            return Outcome.rejected()
        target = (piece.rotation + (1 if clockwise else -1)) % 4
        for dx, dy in kick_offsets(piece.spec, piece.rotation, target):
            candidate = piece.rotated_to(target, dx, dy)
            if self.state.board.is_valid_position(candidate):
                self.last_move_was_rotation = True
                self.state = self.state.evolve(current_piece=candidate)
                return Outcome(True, self._placed(candidate))
        return Outcome.rejected()

    def hold(self) -> Outcome:
        state = self.state
        if not self._can_act() or not state.can_hold:
            return Outcome.rejected()
        # The held piece keeps its pose; it is re-spawned when it comes back.
        outgoing = state.current_piece
        if state.held_piece is None:
            incoming = state.next_piece
            upcoming = self._draw()
        else:
            incoming = self._spawn(state.held_piece.spec)
            upcoming = state.next_piece
        self.last_move_was_rotation = False
        game_over = not state.board.is_valid_position(incoming)
        self.state = state.evolve(
            current_piece=incoming,
            next_piece=upcoming,
            held_piece=outgoing,
            can_hold=False,
            game_over=game_over,
        )
        return Outcome(True, LockDelay.CANCEL, game_over=game_over)

    # Timer callbacks ---------------------------------------------------

    def gravity_tick(self) -> Outcome:
        if not self._can_act():
            return Outcome.rejected()
        moved = self.state.current_piece.moved(dy=1)
        if not self.state.board.is_valid_position(moved):
            return Outcome.rejected(LockDelay.START)
        self.last_move_was_rotation = False
        self.state = self.state.evolve(current_piece=moved)
        return Outcome(True, LockDelay.CANCEL)

    def lock_expired(self) -> Outcome:
        if not self._can_act() or not self.state.is_grounded:
            return Outcome.rejected()
        return self._lock_current()

    def finish_clear(self) -> Outcome:
        state = self.state
        if not state.is_clearing or state.game_over:
            return Outcome.rejected()
        rows = state.clearing_lines
        lines = state.lines_cleared + len(rows)
        self.state = state.evolve(
            board=state.board.collapse(rows),
            score=state.score + self._pending_clear_points,
            lines_cleared=lines,
            gravity_interval_ms=self.rules.gravity_interval_ms(lines),
            clearing_lines=(),
        )
        self._pending_clear_points = 0
        return self._spawn_next()

    # Locking -----------------------------------------------------------

    def is_t_spin(self, piece: Piece, board: GameGrid) -> bool:
        if piece.kind is not PieceType.T or not self.last_move_was_rotation:
            return False
        return self.rules.is_t_spin(board.t_spin_corners(piece))

    def _lock_current(self) -> Outcome:
        state = self.state
        piece = state.current_piece
        t_spin = self.is_t_spin(piece, state.board)
        self.last_move_was_rotation = False

        result = state.board.lock(piece)
        if result.game_over:
            self.state = state.evolve(game_over=True)
            return Outcome(True, LockDelay.CANCEL, game_over=True)

        rows = result.grid.cleared_rows()
        points = self.rules.score_for_lines(len(rows), t_spin)
        if rows:
            self._pending_clear_points = points
            self.state = state.evolve(board=result.grid, clearing_lines=rows)
            return Outcome(True, LockDelay.CANCEL, clearing=True)

        self.state = state.evolve(board=result.grid, score=state.score + points)
        return self._spawn_next()

    def _spawn_next(self) -> Outcome:
        state = self.state
        incoming = self._spawn(state.next_piece.spec)
        if not state.board.is_valid_position(incoming):
            self.state = state.evolve(current_piece=incoming, game_over=True)
            return Outcome(True, LockDelay.CANCEL, game_over=True)
        self.state = state.evolve(
            current_piece=incoming,
            next_piece=self._draw(),
            can_hold=True,
        )
        return Outcome(True, LockDelay.CANCEL)

    # Dispatch ----------------------------------------------------------

    def step(self, action: Action) -> Outcome:
        handlers: Dict[Action, Callable[[], Outcome]] = {
            Action.LEFT: lambda: self.move_horizontal(-1),
            Action.RIGHT: lambda: self.move_horizontal(1),
            Action.ROTATE_CW: lambda: self.rotate(True),
            Action.ROTATE_CCW: lambda: self.rotate(False),
            Action.SOFT_DROP: self.soft_drop,
            Action.HARD_DROP: self.hard_drop,
            Action.HOLD: self.hold,
            Action.NONE: Outcome.rejected,
        }
        return handlers[Action(action)]()
