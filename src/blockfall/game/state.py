from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import numpy as np

from .grid import GameGrid
from .pieces import Piece


# Cell code used for the ghost projection in `board_view`.
GHOST_CELL = 8


@dataclass(frozen=True)
class GameState:
    """Observable snapshot of one game.

    Instances are never mutated; every transition builds a new one with
    `evolve`. The ghost piece is derived from the board and current piece.
    """

    board: GameGrid
    current_piece: Piece
    next_piece: Piece
    held_piece: Optional[Piece] = None
    can_hold: bool = True
    score: int = 0
    lines_cleared: int = 0
    gravity_interval_ms: int = 500
    clearing_lines: Tuple[int, ...] = field(default_factory=tuple)
    game_over: bool = False

    def evolve(self, **changes) -> "GameState":
        return replace(self, **changes)

    @property
    def is_clearing(self) -> bool:
        return bool(self.clearing_lines)

    @property
    def ghost_piece(self) -> Optional[Piece]:
        if self.game_over or self.is_clearing:
            return None
        return self.board.ghost(self.current_piece)

    @property
    def is_grounded(self) -> bool:
        return self.board.is_grounded(self.current_piece)

    def board_view(self, include_ghost: bool = False) -> np.ndarray:
        """Board with the falling piece overlaid as negative type ids."""
        view = self.board.grid.copy()
        ghost = self.ghost_piece if include_ghost else None
        if ghost is not None:
            for x, y in ghost.cells():
                if self.board.is_inside(x, y) and view[y, x] == 0:
                    view[y, x] = GHOST_CELL
        if not self.is_clearing:
            for x, y in self.current_piece.cells():
                if self.board.is_inside(x, y):
                    view[y, x] = -self.current_piece.type_id
        return view
