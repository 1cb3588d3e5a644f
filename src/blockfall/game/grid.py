from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .pieces import Piece, PieceType


Coordinate = Tuple[int, int]


@dataclass(frozen=True)
class LockResult:
    grid: "GameGrid"
    game_over: bool


class GameGrid:
    """Immutable 2D board of cell codes.

    The grid uses 0 for empty cells and 1..7 for cells filled by a locked
    piece (the piece type id). Row 0 is the top; pieces may hang above it
    (negative y) while falling. Every mutating operation returns a new grid.
    """

    def __init__(self, cells: np.ndarray) -> None:
        if cells.ndim != 2 or cells.shape[0] < 1 or cells.shape[1] < 1:
            raise ValueError(f"Board must be a non-empty 2D array, got shape {cells.shape}")
        grid = np.array(cells, dtype=np.int8, copy=True)
        grid.flags.writeable = False
        self.grid = grid
        self.height, self.width = grid.shape

    @classmethod
    def empty(cls, width: int = 10, height: int = 22) -> "GameGrid":
        return cls(np.zeros((int(height), int(width)), dtype=np.int8))

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> "GameGrid":
        return cls(np.array(rows, dtype=np.int8))

    def __getitem__(self, index):
        return self.grid[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameGrid):
            return NotImplemented
        return np.array_equal(self.grid, other.grid)

    def __hash__(self) -> int:
        return hash((self.grid.shape, self.grid.tobytes()))

    def __repr__(self) -> str:
        return f"GameGrid({self.width}x{self.height}, filled={self.filled_count()})"

    def rows(self) -> List[List[int]]:
        return self.grid.tolist()

    def is_inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def filled_count(self) -> int:
        return int(np.count_nonzero(self.grid))

    def with_cells(self, cells: Iterable[Coordinate], value: int) -> "GameGrid":
        out = self.grid.copy()
        for x, y in cells:
            out[y, x] = value
        return GameGrid(out)

    def with_row(self, y: int, values: Sequence[int]) -> "GameGrid":
        out = self.grid.copy()
        out[y, :] = values
        return GameGrid(out)

    def is_valid_position(self, piece: Piece) -> bool:
        for x, y in piece.cells():
            if x < 0 or x >= self.width or y >= self.height:
                return False
            if y >= 0 and self.grid[y, x] != 0:
                return False
        return True

    def is_grounded(self, piece: Piece) -> bool:
        return not self.is_valid_position(piece.moved(dy=1))

    def lock(self, piece: Piece) -> LockResult:
        """Stamp `piece` into a new grid.

        Caller guarantees the piece is at a valid position. A piece with any
        cell above the top row cannot lock; the grid is returned unchanged
        with `game_over` set.
        """
        cells = piece.cells()
        if any(y < 0 for _, y in cells):
            return LockResult(grid=self, game_over=True)
        return LockResult(grid=self.with_cells(cells, piece.type_id), game_over=False)

    def cleared_rows(self) -> Tuple[int, ...]:
        full_rows = np.where(np.all(self.grid != 0, axis=1))[0]
        return tuple(int(y) for y in full_rows)

    def collapse(self, rows: Iterable[int]) -> "GameGrid":
        rows = sorted(set(int(r) for r in rows))
        if not rows:
            return self
        kept = np.delete(self.grid, rows, axis=0)
        new_rows = np.zeros((len(rows), self.width), dtype=np.int8)
        return GameGrid(np.vstack((new_rows, kept)))

    def t_spin_corners(self, piece: Piece) -> int:
        """Occupied diagonal corners around a T piece's 3x3 box center."""
        if piece.kind is not PieceType.T or not isinstance(piece.spec, PieceType):
            return 0
        cx, cy = piece.x + 1, piece.y + 1
        occupied = 0
        for x, y in ((cx - 1, cy - 1), (cx + 1, cy - 1), (cx - 1, cy + 1), (cx + 1, cy + 1)):
            if not self.is_inside(x, y) or self.grid[y, x] != 0:
                occupied += 1
        return occupied

    def drop_distance(self, piece: Piece) -> int:
        distance = 0
        while self.is_valid_position(piece.moved(dy=distance + 1)):
            distance += 1
        return distance

    def ghost(self, piece: Piece) -> Piece:
        return piece.moved(dy=self.drop_distance(piece))
