from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np


class PieceType(IntEnum):
    """Tetromino kinds. The value doubles as the board cell code."""

    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7

    @classmethod
    def from_id(cls, code: int) -> "PieceType":
        try:
            return cls(int(code))
        except ValueError:
            raise ValueError(f"No piece type for cell code {code!r}") from None

    @property
    def type_id(self) -> int:
        return int(self)


Shape = np.ndarray
Offset = Tuple[int, int]


def _frozen(rows: Sequence[Sequence[int]]) -> Shape:
    arr = np.array(rows, dtype=np.int8)
    arr.flags.writeable = False
    return arr


# SRS orientations, spawn state first, clockwise after.
_SHAPE_TABLE = {
    PieceType.I: (
        [[0, 0, 0, 0], [1, 1, 1, 1], [0, 0, 0, 0], [0, 0, 0, 0]],
        [[0, 0, 1, 0], [0, 0, 1, 0], [0, 0, 1, 0], [0, 0, 1, 0]],
        [[0, 0, 0, 0], [0, 0, 0, 0], [1, 1, 1, 1], [0, 0, 0, 0]],
        [[0, 1, 0, 0], [0, 1, 0, 0], [0, 1, 0, 0], [0, 1, 0, 0]],
    ),
    PieceType.O: (
        [[1, 1], [1, 1]],
        [[1, 1], [1, 1]],
        [[1, 1], [1, 1]],
        [[1, 1], [1, 1]],
    ),
    PieceType.T: (
        [[0, 1, 0], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 1], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 1], [0, 1, 0]],
        [[0, 1, 0], [1, 1, 0], [0, 1, 0]],
    ),
    PieceType.S: (
        [[0, 1, 1], [1, 1, 0], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 1], [0, 0, 1]],
        [[0, 0, 0], [0, 1, 1], [1, 1, 0]],
        [[1, 0, 0], [1, 1, 0], [0, 1, 0]],
    ),
    PieceType.Z: (
        [[1, 1, 0], [0, 1, 1], [0, 0, 0]],
        [[0, 0, 1], [0, 1, 1], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 0], [0, 1, 1]],
        [[0, 1, 0], [1, 1, 0], [1, 0, 0]],
    ),
    PieceType.J: (
        [[1, 0, 0], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 1], [0, 1, 0], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 1], [0, 0, 1]],
        [[0, 1, 0], [0, 1, 0], [1, 1, 0]],
    ),
    PieceType.L: (
        [[0, 0, 1], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 0], [0, 1, 1]],
        [[0, 0, 0], [1, 1, 1], [1, 0, 0]],
        [[1, 1, 0], [0, 1, 0], [0, 1, 0]],
    ),
}

SHAPES: Dict[PieceType, Tuple[Shape, ...]] = {
    kind: tuple(_frozen(rows) for rows in table) for kind, table in _SHAPE_TABLE.items()
}

# Kick offsets in SRS convention (x right, y up).
_JLSTZ_SRS_KICKS = {
    (0, 1): [(0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)],
    (1, 0): [(0, 0), (1, 0), (1, -1), (0, 2), (1, 2)],
    (1, 2): [(0, 0), (1, 0), (1, -1), (0, 2), (1, 2)],
    (2, 1): [(0, 0), (-1, 0), (-1, 1), (0, -2), (-1, -2)],
    (2, 3): [(0, 0), (1, 0), (1, 1), (0, -2), (1, -2)],
    (3, 2): [(0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)],
    (3, 0): [(0, 0), (-1, 0), (-1, -1), (0, 2), (-1, 2)],
    (0, 3): [(0, 0), (1, 0), (1, 1), (0, -2), (1, -2)],
}
_I_SRS_KICKS = {
    (0, 1): [(0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2)],
    (1, 0): [(0, 0), (2, 0), (-1, 0), (2, 1), (-1, -2)],
    (1, 2): [(0, 0), (-1, 0), (2, 0), (-1, 2), (2, -1)],
    (2, 1): [(0, 0), (1, 0), (-2, 0), (1, -2), (-2, 1)],
    (2, 3): [(0, 0), (2, 0), (-1, 0), (2, 1), (-1, -2)],
    (3, 2): [(0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2)],
    (3, 0): [(0, 0), (1, 0), (-2, 0), (1, -2), (-2, 1)],
    (0, 3): [(0, 0), (-1, 0), (2, 0), (-1, 2), (2, -1)],
}


def _to_board_space(table: Dict[Tuple[int, int], List[Offset]]) -> Dict[Tuple[int, int], Tuple[Offset, ...]]:
    # Board rows grow downward, SRS y grows upward.
    return {key: tuple((dx, -dy) for dx, dy in offsets) for key, offsets in table.items()}


JLSTZ_KICKS = _to_board_space(_JLSTZ_SRS_KICKS)
I_KICKS = _to_board_space(_I_SRS_KICKS)


@dataclass(frozen=True)
class FixedShape:
    """A single-shape piece spec that never rotates.

    Useful for monominoes and other custom blocks; `type_id` is the cell code
    written into the board when it locks.
    """

    rows: Tuple[Tuple[int, ...], ...]
    type_id: int = 1

    def __post_init__(self) -> None:
        if not 1 <= self.type_id <= len(PieceType):
            raise ValueError(f"type_id must be in 1..{len(PieceType)}, got {self.type_id}")
        object.__setattr__(self, "rows", tuple(tuple(int(v) for v in row) for row in self.rows))

    @classmethod
    def of(cls, rows: Sequence[Sequence[int]], type_id: int = 1) -> "FixedShape":
        return cls(tuple(tuple(row) for row in rows), type_id)

    @property
    def kind(self) -> PieceType:
        return PieceType.from_id(self.type_id)


PieceSpec = Union[PieceType, FixedShape]


def shape_for(spec: PieceSpec, rotation: int) -> Shape:
    """Occupancy matrix of `spec` at `rotation` (taken modulo 4)."""
    if isinstance(spec, FixedShape):
        return _frozen(spec.rows)
    return SHAPES[spec][rotation % 4]


def kick_offsets(spec: PieceSpec, from_rotation: int, to_rotation: int) -> List[Offset]:
    """Ordered board-space (dx, dy) candidates for a rotation attempt."""
    if not rotates(spec):
        return []
    table = I_KICKS if spec is PieceType.I else JLSTZ_KICKS
    return list(table.get((from_rotation % 4, to_rotation % 4), ()))


def rotates(spec: PieceSpec) -> bool:
    return isinstance(spec, PieceType) and spec is not PieceType.O


def type_id_of(spec: PieceSpec) -> int:
    return spec.type_id


@dataclass(frozen=True)
class Piece:
    spec: PieceSpec
    x: int = 0
    y: int = 0
    rotation: int = 0  # 0..3

    @property
    def kind(self) -> PieceType:
        if isinstance(self.spec, FixedShape):
            return self.spec.kind
        return self.spec

    @property
    def type_id(self) -> int:
        return type_id_of(self.spec)

    def shape(self) -> Shape:
        return shape_for(self.spec, self.rotation)

    def moved(self, dx: int = 0, dy: int = 0) -> "Piece":
        return replace(self, x=self.x + dx, y=self.y + dy)

    def rotated_to(self, rotation: int, dx: int = 0, dy: int = 0) -> "Piece":
        return replace(self, x=self.x + dx, y=self.y + dy, rotation=rotation % 4)

    def cells(self) -> List[Tuple[int, int]]:
        s = self.shape()
        h, w = s.shape
        cells: List[Tuple[int, int]] = []
        for dy in range(h):
            for dx in range(w):
                if s[dy, dx]:
                    cells.append((self.x + dx, self.y + dy))
        return cells
