from __future__ import annotations

import random
from collections import deque
from typing import Deque, Optional, Tuple, Union

from .pieces import PieceType


class BagRandomizer:
    """7-bag piece generator.

    Each refill is one uniformly shuffled permutation of all seven types, so
    any 7 draws starting at a fill boundary contain every type exactly once.
    """

    def __init__(self, rng: Union[random.Random, int, None] = None) -> None:
        if isinstance(rng, random.Random):
            self.rng = rng
        else:
            self.rng = random.Random(rng)
        self._bag: Deque[PieceType] = deque()
        self._fill()

    def _fill(self) -> None:
        pieces = list(PieceType)
        self.rng.shuffle(pieces)
        self._bag.extend(pieces)

    def next(self) -> PieceType:
        if not self._bag:
            self._fill()
        return self._bag.popleft()

    __next__ = next

    def __iter__(self) -> "BagRandomizer":
        return self

    def restart(self, seed: Optional[int] = None) -> None:
        """Drop the remaining bag and start a fresh one."""
        if seed is not None:
            self.rng.seed(seed)
        self._bag.clear()
        self._fill()

    def peek(self) -> Tuple[PieceType, ...]:
        return tuple(self._bag)

    def __len__(self) -> int:
        return len(self._bag)
