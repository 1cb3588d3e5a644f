"""Game module for Blockfall.

Exports the rules engine and supporting classes:
- PieceType / Piece / FixedShape: piece catalog with SRS rotations and kicks
- BagRandomizer: 7-bag piece sequence
- GameGrid: immutable board with collision, locking and line clearing
- ScoringRules / GameConfig: scoring table, gravity curve and board setup
- GameState: immutable snapshot published on every change
- GameEngine: piece lifecycle state machine
- Scheduler / TimingCoordinator: gravity, lock-delay and line-clear timers
- GameSession: serialized owner that ties it all together
"""

from .pieces import FixedShape, Piece, PieceType, kick_offsets, shape_for
from .randomizer import BagRandomizer
from .grid import GameGrid, LockResult
from .rules import GameConfig, ScoringRules
from .state import GameState
from .core import Action, GameEngine, LockDelay, Outcome
from .timing import Scheduler, Timer, TimingCoordinator
from .session import GameSession

__all__ = [
    "FixedShape",
    "Piece",
    "PieceType",
    "kick_offsets",
    "shape_for",
    "BagRandomizer",
    "GameGrid",
    "LockResult",
    "GameConfig",
    "ScoringRules",
    "GameState",
    "Action",
    "GameEngine",
    "LockDelay",
    "Outcome",
    "Scheduler",
    "Timer",
    "TimingCoordinator",
    "GameSession",
]
