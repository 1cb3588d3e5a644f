"""Settings collaborators: high score and ghost-piece preference.

The engine only sees the `SettingsStore` protocol. `JsonSettingsStore` keeps
both values in a small JSON file; `MemorySettingsStore` is for tests and
headless runs.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Protocol, Union


logger = logging.getLogger(__name__)


class SettingsStore(Protocol):
    def load_high_score(self) -> int: ...

    def save_high_score(self, score: int) -> None: ...

    def show_ghost_piece(self) -> bool: ...


@dataclass
class MemorySettingsStore:
    high_score: int = 0
    ghost_piece: bool = True
    saved_scores: List[int] = field(default_factory=list)

    def load_high_score(self) -> int:
        return self.high_score

    def save_high_score(self, score: int) -> None:
        self.saved_scores.append(int(score))
        self.high_score = int(score)

    def show_ghost_piece(self) -> bool:
        return self.ghost_piece

    def set_show_ghost_piece(self, show: bool) -> None:
        self.ghost_piece = bool(show)


class JsonSettingsStore:
    """Settings persisted as `{"high_score": int, "show_ghost_piece": bool}`."""

    def __init__(self, path: Union[str, os.PathLike]) -> None:
        self.path = Path(path)

    def _read(self) -> dict:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: expected an object", self.path)
            return {}
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".settings-", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, self.path)
        except OSError:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def load_high_score(self) -> int:
        value = self._read().get("high_score", 0)
        try:
            return max(0, int(value))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid high score %r in %s", value, self.path)
            return 0

    def save_high_score(self, score: int) -> None:
        data = self._read()
        data["high_score"] = int(score)
        self._write(data)

    def show_ghost_piece(self) -> bool:
        return bool(self._read().get("show_ghost_piece", True))

    def set_show_ghost_piece(self, show: bool) -> None:
        data = self._read()
        data["show_ghost_piece"] = bool(show)
        self._write(data)
