from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ScoringRules:
    line_clear_scores: tuple[int, int, int, int] = (100, 300, 500, 800)
    # T-Spin with 0, 1, 2 lines; any other T-Spin clear scores the 0-line value
    t_spin_scores: tuple[int, int, int] = (400, 800, 1200)
    soft_drop_points: int = 1
    hard_drop_points: int = 2
    t_spin_corner_threshold: int = 3
    base_gravity_ms: int = 500
    gravity_step_ms: int = 50
    lines_per_speedup: int = 10
    min_gravity_ms: int = 100

    def score_for_lines(self, lines: int, t_spin: bool = False) -> int:
        if t_spin:
            return self.t_spin_scores[lines] if lines in (1, 2) else self.t_spin_scores[0]
        if lines <= 0:
            return 0
        return self.line_clear_scores[lines - 1]

    def is_t_spin(self, corners: int) -> bool:
        return corners >= self.t_spin_corner_threshold

    def gravity_interval_ms(self, total_lines: int) -> int:
        speedups = total_lines // self.lines_per_speedup
        return max(self.min_gravity_ms, self.base_gravity_ms - self.gravity_step_ms * speedups)


@dataclass
class GameConfig:
    width: int = 10
    height: int = 22
    spawn_x: Optional[int] = None  # defaults to width // 2 - 1
    spawn_y: int = 0
    random_seed: Optional[int] = None
    lock_delay_ms: int = 500
    line_clear_delay_ms: int = 200

    def __post_init__(self) -> None:
        if self.width < 4 or self.height < 4:
            raise ValueError(f"Board must be at least 4x4, got {self.width}x{self.height}")

    @property
    def spawn_column(self) -> int:
        if self.spawn_x is None:
            return self.width // 2 - 1
        return self.spawn_x
