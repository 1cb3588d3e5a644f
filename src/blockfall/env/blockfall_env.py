from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from blockfall.game import Action, GameConfig, GameSession, GameState, PieceType, ScoringRules, Scheduler


def _piece_code(state_piece) -> int:
    return 0 if state_piece is None else int(state_piece.type_id)


class BlockfallEnv(gym.Env):
    """One engine command per step, followed by `frame_ms` of game time.

    Gravity, lock delay and line-clear pauses all run on the session's
    virtual clock, so episodes are reproducible for a given seed.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 20}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        render_mode: Optional[str] = None,
        frame_ms: int = 50,
        max_episode_steps: int = 10_000,
    ) -> None:
        super().__init__()
        self.session = GameSession(config, rules, scheduler=Scheduler())
        self.render_mode = render_mode
        self.frame_ms = int(frame_ms)
        self.max_episode_steps = int(max_episode_steps)
        self._steps = 0

        cfg = self.session.engine.config
        n_types = len(PieceType) + 1  # 0 means no piece
        self.observation_space = spaces.Dict(
            {
                "board": spaces.Box(low=-7, high=7, shape=(cfg.height, cfg.width), dtype=np.int8),
                "next": spaces.Discrete(n_types),
                "held": spaces.Discrete(n_types),
                "can_hold": spaces.Discrete(2),
            }
        )
        self.action_space = spaces.Discrete(len(Action))

    def _get_obs(self) -> Dict[str, Any]:
        state = self.session.state
        return {
            "board": state.board_view().astype(np.int8),
            "next": _piece_code(state.next_piece),
            "held": _piece_code(state.held_piece),
            "can_hold": int(state.can_hold),
        }

    def _get_info(self) -> Dict[str, Any]:
        state = self.session.state
        return {
            "score": state.score,
            "lines_cleared": state.lines_cleared,
            "clearing": state.is_clearing,
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        # seed=None keeps both the env rng and the bag rng where they are
        game_seed = int(self.np_random.integers(0, 2**31 - 1)) if seed is not None else None
        self.session.restart(game_seed)
        self._steps = 0
        return self._get_obs(), self._get_info()

    def step(self, action: int):
        before = self.session.state.score
        accepted = self.session.apply(Action(int(action)))
        self.session.advance(self.frame_ms)
        self._steps += 1

        state: GameState = self.session.state
        reward = float(state.score - before)
        terminated = bool(state.game_over)
        truncated = self._steps >= self.max_episode_steps and not terminated

        info = self._get_info()
        info["accepted"] = accepted
        return self._get_obs(), reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode != "rgb_array":
            return None
        from blockfall.visualization.renderer import color_for_value

        view = self.session.state.board_view()
        cell = 12
        h, w = view.shape
        img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
        for y in range(h):
            for x in range(w):
                img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color_for_value(int(view[y, x]))
        return img

    def close(self) -> None:
        self.session.pause()
