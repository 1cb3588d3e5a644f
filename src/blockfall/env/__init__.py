"""Gymnasium environments for Blockfall."""

from __future__ import annotations

from gymnasium.envs.registration import register

# Register the standard 10x22 board, one frame per step
register(
    id="Blockfall-10x22-v0",
    entry_point="blockfall.env.blockfall_env:BlockfallEnv",
)

__all__ = ["Blockfall-10x22-v0"]
