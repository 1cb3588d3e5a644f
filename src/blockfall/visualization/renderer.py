from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
import pygame

from blockfall.game import GameState, Piece
from blockfall.game.state import GHOST_CELL


def color_for_value(v: int) -> Tuple[int, int, int]:
    palette = {
        0: (20, 20, 26),
        1: (0, 240, 240),  # I
        2: (240, 240, 0),  # O
        3: (160, 0, 240),  # T
        4: (0, 240, 0),    # S
        5: (240, 0, 0),    # Z
        6: (0, 0, 240),    # J
        7: (240, 160, 0),  # L
        GHOST_CELL: (70, 70, 84),
    }
    return palette.get(abs(v), (200, 200, 200))


class Renderer:
    def __init__(self, cell_size: int = 30, margin: int = 20, hidden_rows: int = 2) -> None:
        self.cell_size = cell_size
        self.margin = margin
        self.hidden_rows = hidden_rows
        self._font: Optional[pygame.font.Font] = None

    def window_size(self, width: int, height: int) -> Tuple[int, int]:
        visible = height - self.hidden_rows
        side = 6 * self.cell_size
        return (width * self.cell_size + side + self.margin * 3, visible * self.cell_size + self.margin * 2)

    def _font_obj(self) -> pygame.font.Font:
        if self._font is None:
            self._font = pygame.font.SysFont(None, 24)
        return self._font

    def _grid_surface(self, view: np.ndarray, clearing: Tuple[int, ...]) -> pygame.Surface:
        view = view[self.hidden_rows :]
        h, w = view.shape
        surf = pygame.Surface((w * self.cell_size, h * self.cell_size))
        surf.fill((30, 30, 36))
        for y in range(h):
            flashing = (y + self.hidden_rows) in clearing
            for x in range(w):
                color = (255, 255, 255) if flashing else color_for_value(int(view[y, x]))
                rect = pygame.Rect(
                    x * self.cell_size,
                    y * self.cell_size,
                    self.cell_size - 1,
                    self.cell_size - 1,
                )
                pygame.draw.rect(surf, color, rect)
        return surf

    def _preview(self, screen: pygame.Surface, piece: Optional[Piece], label: str, top: int, left: int) -> None:
        font = self._font_obj()
        screen.blit(font.render(label, True, (220, 220, 220)), (left, top))
        if piece is None:
            return
        shape = piece.shape()
        size = self.cell_size // 2
        for dy in range(shape.shape[0]):
            for dx in range(shape.shape[1]):
                if shape[dy, dx]:
                    rect = pygame.Rect(left + dx * size, top + 24 + dy * size, size - 1, size - 1)
                    pygame.draw.rect(screen, color_for_value(piece.type_id), rect)

    def draw(
        self,
        screen: pygame.Surface,
        state: GameState,
        show_ghost: bool = True,
        top_score: int = 0,
        paused: bool = False,
    ) -> None:
        grid_surf = self._grid_surface(state.board_view(include_ghost=show_ghost), state.clearing_lines)
        screen.fill((10, 10, 14))
        screen.blit(grid_surf, (self.margin, self.margin))

        left = self.margin * 2 + grid_surf.get_width()
        font = self._font_obj()
        self._preview(screen, state.next_piece, "Next", self.margin, left)
        self._preview(screen, state.held_piece, "Hold", self.margin + 4 * self.cell_size, left)
        lines = [
            f"Score {state.score}",
            f"Top {max(top_score, state.score)}",
            f"Lines {state.lines_cleared}",
            f"Speed {state.gravity_interval_ms}ms",
        ]
        if paused:
            lines.append("Paused")
        for i, text in enumerate(lines):
            screen.blit(font.render(text, True, (220, 220, 220)), (left, self.margin + 8 * self.cell_size + i * 24))
        pygame.display.flip()
