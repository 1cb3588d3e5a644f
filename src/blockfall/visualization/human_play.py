from __future__ import annotations

import argparse
import logging
import os
from typing import Callable, Dict

import pygame

from blockfall.game import GameConfig, GameSession, Scheduler
from blockfall.settings import JsonSettingsStore
from .renderer import Renderer


DEFAULT_SETTINGS = os.path.join(os.path.expanduser("~"), ".blockfall", "settings.json")


def _key_bindings(session: GameSession) -> Dict[int, Callable[[], object]]:
    return {
        pygame.K_LEFT: lambda: session.move_horizontal(-1),
        pygame.K_RIGHT: lambda: session.move_horizontal(1),
        pygame.K_UP: lambda: session.rotate(True),
        pygame.K_x: lambda: session.rotate(True),
        pygame.K_z: lambda: session.rotate(False),
        pygame.K_DOWN: session.soft_drop,
        pygame.K_SPACE: session.hard_drop,
        pygame.K_c: session.hold,
        pygame.K_LSHIFT: session.hold,
        pygame.K_r: session.restart,
    }


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play Blockfall with the keyboard")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--cell_size", type=int, default=28)
    p.add_argument("--settings", type=str, default=DEFAULT_SETTINGS,
                   help="JSON file holding the high score and ghost-piece toggle")
    p.add_argument("--no_ghost", action="store_true", help="Hide the ghost piece and remember the choice")
    p.add_argument("--log_level", type=str, default="INFO")
    return p


def run(args: argparse.Namespace) -> None:
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    settings = JsonSettingsStore(args.settings)
    if args.no_ghost:
        settings.set_show_ghost_piece(False)

    pygame.init()
    try:
        clock = pygame.time.Clock()
        config = GameConfig(random_seed=args.seed)
        session = GameSession(config, settings=settings, scheduler=Scheduler(pygame.time.get_ticks()))
        renderer = Renderer(cell_size=args.cell_size)
        screen = pygame.display.set_mode(renderer.window_size(config.width, config.height))
        pygame.display.set_caption("Blockfall")
        bindings = _key_bindings(session)
        show_ghost = session.show_ghost_piece

        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_p:
                        if session.paused:
                            session.resume()
                        else:
                            session.pause()
                    else:
                        handler = bindings.get(event.key)
                        if handler is not None:
                            handler()

            # Timers: gravity, lock delay, line clear
            session.update(pygame.time.get_ticks())

            renderer.draw(screen, session.state, show_ghost=show_ghost,
                          top_score=session.top_score, paused=session.paused)

            if session.state.game_over:
                font = pygame.font.SysFont(None, 36)
                text = font.render("Game Over - R to restart, ESC to quit", True, (255, 255, 255))
                rect = text.get_rect(center=(screen.get_width() // 2, 30))
                screen.blit(text, rect)
                pygame.display.flip()

            clock.tick(60)
    finally:
        pygame.quit()


def main() -> None:
    run(build_parser().parse_args())


if __name__ == "__main__":  # pragma: no cover
    main()
