#!/usr/bin/env python3
"""
runner_client.py

Desktop client: drives a GameSession with a fixed-timestep loop, renders it
with pygame and talks to the results server for submissions and leaderboards.
"""

import argparse
import logging
import os
import queue
import random
import threading
import time
from typing import Dict, Optional

import pygame

from .clock import Clock, FixedStep
from .constants import GAME_PORT, MODES, PLAYER_FILE, RENDER_FPS, GameConfig, get_mode
from .data_models import Obstacle
from .net_client import NetworkClient
from .session import GameSession

logger = logging.getLogger(__name__)

SKY_COLOR = (0xFF, 0xF3, 0xE0)
GROUND_COLOR = (0x8D, 0x6E, 0x63)
GRASS_COLOR = (0x2E, 0x7D, 0x32)
ACTOR_COLOR = (0x00, 0xC3, 0xFF)  # Harper Blue
TEXT_COLOR = (40, 40, 40)
OK_COLOR = (0x4C, 0xAF, 0x50)
ERROR_COLOR = (220, 40, 40)
PANEL_WIDTH = 260
EMOJI_FONTS = "notocoloremoji,segoeuiemoji,applecoloremoji,symbola"

JUMP_KEYS = (pygame.K_SPACE, pygame.K_UP)


# ----------------- Player profile -----------------

def load_player_name(path: str) -> Optional[str]:
    """The last name used for a submission, if one was saved."""
    try:
        with open(path, encoding="utf-8") as f:
            name = f.read().strip()
    except OSError:
        return None
    return name or None


def save_player_name(path: str, name: str):
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(name.strip() + "\n")
    except OSError as e:
        logger.warning("Could not save player name to %s: %s", path, e)


def _load_label_font(size: int = 36) -> Optional[pygame.font.Font]:
    path = pygame.font.match_font(EMOJI_FONTS)
    if not path:
        return None
    try:
        return pygame.font.Font(path, size)
    except (pygame.error, OSError):
        return None


class RunnerClient:
    def __init__(self, username: str, config: GameConfig, net: NetworkClient,
                 seed: Optional[int] = None, profile_path: Optional[str] = None):
        pygame.init()
        self.username = username
        self.config = config
        self.profile_path = profile_path
        self.screen = pygame.display.set_mode((config.canvas_width + PANEL_WIDTH, config.canvas_height))
        pygame.display.set_caption(f"Harper Dash: {username}")

        self.net = net

        # --- Game Logic ---
        self.clock = Clock()
        self.session = GameSession(config, rng=random.Random(seed), clock=self.clock)
        self.stepper = FixedStep()
        self.sim_time = 0.0

        # --- Submission ---
        # Worker threads report (ok, message) here; the main loop applies them
        self.results: "queue.Queue[tuple]" = queue.Queue()
        self.submit_thread: Optional[threading.Thread] = None
        self.submitted = False
        self.status_text = ""
        self.status_color = TEXT_COLOR
        self.show_history = False

        self.frame_clock = pygame.time.Clock()
        self.large_font = pygame.font.Font(None, 40)
        self.font = pygame.font.Font(None, 24)
        self.label_font = _load_label_font()
        self.label_cache: Dict[str, pygame.Surface] = {}

    def run(self):
        """The main client execution loop."""
        self.net.refresh_in_background()

        running = True
        while running:
            self.frame_clock.tick(RENDER_FPS)
            running = self.handle_events()

            # Held direction keys (arcade mode)
            keys = pygame.key.get_pressed()
            self.session.set_move_intent(left=keys[pygame.K_LEFT], right=keys[pygame.K_RIGHT])

            self.advance(self.clock.tick())
            self.drain_results()
            self._draw_game()

        self.net.close()
        pygame.quit()

    def handle_events(self) -> bool:
        """Applies queued pygame events. Returns False when the player quits."""
        running = True
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                running = self._handle_key(event.key) and running
            elif event.type in (pygame.MOUSEBUTTONDOWN, pygame.FINGERDOWN):
                self._primary_action()
        return running

    def advance(self, delta_ms: float):
        """Runs as many fixed simulation steps as `delta_ms` pays for."""
        for _ in range(self.stepper.consume(delta_ms)):
            if not self.session.is_running:
                break
            self.sim_time += self.stepper.step_ms
            self.session.tick(self.sim_time)
            if self.session.is_over:
                self._on_game_over()

    # ----------------- Input -----------------

    def _primary_action(self):
        """Space / Up / click / touch: start from the title screen, jump while running."""
        if self.session.is_idle:
            self._start()
        elif self.session.is_running:
            self.session.jump()

    def _handle_key(self, key) -> bool:
        if key == pygame.K_ESCAPE:
            return False
        if key in JUMP_KEYS:
            self._primary_action()
        elif key == pygame.K_RETURN and self.session.is_over and not self.submitted:
            self._submit_score()
        elif key == pygame.K_r and self.session.is_over:
            self._reset()
        elif key == pygame.K_h:
            self.show_history = True
            self.net.refresh_in_background(self.username)
        return True

    def _start(self):
        self.stepper.reset()
        self.session.start(self.sim_time)
        self.submitted = False
        self.status_text = ""

    def _reset(self):
        self.session.reset()
        self.submitted = False
        self.status_text = ""

    # ----------------- Results -----------------

    def _on_game_over(self):
        logger.info("Run over with score %d", self.session.score)
        self.status_text = "Press ENTER to submit, R to play again"
        self.status_color = TEXT_COLOR

    def _submit_score(self):
        self.submitted = True
        self.status_text = "Submitting..."
        self.status_color = TEXT_COLOR
        if self.profile_path:
            save_player_name(self.profile_path, self.username)
        state = self.session.state

        def work():
            ok, message = self.net.submit_run(self.username, state.score, state.duration_seconds)
            if ok:
                self.net.refresh_leaderboards()
            self.results.put((ok, message))

        self.submit_thread = threading.Thread(target=work, daemon=True)
        self.submit_thread.start()

    def drain_results(self):
        """Applies finished submissions on the main thread."""
        while True:
            try:
                ok, message = self.results.get_nowait()
            except queue.Empty:
                return
            self.status_text = message
            self.status_color = OK_COLOR if ok else ERROR_COLOR
            if not ok:
                # Let the player try again by hand
                self.submitted = False

    # ----------------- Rendering -----------------

    def _label_surface(self, obs: Obstacle) -> pygame.Surface:
        """The catalog label, or the type's initial when no emoji font is installed."""
        key = obs.kind.name
        if key not in self.label_cache:
            surface = None
            if self.label_font is not None:
                try:
                    surface = self.label_font.render(obs.label, True, (0, 0, 0))
                except pygame.error:
                    surface = None
            if surface is None:
                surface = self.font.render(obs.kind.name[0], True, (255, 255, 255))
            self.label_cache[key] = surface
        return self.label_cache[key]

    def _draw_game(self):
        """Renders the session state. Never writes to it."""
        screen = self.screen
        cfg = self.config
        screen.fill(SKY_COLOR)
        ground_top = cfg.canvas_height - cfg.ground_height

        # Ground and grass line
        pygame.draw.rect(screen, GROUND_COLOR, (0, ground_top, cfg.canvas_width, cfg.ground_height))
        pygame.draw.rect(screen, GRASS_COLOR, (0, ground_top, cfg.canvas_width, 10))

        state = self.session.state
        actor = state.actor
        pygame.draw.rect(screen, ACTOR_COLOR, (actor.x, actor.y, actor.width, actor.height))

        for obs in state.obstacles:
            pygame.draw.rect(screen, obs.color, (obs.x, obs.y, obs.width, obs.height))
            label = self._label_surface(obs)
            screen.blit(label, (obs.x + obs.width / 2 - label.get_width() / 2,
                                obs.y + obs.height / 2 - label.get_height() / 2))

        # HUD
        score_text = self.large_font.render(f"Score: {state.score}", True, TEXT_COLOR)
        screen.blit(score_text, (10, 10))

        if self.session.is_idle:
            self._draw_centered("Press SPACE or click to start", cfg.canvas_height // 3)
        elif self.session.is_over:
            self._draw_centered(f"Game over! Final score: {state.score}", cfg.canvas_height // 3)
        if self.status_text:
            surf = self.font.render(self.status_text, True, self.status_color)
            screen.blit(surf, (cfg.canvas_width // 2 - surf.get_width() // 2, cfg.canvas_height // 3 + 40))

        self._draw_leaderboards()

        instr = self.font.render("Space/Click = Jump | R = Again | H = History | Esc = Quit", True, (240, 240, 240))
        screen.blit(instr, (10, cfg.canvas_height - 30))

        pygame.display.flip()

    def _draw_centered(self, text: str, y: int):
        surf = self.large_font.render(text, True, TEXT_COLOR)
        self.screen.blit(surf, (self.config.canvas_width // 2 - surf.get_width() // 2, y))

    def _draw_leaderboards(self):
        data = self.net.snapshot()
        x = self.config.canvas_width + 10
        y = 10
        pygame.draw.rect(self.screen, (250, 250, 250), (self.config.canvas_width, 0, PANEL_WIDTH, self.config.canvas_height))

        def line(text, font=self.font, color=TEXT_COLOR, step=22):
            nonlocal y
            self.screen.blit(font.render(text, True, color), (x, y))
            y += step

        if self.show_history and data["history_player"]:
            line(f"{data['history_player']}'s runs", self.large_font, step=34)
            for run in data["history"][:10]:
                played = time.strftime("%m-%d %H:%M", time.localtime(run.created_at / 1000))
                line(f"{played}   {run.score}")
            y += 10

        line("Top Runs", self.large_font, step=34)
        for i, run in enumerate(data["top_runs"]):
            line(f"{i + 1}. {run.player_name}  {run.score}")

        y += 10
        line("All-time", self.large_font, step=34)
        for i, stats in enumerate(data["cumulative"]):
            line(f"{i + 1}. {stats.player_name}  {stats.total_score} ({stats.run_count})")

        if data["stale"]:
            line("leaderboard offline", color=ERROR_COLOR)


def parse_server(value: str):
    """HOST[:PORT] -> (host, port)."""
    host, sep, port = value.rpartition(":")
    if not sep:
        return value, GAME_PORT
    if not host:
        raise argparse.ArgumentTypeError(f"missing host in {value!r}")
    try:
        return host, int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port in {value!r}") from None


def main(argv=None):
    parser = argparse.ArgumentParser(description="Harper Dash runner")
    parser.add_argument("--name", help="Player name used for submissions")
    parser.add_argument("--mode", default="classic", choices=sorted(MODES))
    parser.add_argument("--seed", type=int, default=None, help="Seed obstacle randomness")
    parser.add_argument("--server", type=parse_server, default=None, help="HOST[:PORT], skips discovery")
    parser.add_argument("--profile", default=os.path.join(os.path.expanduser("~"), PLAYER_FILE),
                        help="File remembering the last player name")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    saved_name = load_player_name(args.profile)
    username = args.name
    if not username:
        prompt = f"Enter your name [{saved_name}]: " if saved_name else "Enter your name: "
        username = input(prompt).strip() or saved_name
    username = username or f"Player{time.time() * 1000 % 1000:0.0f}"

    net = NetworkClient(server_addr=args.server)
    if net.server_addr is None and not net.discover_server():
        logger.warning("Could not find server. Playing offline.")

    client = RunnerClient(username, get_mode(args.mode), net, seed=args.seed, profile_path=args.profile)
    client.run()


if __name__ == "__main__":
    main()
