"""
session.py: The play-session state machine (Idle -> Running -> GameOver).

The session owns the actor and the live obstacles. It never schedules
anything itself: the driving loop calls tick() once per simulation step
and renders the returned state afterwards.
"""

import logging
import math
import random
from typing import Optional, Sequence

from .clock import Clock
from .constants import CLASSIC, GameConfig
from .data_models import OBSTACLE_CATALOG, Actor, ObstacleType, SessionState, SessionStatus
from .errors import SessionStateError
from .physics_core import PhysicsCore
from .physics_spawner import ObstacleSpawner
from .physics_world import advance

logger = logging.getLogger(__name__)


class GameSession:
    def __init__(self, config: GameConfig = CLASSIC,
                 catalog: Sequence[ObstacleType] = OBSTACLE_CATALOG,
                 rng: Optional[random.Random] = None,
                 clock: Optional[Clock] = None):
        self.config = config
        self.clock = clock or Clock()
        self.physics = PhysicsCore(config)
        self.spawner = ObstacleSpawner(config, catalog, rng)
        self.state = SessionState(actor=Actor.spawn(config), speed=config.initial_speed)

    # ----- Queries -----

    @property
    def status(self) -> SessionStatus:
        return self.state.status

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def is_idle(self) -> bool:
        return self.state.status is SessionStatus.IDLE

    @property
    def is_running(self) -> bool:
        return self.state.status is SessionStatus.RUNNING

    @property
    def is_over(self) -> bool:
        return self.state.status is SessionStatus.GAME_OVER

    # ----- Transitions -----

    def start(self, now: Optional[float] = None) -> bool:
        """Begins a new run. Returns False (and changes nothing) if one is in progress."""
        if self.is_running:
            return False
        if now is None:
            now = self.clock.now_ms()

        self.state = SessionState(
            actor=Actor.spawn(self.config),
            status=SessionStatus.RUNNING,
            speed=self.config.initial_speed,
            started_at=now,
            last_spawn_at=now,
        )
        logger.info("Session started at t=%.0fms", now)
        return True

    def reset(self):
        """Back to Idle with a fresh actor and no obstacles ("play again")."""
        self.state = SessionState(actor=Actor.spawn(self.config), speed=self.config.initial_speed)

    def tick(self, now: Optional[float] = None) -> SessionState:
        """Advances the running session by one simulation step."""
        if not self.is_running:
            raise SessionStateError(f"tick() requires a running session (status: {self.state.status.value})")
        if now is None:
            now = self.clock.now_ms()

        state = self.state
        state.tick_count += 1

        # 1. Score and difficulty derive from survival time
        elapsed = max(0.0, now - state.started_at)
        state.score = math.floor(elapsed / 1000.0)
        state.speed = self.config.initial_speed + state.score / 10

        # 2. Actor physics
        self.physics.step_actor(state.actor)

        # 3. Spawning
        obstacle, state.last_spawn_at = self.spawner.maybe_spawn(now, state.last_spawn_at)
        if obstacle is not None:
            state.obstacles.append(obstacle)

        # 4. Scroll and cull
        removed = advance(state.obstacles, state.speed)
        if removed:
            logger.debug("Culled %d obstacle(s)", len(removed))

        # 5. Collisions, oldest obstacle first
        hit = self.physics.check_collision(state.actor, state.obstacles)
        if hit is not None:
            state.status = SessionStatus.GAME_OVER
            state.ended_at = now
            state.hit = hit
            logger.info("Game over: hit %s, score %d", hit.kind.name, state.score)

        return state

    # ----- Input -----

    def jump(self) -> bool:
        """Jumps while running. Repeated calls while airborne are ignored."""
        if not self.is_running:
            return False
        return self.physics.jump(self.state.actor)

    def set_move_intent(self, left: bool = False, right: bool = False):
        if not self.config.horizontal_movement_enabled:
            return
        self.state.actor.moving_left = left
        self.state.actor.moving_right = right
