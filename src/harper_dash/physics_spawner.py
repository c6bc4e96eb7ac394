"""
physics_spawner.py: Randomized obstacle generation.
"""

import logging
import random
from typing import Optional, Sequence, Tuple

from .constants import CLASSIC, GameConfig
from .data_models import OBSTACLE_CATALOG, Obstacle, ObstacleType

logger = logging.getLogger(__name__)


class ObstacleSpawner:
    """
    Spawns obstacles at the right edge of the world. The waiting time is
    redrawn on every check, so arrivals form a renewal process bounded by
    [min_interval, max_interval) rather than a periodic timer.
    """

    def __init__(self, config: GameConfig = CLASSIC,
                 catalog: Sequence[ObstacleType] = OBSTACLE_CATALOG,
                 rng: Optional[random.Random] = None):
        if not catalog:
            raise ValueError("obstacle catalog must not be empty")
        self.config = config
        self.catalog = tuple(catalog)
        self.rng = rng or random.Random()

    def draw_interval(self, min_interval: float, max_interval: float) -> float:
        return min_interval + self.rng.random() * (max_interval - min_interval)

    def create(self, kind: ObstacleType) -> Obstacle:
        """Places an obstacle of the given type just off-screen, resting on the ground."""
        return Obstacle(
            x=float(self.config.canvas_width),
            y=float(self.config.canvas_height - self.config.ground_height - kind.height),
            width=kind.width,
            height=kind.height,
            kind=kind,
        )

    def maybe_spawn(self, now: float, last_spawn_at: float,
                    min_interval: Optional[float] = None,
                    max_interval: Optional[float] = None) -> Tuple[Optional[Obstacle], float]:
        """
        Returns (new obstacle or None, last spawn timestamp to store).
        """
        if min_interval is None:
            min_interval = self.config.spawn_min_interval
        if max_interval is None:
            max_interval = self.config.spawn_max_interval

        if now - last_spawn_at <= self.draw_interval(min_interval, max_interval):
            return None, last_spawn_at

        obstacle = self.create(self.rng.choice(self.catalog))
        logger.debug("Spawned %s at t=%.0fms", obstacle.kind.name, now)
        return obstacle, now
