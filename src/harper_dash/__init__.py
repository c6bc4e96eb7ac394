"""
Harper Dash: a single-lane runner with a small results backend.
"""

from .constants import ARCADE, CLASSIC, GameConfig
from .data_models import OBSTACLE_CATALOG, Actor, Obstacle, ObstacleType, SessionState, SessionStatus
from .session import GameSession

__version__ = "0.1.0"
