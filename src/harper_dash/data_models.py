"""
data_models.py: Data structures for the game state and persisted runs.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import CLASSIC, GameConfig


@dataclass(frozen=True)
class ObstacleType:
    """A catalog entry. Catalog entries are never mutated at runtime."""
    name: str
    width: float
    height: float
    color: tuple
    label: str


OBSTACLE_CATALOG = (
    ObstacleType("Turkey", 45, 45, (0x8D, 0x6E, 0x63), "\U0001F983"),
    ObstacleType("Pie", 45, 30, (0xE6, 0x7E, 0x22), "\U0001F967"),
    ObstacleType("Corn", 30, 60, (0xF1, 0xC4, 0x0F), "\U0001F33D"),
    ObstacleType("Leaves", 50, 50, (0xD3, 0x54, 0x00), "\U0001F342"),
    ObstacleType("Hat", 45, 45, (0x2C, 0x3E, 0x50), "\U0001F3A9"),
)


@dataclass
class Actor:
    """The player-controlled runner."""
    x: float
    y: float
    width: float
    height: float
    ground_y: float
    velocity_y: float = 0.0
    velocity_x: float = 0.0
    is_jumping: bool = False

    # Held horizontal intents (arcade mode only)
    moving_left: bool = False
    moving_right: bool = False

    @classmethod
    def spawn(cls, config: GameConfig = CLASSIC) -> "Actor":
        """Default pose: standing on the ground at the configured x."""
        return cls(
            x=float(config.actor_x),
            y=float(config.ground_y),
            width=config.actor_width,
            height=config.actor_height,
            ground_y=float(config.ground_y),
        )


@dataclass
class Obstacle:
    """A live hazard scrolling towards the actor."""
    x: float
    y: float
    width: float
    height: float
    kind: ObstacleType
    passed: bool = False

    @property
    def label(self) -> str:
        return self.kind.label

    @property
    def color(self) -> tuple:
        return self.kind.color


class SessionStatus(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    GAME_OVER = "game_over"


@dataclass
class SessionState:
    """Everything one play attempt owns. Mutated only by its GameSession."""
    actor: Actor
    status: SessionStatus = SessionStatus.IDLE
    score: int = 0
    speed: float = 0.0
    started_at: float = 0.0
    last_spawn_at: float = 0.0
    ended_at: Optional[float] = None
    tick_count: int = 0
    obstacles: List[Obstacle] = field(default_factory=list)
    hit: Optional[Obstacle] = None  # The obstacle that ended the session

    @property
    def duration_seconds(self) -> int:
        return self.score


@dataclass(frozen=True)
class GameRun:
    """A persisted play session. Immutable once created."""
    id: int
    player_name: str
    score: int
    duration_seconds: int
    created_at: int  # epoch milliseconds

    def to_dict(self):
        return {
            "id": self.id,
            "player_name": self.player_name,
            "score": self.score,
            "duration_seconds": self.duration_seconds,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameRun":
        return cls(
            id=data["id"],
            player_name=data["player_name"],
            score=data["score"],
            duration_seconds=data["duration_seconds"],
            created_at=data["created_at"],
        )


@dataclass(frozen=True)
class PlayerStats:
    """Cumulative leaderboard row for one player."""
    player_name: str
    best_score: int
    total_score: int
    run_count: int
    last_played_at: int

    def to_dict(self):
        return {
            "player_name": self.player_name,
            "best_score": self.best_score,
            "total_score": self.total_score,
            "run_count": self.run_count,
            "last_played_at": self.last_played_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerStats":
        return cls(
            player_name=data["player_name"],
            best_score=data["best_score"],
            total_score=data["total_score"],
            run_count=data["run_count"],
            last_played_at=data["last_played_at"],
        )
