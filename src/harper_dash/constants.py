"""
constants.py: Centralized configuration for game, physics and network settings.
"""

from dataclasses import dataclass, replace

from .errors import ConfigError

# -------- Network & Server Config --------
GAME_PORT = 50017
DISCOVERY_PORT = 37030
BUFFER_SIZE = 65536
SERVER_DISCOVERY_TIMEOUT = 5.0  # seconds
REQUEST_TIMEOUT = 2.0           # seconds to wait for a reply
DISCOVERY_INTERVAL = 2.0        # seconds between discovery broadcasts

# -------- Persistence Config --------
DB_FILE = "harper_dash.db"
PLAYER_FILE = ".harper_dash_player"   # Remembers the last submitted name
TOP_RUNS_LIMIT = 10
CUMULATIVE_LIMIT = 10
PLAYER_RUNS_LIMIT = 20
MAX_QUERY_LIMIT = 100
MAX_STORED_INT = 2 ** 63 - 1  # SQLite INTEGER range

# Time synchronization
SIM_TICK_RATE = 60                  # Simulation steps per second
TICK_MS = 1000.0 / SIM_TICK_RATE    # Fixed time step in milliseconds
MAX_STEPS_PER_FRAME = 8
MAX_FRAME_DELTA_MS = 250.0
RENDER_FPS = 60

# -------- Game World Config --------
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 400
GROUND_HEIGHT = 50
ACTOR_X = 50
ACTOR_WIDTH = 40
ACTOR_HEIGHT = 40

# -------- Physics Config (pixels / tick) --------
GRAVITY = 0.6
JUMP_FORCE = -12.0              # Initial velocity when jumping
GAME_SPEED_INITIAL = 3.0
MOVE_SPEED = 5.0                # Horizontal displacement per tick (arcade)

# -------- Spawn Config (milliseconds) --------
SPAWN_RATE_MIN = 1000
SPAWN_RATE_MAX = 2500


@dataclass(frozen=True)
class GameConfig:
    """Tunable parameter set for one flavour of the runner."""
    canvas_width: int = CANVAS_WIDTH
    canvas_height: int = CANVAS_HEIGHT
    ground_height: int = GROUND_HEIGHT
    actor_x: float = ACTOR_X
    actor_width: float = ACTOR_WIDTH
    actor_height: float = ACTOR_HEIGHT
    gravity: float = GRAVITY
    jump_force: float = JUMP_FORCE
    initial_speed: float = GAME_SPEED_INITIAL
    spawn_min_interval: float = SPAWN_RATE_MIN
    spawn_max_interval: float = SPAWN_RATE_MAX
    hit_padding: float = 0.0
    horizontal_movement_enabled: bool = False
    move_speed: float = MOVE_SPEED

    def __post_init__(self):
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise ConfigError("canvas dimensions must be positive")
        if self.ground_height < 0 or self.ground_height + self.actor_height > self.canvas_height:
            raise ConfigError("ground and actor must fit inside the canvas")
        if self.gravity <= 0:
            raise ConfigError("gravity must be > 0")
        if self.jump_force >= 0:
            raise ConfigError("jump_force must be negative (upward)")
        if self.initial_speed < 0:
            raise ConfigError("initial_speed must be >= 0")
        if not 0 <= self.spawn_min_interval <= self.spawn_max_interval:
            raise ConfigError("spawn interval must satisfy 0 <= min <= max")
        if self.hit_padding < 0:
            raise ConfigError("hit_padding must be >= 0")

    @property
    def ground_y(self) -> float:
        """Resting y of the actor's top edge."""
        return self.canvas_height - self.ground_height - self.actor_height

    def with_overrides(self, **changes) -> "GameConfig":
        return replace(self, **changes)


CLASSIC = GameConfig()
ARCADE = GameConfig(
    horizontal_movement_enabled=True,
    hit_padding=5.0,
    initial_speed=4.0,
)

MODES = {
    "classic": CLASSIC,
    "arcade": ARCADE,
}


def get_mode(name: str) -> GameConfig:
    try:
        return MODES[name.lower()]
    except KeyError:
        raise ConfigError(f"Unknown mode {name!r} (expected one of: {', '.join(MODES)})") from None
