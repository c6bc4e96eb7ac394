"""
physics_core.py: Deterministic actor kinematics and AABB collision logic.
"""

from typing import Iterable, Optional

from .constants import CLASSIC, GameConfig
from .data_models import Actor, Obstacle


def integrate(actor: Actor, gravity: float):
    """Applies one tick of gravity, then clamps the actor to the ground line."""
    actor.velocity_y += gravity
    actor.y += actor.velocity_y

    if actor.y > actor.ground_y:
        actor.y = actor.ground_y
        actor.velocity_y = 0.0
        actor.is_jumping = False


def move(actor: Actor, move_speed: float, canvas_width: float):
    """Horizontal variant: shifts the actor while a direction is held."""
    direction = int(actor.moving_right) - int(actor.moving_left)
    actor.velocity_x = direction * move_speed
    actor.x += actor.velocity_x
    actor.x = max(0.0, min(actor.x, canvas_width - actor.width))


def jump(actor: Actor, jump_force: float) -> bool:
    """
    Starts a jump. Does nothing while airborne, so a held jump input
    never stacks upward velocity. Returns whether velocity changed.
    """
    if actor.is_jumping:
        return False
    actor.velocity_y = jump_force
    actor.is_jumping = True
    return True


def collides(actor: Actor, obstacle: Obstacle, padding: float = 0.0) -> bool:
    """AABB overlap with `padding` pixels shrunk from every edge of both boxes."""
    p = padding
    return (
        actor.x + p < obstacle.x + obstacle.width - p and
        actor.x + actor.width - p > obstacle.x + p and
        actor.y + p < obstacle.y + obstacle.height - p and
        actor.y + actor.height - p > obstacle.y + p
    )


def first_hit(actor: Actor, obstacles: Iterable[Obstacle], padding: float = 0.0) -> Optional[Obstacle]:
    for obstacle in obstacles:
        if collides(actor, obstacle, padding):
            return obstacle
    return None


class PhysicsCore:
    """
    Binds the kinematic functions to one GameConfig so the session never
    has to thread parameters through every call.
    """

    def __init__(self, config: GameConfig = CLASSIC):
        self.config = config

    def step_actor(self, actor: Actor):
        """Single-tick update for the actor. Mutates the actor."""
        if self.config.horizontal_movement_enabled:
            move(actor, self.config.move_speed, self.config.canvas_width)
        integrate(actor, self.config.gravity)

    def jump(self, actor: Actor) -> bool:
        return jump(actor, self.config.jump_force)

    def check_collision(self, actor: Actor, obstacles: Iterable[Obstacle]) -> Optional[Obstacle]:
        """Returns the oldest obstacle the actor touches, if any."""
        return first_hit(actor, obstacles, self.config.hit_padding)
