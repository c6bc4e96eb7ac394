"""
physics_world.py: Scrolls the live obstacles and culls those that left the screen.
"""

from typing import List

from .data_models import Obstacle


def advance(obstacles: List[Obstacle], speed: float) -> List[Obstacle]:
    """
    Moves every obstacle left by `speed` and removes, in place, those whose
    right edge is past x=0. Survivors keep spawn order. Returns the removed ones.
    """
    for obstacle in obstacles:
        obstacle.x -= speed

    removed = [o for o in obstacles if o.x + o.width < 0]
    if removed:
        obstacles[:] = [o for o in obstacles if o.x + o.width >= 0]
    return removed
