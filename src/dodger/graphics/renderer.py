"""Draws simulation snapshots into RGB buffers.

The core only knows archetype names and radii; colours and shapes are
decided here.
"""

import math
from typing import Dict, Optional

import numpy as np
from numpy.typing import NDArray

from dodger.effects.particles import ParticleSystem
from dodger.game.entities import Snapshot
from dodger.graphics.primitives import Color, draw_disc, draw_line, draw_ring, draw_trail, fill

ARCHETYPE_COLORS: Dict[str, Color] = {
    "pebble": (255, 107, 107),
    "stone": (78, 205, 196),
    "rock": (255, 230, 109),
    "boulder": (149, 225, 211),
}

BACKGROUND: Color = (18, 18, 32)
AVATAR_COLOR: Color = (255, 107, 157)
HITBOX_COLOR: Color = (255, 255, 255)
TRAIL_COLOR: Color = (255, 150, 200)
FALLBACK_COLOR: Color = (200, 200, 200)


class Renderer:
    """Renders snapshots to a (height, width, 3) uint8 buffer."""

    def __init__(self, show_trail: bool = True, show_hitbox: bool = False):
        self.show_trail = show_trail
        self.show_hitbox = show_hitbox
        self._buffer: Optional[NDArray[np.uint8]] = None

    def buffer_for(self, width: int, height: int) -> NDArray[np.uint8]:
        """Reuse one buffer per viewport size."""
        if self._buffer is None or self._buffer.shape[:2] != (height, width):
            self._buffer = np.zeros((height, width, 3), dtype=np.uint8)
        return self._buffer

    def render(self, snapshot: Snapshot, particles: Optional[ParticleSystem] = None) -> NDArray[np.uint8]:
        buffer = self.buffer_for(snapshot.width, snapshot.height)
        fill(buffer, BACKGROUND)

        for obstacle in snapshot.obstacles:
            color = ARCHETYPE_COLORS.get(obstacle.archetype, FALLBACK_COLOR)
            draw_disc(buffer, obstacle.x, obstacle.y, obstacle.radius, color)
            # Spoke shows the spin
            tip_x = obstacle.x + math.cos(obstacle.rotation) * obstacle.radius
            tip_y = obstacle.y + math.sin(obstacle.rotation) * obstacle.radius
            draw_line(buffer, int(obstacle.x), int(obstacle.y), int(tip_x), int(tip_y), BACKGROUND)

        avatar = snapshot.avatar
        if avatar is not None:
            if self.show_trail and avatar.trail:
                draw_trail(buffer, avatar.trail, TRAIL_COLOR)
            # Sprite is drawn larger than the lethal hitbox
            draw_disc(buffer, avatar.x, avatar.y, avatar.hit_radius * 2.0, AVATAR_COLOR)
            if self.show_hitbox:
                draw_ring(buffer, avatar.x, avatar.y, avatar.hit_radius, HITBOX_COLOR)

        if particles is not None:
            particles.render(buffer)

        return buffer
