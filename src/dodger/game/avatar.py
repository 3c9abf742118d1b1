"""Avatar controller: smoothed pointer following inside the viewport."""

from typing import Tuple

from dodger.game.entities import Avatar


def clamp_axis(value: float, radius: float, extent: float) -> float:
    """Keep a circle of ``radius`` inside ``[0, extent]``.

    When the extent is narrower than the circle the centre is used.
    """
    low, high = radius, extent - radius
    if low > high:
        return extent / 2.0
    return max(low, min(high, value))


class AvatarController:
    """Moves the avatar a fixed fraction of the way to its target each tick.

    The lag is intentional; it gives the pointer a dragged feel rather
    than snapping the avatar under the cursor.
    """

    def __init__(self, smoothing: float = 0.25, trail_length: int = 12, start_offset: float = 60.0):
        if not 0.0 < smoothing < 1.0:
            raise ValueError("smoothing must be in (0, 1)")
        self.smoothing = smoothing
        self.trail_length = trail_length
        self.start_offset = start_offset

    def spawn(self, hit_radius: float, width: int, height: int) -> Avatar:
        """Create a run's avatar horizontally centred near the bottom edge."""
        x = clamp_axis(width / 2.0, hit_radius, width)
        y = clamp_axis(height - self.start_offset, hit_radius, height)
        return Avatar.spawn(x, y, hit_radius, self.trail_length)

    @staticmethod
    def set_target(avatar: Avatar, x: float, y: float) -> None:
        avatar.target_x = x
        avatar.target_y = y

    def update(self, avatar: Avatar, width: int, height: int) -> Tuple[float, float]:
        """Advance one tick: smooth, clamp, then record the trail point."""
        k = self.smoothing
        x = avatar.x + (avatar.target_x - avatar.x) * k
        y = avatar.y + (avatar.target_y - avatar.y) * k

        avatar.x = clamp_axis(x, avatar.hit_radius, width)
        avatar.y = clamp_axis(y, avatar.hit_radius, height)

        avatar.trail.append((avatar.x, avatar.y))
        return avatar.position
