"""Avatar-vs-obstacle proximity tests."""

from enum import Enum, auto

from dodger.game.entities import Avatar, Obstacle


class Contact(Enum):
    NONE = auto()
    NEAR_MISS = auto()  # Cosmetic only
    HIT = auto()        # Fatal


class CollisionDetector:
    """Classifies circle-circle proximity and detects escaped obstacles.

    ``warning_margin`` is the width of the near-miss band just outside the
    hit distance. ``bottom_margin`` is how far below the viewport an
    obstacle may fall before it is discarded.
    """

    def __init__(self, warning_margin: float = 20.0, bottom_margin: float = 50.0):
        self.warning_margin = warning_margin
        self.bottom_margin = bottom_margin

    def classify(self, avatar: Avatar, obstacle: Obstacle) -> Contact:
        return self.classify_distance(
            obstacle.distance_to(avatar.x, avatar.y),
            avatar.hit_radius,
            obstacle.radius,
        )

    def classify_distance(self, distance: float, hit_radius: float, obstacle_radius: float) -> Contact:
        min_distance = hit_radius + obstacle_radius
        if distance < min_distance:
            return Contact.HIT
        if distance < min_distance + self.warning_margin:
            return Contact.NEAR_MISS
        return Contact.NONE

    def escaped(self, obstacle: Obstacle, height: int) -> bool:
        """True once the obstacle is past the bottom margin."""
        return obstacle.y > height + self.bottom_margin
