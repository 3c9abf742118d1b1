"""Tests for hit, near-miss and escape detection."""

import unittest

from dodger.game.collision import CollisionDetector, Contact
from dodger.game.entities import Avatar

from support import make_obstacle


class TestCollisionDetector(unittest.TestCase):

    def setUp(self):
        self.detector = CollisionDetector(warning_margin=20, bottom_margin=50)
        self.avatar = Avatar.spawn(100, 100, hit_radius=10, trail_length=4)

    def test_distance_bands(self):
        """Hit radius 10 against obstacle radius 30: hit below 40, warning below 60."""
        classify = self.detector.classify_distance
        self.assertEqual(classify(35, 10, 30), Contact.HIT)
        self.assertEqual(classify(40, 10, 30), Contact.NEAR_MISS)
        self.assertEqual(classify(59.9, 10, 30), Contact.NEAR_MISS)
        self.assertEqual(classify(60, 10, 30), Contact.NONE)

    def test_distance_38_against_radius_30_is_a_hit(self):
        """The contact threshold is the sum of both radii, 10 + 30 = 40.

        A centre distance of 38 is inside that threshold, so it ends the run
        rather than counting as a near miss.
        """
        classify = self.detector.classify_distance
        self.assertEqual(classify(38, 10, 30), Contact.HIT)
        self.assertNotEqual(classify(38, 10, 30), Contact.NEAR_MISS)
        self.assertEqual(classify(35, 10, 30), Contact.HIT)

    def test_near_miss_band_for_small_obstacle(self):
        classify = self.detector.classify_distance
        self.assertEqual(classify(38, 10, 15), Contact.NEAR_MISS)
        self.assertEqual(classify(24, 10, 15), Contact.HIT)

    def test_classify_uses_positions(self):
        self.assertEqual(
            self.detector.classify(self.avatar, make_obstacle(100, 120, radius=15)),
            Contact.HIT,
        )
        self.assertEqual(
            self.detector.classify(self.avatar, make_obstacle(130, 100, radius=15)),
            Contact.NEAR_MISS,
        )
        self.assertEqual(
            self.detector.classify(self.avatar, make_obstacle(300, 300, radius=15)),
            Contact.NONE,
        )

    def test_escape_after_bottom_margin(self):
        obstacle = make_obstacle(50, -30, radius=15, vy=8)
        ticks = 0
        while not self.detector.escaped(obstacle, 700):
            obstacle.advance()
            ticks += 1

        # -30 + 8n > 750
        self.assertEqual(ticks, 98)
        self.assertGreater(obstacle.y, 750)


if __name__ == "__main__":
    unittest.main()
