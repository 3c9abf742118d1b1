"""Tests for the simulation tick pipeline and run lifecycle."""

import asyncio
import random
import unittest

from dodger.config.settings import CollisionSettings
from dodger.core.events import EventBus, EventType, pointer_event, resize_event, start_event
from dodger.core.state import Phase
from dodger.game.patterns import Pattern
from dodger.game.simulation import Simulation

from support import CALM, Recorder, calm_catalog, make_obstacle, make_settings


def make_simulation(*extra: Pattern, **settings) -> Simulation:
    return Simulation(
        settings=make_settings(**settings),
        catalog=calm_catalog(*extra),
        event_bus=EventBus(),
        rng=random.Random(11),
    )


class TestRunLifecycle(unittest.TestCase):

    def setUp(self):
        self.sim = make_simulation(pattern="calm")
        self.recorder = Recorder(self.sim.event_bus)

    def test_idle_tick_changes_nothing(self):
        snapshot = self.sim.tick(16)
        self.assertEqual(snapshot.phase, Phase.IDLE)
        self.assertEqual(snapshot.tick, 0)
        self.assertEqual(snapshot.score, 0)
        self.assertIsNone(snapshot.avatar)
        self.assertEqual(snapshot.events, ())
        self.assertEqual(self.recorder.events, [])

    def test_start_only_from_idle(self):
        self.assertTrue(self.sim.start_run())
        with self.assertLogs("dodger.game.simulation", level="WARNING"):
            self.assertFalse(self.sim.start_run())
        self.assertEqual(self.sim.run_id, 1)

        started = self.recorder.of(EventType.RUN_STARTED)
        self.assertEqual(len(started), 1)
        self.assertEqual(started[0].data["pattern"], "calm")
        self.assertEqual(started[0].run_id, 1)

    def test_start_places_avatar(self):
        self.sim.start_run()
        snapshot = self.sim.snapshot()
        self.assertTrue(snapshot.is_running)
        self.assertEqual((snapshot.avatar.x, snapshot.avatar.y), (250, 640))

    def test_start_event_from_bus(self):
        self.sim.event_bus.emit(start_event())
        self.assertTrue(self.sim.is_running)

    def test_unknown_pattern_falls_back(self):
        with self.assertLogs("dodger.game.patterns", level="WARNING"):
            self.sim.start_run("no-such-pattern")
        self.assertEqual(self.sim.pattern.name, "calm")


class TestTiming(unittest.TestCase):

    def test_score_over_ten_seconds(self):
        sim = make_simulation(pattern="calm", score_per_second=2)
        sim.start_run()
        for _ in range(625):
            snapshot = sim.tick(16)

        self.assertTrue(snapshot.is_running)
        self.assertEqual(snapshot.score, 20)
        self.assertEqual(snapshot.level, 1)
        self.assertEqual(snapshot.tick, 625)

    def test_large_delta_is_clamped(self):
        sim = make_simulation(pattern="calm", score_per_second=10)
        sim.start_run()
        with self.assertLogs("dodger.game.simulation", level="DEBUG"):
            sim.tick(1000)
        sim.tick(1000)

        self.assertEqual(sim.elapsed_ms, 100.0)
        self.assertEqual(sim.score, 1)

    def test_negative_delta_is_zero(self):
        sim = make_simulation(pattern="calm")
        sim.start_run()
        sim.tick(-20)
        self.assertEqual(sim.elapsed_ms, 0.0)
        self.assertEqual(sim.tick_count, 1)


class TestObstacles(unittest.TestCase):

    def setUp(self):
        self.sim = make_simulation(pattern="calm")
        self.recorder = Recorder(self.sim.event_bus)
        self.sim.start_run()
        self.recorder.clear()

    def test_hit_ends_run_once_and_freezes(self):
        avatar = self.sim.avatar
        self.sim.obstacles.append(make_obstacle(avatar.x, avatar.y, vy=3))

        snapshot = self.sim.tick(16)
        self.assertEqual(snapshot.phase, Phase.GAME_OVER)

        game_over = self.recorder.of(EventType.GAME_OVER)
        self.assertEqual(len(game_over), 1)
        self.assertEqual(game_over[0].data["pattern"], "calm")
        self.assertEqual(game_over[0].data["archetype"], "rock")
        self.assertEqual(game_over[0].run_id, 1)

        frozen = self.sim.snapshot().obstacles
        self.assertEqual(len(frozen), 1)
        for _ in range(10):
            later = self.sim.tick(16)
        self.assertEqual(later.obstacles, frozen)
        self.assertEqual(later.tick, snapshot.tick)
        self.assertEqual(len(self.recorder.of(EventType.GAME_OVER)), 1)

    def test_hit_stops_processing_remaining_obstacles(self):
        """Obstacles are visited newest first; the rest stay put after a hit."""
        avatar = self.sim.avatar
        older = make_obstacle(40, 100, vy=5)
        self.sim.obstacles.extend([older, make_obstacle(avatar.x, avatar.y)])

        self.sim.tick(16)

        self.assertEqual(self.sim.phase, Phase.GAME_OVER)
        self.assertEqual(older.y, 100)

    def test_near_miss_reported_every_tick_when_certain(self):
        sim = make_simulation(pattern="calm", collision=CollisionSettings(near_miss_chance=1.0))
        recorder = Recorder(sim.event_bus)
        sim.start_run()
        avatar = sim.avatar
        sim.obstacles.append(make_obstacle(avatar.x + 35, avatar.y))

        for _ in range(3):
            sim.tick(16)

        misses = recorder.of(EventType.NEAR_MISS)
        self.assertEqual(len(misses), 3)
        self.assertAlmostEqual(misses[0].data["distance"], 35.0)
        self.assertEqual([e.data["tick"] for e in misses], [1, 2, 3])
        self.assertTrue(sim.is_running)

    def test_near_miss_never_reported_when_disabled(self):
        sim = make_simulation(pattern="calm", collision=CollisionSettings(near_miss_chance=0.0))
        recorder = Recorder(sim.event_bus)
        sim.start_run()
        sim.obstacles.append(make_obstacle(sim.avatar.x + 35, sim.avatar.y))
        for _ in range(5):
            sim.tick(16)
        self.assertEqual(recorder.of(EventType.NEAR_MISS), [])

    def test_escaped_obstacles_removed(self):
        obstacle = make_obstacle(30, -30, vy=8)
        self.sim.obstacles.append(obstacle)

        for _ in range(97):
            self.sim.tick(16)
        self.assertIn(obstacle, self.sim.obstacles)

        self.sim.tick(16)
        self.assertNotIn(obstacle, self.sim.obstacles)
        self.assertTrue(self.sim.is_running)

    def test_avatar_stays_in_bounds(self):
        self.sim.set_pointer(-1000, 5000)
        for _ in range(100):
            snapshot = self.sim.tick(16)
            radius = snapshot.avatar.hit_radius
            self.assertGreaterEqual(snapshot.avatar.x, radius)
            self.assertLessEqual(snapshot.avatar.x, snapshot.width - radius)
            self.assertGreaterEqual(snapshot.avatar.y, radius)
            self.assertLessEqual(snapshot.avatar.y, snapshot.height - radius)


class TestRestart(unittest.TestCase):

    def crash(self, sim: Simulation) -> None:
        sim.obstacles.append(make_obstacle(sim.avatar.x, sim.avatar.y))
        sim.tick(16)
        self.assertEqual(sim.phase, Phase.GAME_OVER)

    def test_restart_resets_state(self):
        sim = make_simulation(pattern="calm", score_per_second=100)
        sim.start_run()
        for _ in range(10):
            sim.tick(16)
        self.assertGreater(sim.score, 0)
        self.crash(sim)

        self.assertTrue(sim.restart())
        self.assertEqual(sim.run_id, 2)
        self.assertEqual(sim.score, 0)
        self.assertEqual(sim.level, 1)
        self.assertEqual(sim.tick_count, 0)
        self.assertEqual(sim.obstacles, [])
        self.assertTrue(sim.is_running)

    def test_pattern_changes_between_runs(self):
        other = CALM.model_copy(update={"name": "still"})
        sim = make_simulation(other)
        previous = None
        for _ in range(6):
            self.assertTrue(sim.restart())
            self.assertNotEqual(sim.pattern.name, previous)
            previous = sim.pattern.name
            self.crash(sim)

    def test_reset_then_start(self):
        sim = make_simulation(pattern="calm")
        sim.start_run()
        self.crash(sim)
        self.assertTrue(sim.reset())
        self.assertEqual(sim.phase, Phase.IDLE)
        self.assertTrue(sim.start_run())

    def test_start_event_restarts_after_game_over(self):
        sim = make_simulation(pattern="calm")
        sim.start_run()
        self.crash(sim)
        sim.event_bus.emit(start_event())
        self.assertTrue(sim.is_running)
        self.assertEqual(sim.run_id, 2)


class TestEventDelivery(unittest.TestCase):

    def test_subscribers_see_completed_tick(self):
        sim = make_simulation(pattern="calm", score_per_second=100)
        observed = []

        def on_score(event):
            observed.append((event.data["tick"], sim.tick_count, len(sim.avatar.trail)))

        sim.event_bus.subscribe(EventType.SCORE_CHANGED, on_score)
        sim.start_run()
        sim.tick(16)

        self.assertEqual(observed, [(1, 1, 1)])

    def test_game_over_subscriber_sees_final_phase(self):
        sim = make_simulation(pattern="calm")
        phases = []
        sim.event_bus.subscribe(EventType.GAME_OVER, lambda e: phases.append(sim.phase))
        sim.start_run()
        sim.obstacles.append(make_obstacle(sim.avatar.x, sim.avatar.y))
        snapshot = sim.tick(16)

        self.assertEqual(phases, [Phase.GAME_OVER])
        self.assertIn(EventType.GAME_OVER, [e.type for e in snapshot.events])

    def test_phase_changes_are_published(self):
        sim = make_simulation(pattern="calm")
        recorder = Recorder(sim.event_bus)
        sim.start_run()
        changes = recorder.of(EventType.PHASE_CHANGED)
        self.assertEqual([(e.data["old"], e.data["new"]) for e in changes], [("IDLE", "RUNNING")])

    def test_queued_pointer_and_resize(self):
        sim = make_simulation(pattern="calm")
        sim.start_run()
        sim.event_bus.queue_event(pointer_event(400, 640))
        sim.event_bus.queue_event(resize_event(800, 600))
        asyncio.run(sim.event_bus.process_queue())

        sim.tick(16)
        self.assertAlmostEqual(sim.avatar.x, 287.5)
        self.assertEqual((sim.width, sim.height), (800, 600))

    def test_pointer_before_start_is_kept(self):
        sim = make_simulation(pattern="calm")
        sim.set_pointer(100, 640)
        sim.start_run()
        self.assertEqual(sim.avatar.target_x, 100)

    def test_invalid_viewport(self):
        sim = make_simulation()
        with self.assertRaises(ValueError):
            sim.set_viewport(0, 600)

    def test_effect_updaters(self):
        sim = make_simulation(pattern="calm")
        deltas = []

        def broken(delta):
            raise RuntimeError("effect failed")

        sim.add_effect(broken)
        remove = sim.add_effect(deltas.append)

        with self.assertLogs("dodger.game.simulation", level="ERROR"):
            sim.tick(80)
        self.assertEqual(deltas, [50.0])

        remove()
        sim.tick(16)
        self.assertEqual(deltas, [50.0])


if __name__ == "__main__":
    unittest.main()
