"""Tests for particles and the effects director."""

import random
import unittest

import numpy as np

from dodger.config.settings import CollisionSettings
from dodger.core.events import Event, EventType
from dodger.effects.director import EffectsDirector
from dodger.effects.particles import BurstConfig, Particle, ParticleEmitter, ParticlePresets, ParticleSystem
from dodger.game.simulation import Simulation

from support import calm_catalog, make_obstacle, make_settings


class TestParticle(unittest.TestCase):

    def test_motion_and_fade(self):
        particle = Particle(x=0, y=0, vx=100, vy=0, lifetime=1000, size=4, alpha=1.0, gravity=200)
        particle.step(500)

        self.assertAlmostEqual(particle.x, 50.0)
        self.assertAlmostEqual(particle.vy, 100.0)
        self.assertAlmostEqual(particle.y, 50.0)
        self.assertEqual(particle.look(), (2.0, 0.5))
        self.assertTrue(particle.alive)

        particle.step(500)
        self.assertFalse(particle.alive)

    def test_drag_slows_down(self):
        particle = Particle(x=0, y=0, vx=100, vy=0, lifetime=1000)
        particle.step(250, drag=2.0)
        self.assertAlmostEqual(particle.vx, 50.0)


class TestParticleEmitter(unittest.TestCase):

    def test_burst_uses_preset_size(self):
        emitter = ParticleEmitter(ParticlePresets.spark(), random.Random(1))
        self.assertEqual(emitter.burst(0, 0), 8)
        self.assertEqual(len(emitter), 8)

    def test_capacity_is_capped(self):
        emitter = ParticleEmitter(BurstConfig(capacity=10), random.Random(1))
        self.assertEqual(emitter.burst(0, 0, 15), 10)
        self.assertEqual(emitter.burst(0, 0, 5), 0)
        self.assertEqual(len(emitter), 10)

    def test_particles_expire(self):
        emitter = ParticleEmitter(BurstConfig(lifetime=(100.0, 200.0)), random.Random(1))
        emitter.burst(0, 0, 5)
        emitter.update(150)
        self.assertLessEqual(len(emitter), 5)
        emitter.update(100)
        self.assertEqual(len(emitter), 0)
        self.assertEqual(emitter.particles, [])

    def test_render_blends_into_buffer(self):
        config = BurstConfig(speed=(0.0, 0.0), size=(6.0, 6.0))
        emitter = ParticleEmitter(config, random.Random(1))
        emitter.burst(10, 10, 1)

        buffer = np.zeros((20, 20, 3), dtype=np.uint8)
        emitter.render(buffer)
        self.assertTrue(np.all(buffer[10, 10] == 255))
        self.assertTrue(np.all(buffer[0, 0] == 0))

    def test_render_ignores_offscreen_particles(self):
        emitter = ParticleEmitter(BurstConfig(speed=(0.0, 0.0)), random.Random(1))
        emitter.burst(-100, -100, 3)
        buffer = np.zeros((20, 20, 3), dtype=np.uint8)
        emitter.render(buffer)
        self.assertEqual(int(buffer.sum()), 0)


class TestParticleSystem(unittest.TestCase):

    def test_named_bursts(self):
        system = ParticleSystem(random.Random(1))
        system.add_emitter("ring", ParticlePresets.ring())
        self.assertEqual(system.burst_at("ring", 50, 60), 24)
        self.assertEqual(system.burst_at("missing", 0, 0), 0)
        self.assertEqual(system.total_particles, 24)
        self.assertEqual(system.get_emitter("ring").origin, (50, 60))

        system.clear_all()
        self.assertEqual(system.total_particles, 0)


class TestEffectsDirector(unittest.TestCase):

    def setUp(self):
        self.sim = Simulation(
            settings=make_settings(pattern="calm", collision=CollisionSettings(near_miss_chance=1.0)),
            catalog=calm_catalog(),
            rng=random.Random(3),
        )
        self.director = EffectsDirector(self.sim, ParticleSystem(random.Random(4)))
        self.sim.start_run()

    def count(self, name: str) -> int:
        return len(self.director.particles.get_emitter(name))

    def test_near_miss_sparks(self):
        self.sim.obstacles.append(make_obstacle(self.sim.avatar.x + 35, self.sim.avatar.y))
        self.sim.tick(16)
        self.assertEqual(self.count("spark"), 8)

    def test_game_over_crash_burst(self):
        self.sim.obstacles.append(make_obstacle(self.sim.avatar.x, self.sim.avatar.y))
        self.sim.tick(16)
        self.assertEqual(self.count("crash"), 48)
        crash = self.director.particles.get_emitter("crash")
        self.assertEqual(crash.origin, self.sim.avatar.position)

    def test_stale_events_ignored(self):
        bus = self.sim.event_bus
        bus.emit(Event(EventType.NEAR_MISS, data={"run_id": 99, "x": 1, "y": 1}))
        bus.emit(Event(EventType.GAME_OVER, data={"run_id": 0, "x": 1, "y": 1}))
        self.assertEqual(self.director.particles.total_particles, 0)

    def test_level_up_needs_running_run(self):
        bus = self.sim.event_bus
        bus.emit(Event(EventType.LEVEL_UP, data={"run_id": self.sim.run_id, "level": 2}))
        self.assertEqual(self.count("ring"), 24)

        self.sim.obstacles.append(make_obstacle(self.sim.avatar.x, self.sim.avatar.y))
        self.sim.tick(16)
        self.director.particles.clear_all()
        bus.emit(Event(EventType.LEVEL_UP, data={"run_id": self.sim.run_id, "level": 3}))
        self.assertEqual(self.count("ring"), 0)

    def test_new_run_clears_particles(self):
        self.sim.obstacles.append(make_obstacle(self.sim.avatar.x, self.sim.avatar.y))
        self.sim.tick(16)
        self.assertGreater(self.director.particles.total_particles, 0)

        self.sim.restart()
        self.assertEqual(self.director.particles.total_particles, 0)

    def test_particles_advance_with_ticks(self):
        self.director.particles.burst_at("spark", 100, 100)
        for _ in range(30):
            self.sim.tick(16)
        self.assertEqual(self.count("spark"), 0)

    def test_detach(self):
        self.director.detach()
        self.sim.obstacles.append(make_obstacle(self.sim.avatar.x, self.sim.avatar.y))
        self.sim.tick(16)
        self.assertEqual(self.director.particles.total_particles, 0)


if __name__ == "__main__":
    unittest.main()
