"""Maps simulation events onto particle effects."""

import logging
from typing import Callable, List, Optional

from dodger.core.events import Event, EventType
from dodger.effects.particles import ParticlePresets, ParticleSystem
from dodger.game.simulation import Simulation

logger = logging.getLogger(__name__)


class EffectsDirector:
    """Effects sink for a Simulation.

    Every handler checks the event's run id against the simulation's
    current run, so a stale event (for example one replayed from a
    queue after a restart) never decorates the new run.
    """

    def __init__(self, simulation: Simulation, particles: Optional[ParticleSystem] = None):
        self.simulation = simulation
        self.particles = particles or ParticleSystem()
        self.particles.add_emitter("spark", ParticlePresets.spark())
        self.particles.add_emitter("ring", ParticlePresets.ring())
        self.particles.add_emitter("confetti", ParticlePresets.confetti())
        self.particles.add_emitter("crash", ParticlePresets.crash())

        bus = simulation.event_bus
        self._unsubscribers: List[Callable[[], None]] = [
            bus.subscribe(EventType.NEAR_MISS, self._on_near_miss),
            bus.subscribe(EventType.LEVEL_UP, self._on_level_up),
            bus.subscribe(EventType.MILESTONE, self._on_milestone),
            bus.subscribe(EventType.GAME_OVER, self._on_game_over),
            bus.subscribe(EventType.RUN_STARTED, self._on_run_started),
            simulation.add_effect(self.update),
        ]

    def update(self, delta_ms: float) -> None:
        self.particles.update(delta_ms)

    def detach(self) -> None:
        """Stop listening to the simulation."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _is_current(self, event: Event) -> bool:
        if event.run_id != self.simulation.run_id:
            logger.debug(f"Ignoring stale {event.type} from run {event.run_id}")
            return False
        return True

    def _avatar_position(self) -> tuple[float, float]:
        avatar = self.simulation.avatar
        if avatar is None:
            return self.simulation.width / 2, self.simulation.height / 2
        return avatar.position

    def _on_near_miss(self, event: Event) -> None:
        if self._is_current(event) and self.simulation.is_running:
            self.particles.burst_at("spark", event.data["x"], event.data["y"])

    def _on_level_up(self, event: Event) -> None:
        if self._is_current(event) and self.simulation.is_running:
            self.particles.burst_at("ring", *self._avatar_position())

    def _on_milestone(self, event: Event) -> None:
        if self._is_current(event) and self.simulation.is_running:
            self.particles.burst_at("confetti", *self._avatar_position())

    def _on_game_over(self, event: Event) -> None:
        if self._is_current(event):
            self.particles.burst_at("crash", event.data["x"], event.data["y"])

    def _on_run_started(self, event: Event) -> None:
        self.particles.clear_all()
