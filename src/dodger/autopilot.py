"""Scripted input source and headless runs.

The autopilot stands in for a human pointer: each frame it looks at the
obstacles falling towards the avatar and moves the pointer to the
horizontal position with the most clearance. ``run_headless`` drives a
complete run at a fixed frame time without any window.
"""

import logging
import random
from typing import Optional, Tuple

import numpy as np

from dodger.config.settings import Settings, get_settings
from dodger.game.entities import Snapshot
from dodger.game.simulation import Simulation

logger = logging.getLogger(__name__)


class Autopilot:
    """Steers the pointer away from incoming obstacles."""

    def __init__(self, lanes: int = 25, lookahead: float = 260.0, stickiness: float = 0.05):
        self.lanes = lanes
        self.lookahead = lookahead
        self.stickiness = stickiness  # Penalty per unit of travel

    def choose_target(self, snapshot: Snapshot) -> Tuple[float, float]:
        avatar = snapshot.avatar
        if avatar is None:
            return snapshot.width / 2.0, snapshot.height / 2.0

        threats = [
            o for o in snapshot.obstacles
            if -o.radius < avatar.y - o.y < self.lookahead
        ]
        if not threats:
            return avatar.x, avatar.y

        margin = avatar.hit_radius
        candidates = np.linspace(margin, snapshot.width - margin, self.lanes)
        ox = np.array([o.x for o in threats])
        radii = np.array([o.radius for o in threats])

        gaps = np.abs(candidates[:, None] - ox[None, :]) - radii[None, :]
        clearance = gaps.min(axis=1)
        score = clearance - self.stickiness * np.abs(candidates - avatar.x)
        best = float(candidates[int(np.argmax(score))])
        return best, avatar.y

    def steer(self, simulation: Simulation, snapshot: Snapshot) -> None:
        simulation.set_pointer(*self.choose_target(snapshot))


def run_headless(
    settings: Optional[Settings] = None,
    seconds: float = 60.0,
    frame_ms: float = 16.0,
    seed: Optional[int] = None,
    pattern: Optional[str] = None,
    pilot: Optional[Autopilot] = None,
) -> Snapshot:
    """Play one run with the autopilot and return the final snapshot.

    The run stops at game over or after ``seconds`` of simulated time.
    """
    settings = settings or get_settings()
    rng = random.Random(seed if seed is not None else settings.seed)
    simulation = Simulation(settings=settings, rng=rng)
    pilot = pilot or Autopilot()

    simulation.start_run(pattern)
    snapshot = simulation.snapshot()

    frames = int(seconds * 1000 / frame_ms)
    for _ in range(frames):
        pilot.steer(simulation, snapshot)
        snapshot = simulation.tick(frame_ms)
        if not snapshot.is_running:
            break

    logger.info(
        f"Headless run finished: score {snapshot.score}, level {snapshot.level}, "
        f"pattern '{snapshot.pattern}', {snapshot.tick} ticks"
    )
    return snapshot
