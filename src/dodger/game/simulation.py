"""
Simulation context and per-frame loop.

One Simulation owns every piece of run state: phase, score, avatar,
obstacles and the active pattern. The host calls ``tick(delta_ms)`` once
per frame; nothing inside advances on its own.

Tick order while RUNNING:
    progression -> avatar -> spawn scheduler -> obstacles (reverse order,
    advance + collide) -> external effect updaters -> snapshot

Events produced during a tick are collected and only dispatched once the
tick's state changes are complete, so subscribers never observe a
half-applied frame.
"""

import logging
import random
from typing import Callable, List, Optional, Tuple

from dodger.config.settings import Settings, get_settings
from dodger.core.events import Event, EventBus, EventType
from dodger.core.state import Phase, PhaseMachine
from dodger.game.avatar import AvatarController
from dodger.game.collision import CollisionDetector, Contact
from dodger.game.entities import Avatar, Obstacle, Snapshot
from dodger.game.patterns import Pattern, PatternCatalog, load_catalog
from dodger.game.progression import ProgressionTracker
from dodger.game.spawner import SpawnScheduler

logger = logging.getLogger(__name__)

EffectUpdater = Callable[[float], None]


class Simulation:
    """The game core: state, rules and the tick pipeline."""

    source = "simulation"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        catalog: Optional[PatternCatalog] = None,
        event_bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings or get_settings()
        self.catalog = catalog or load_catalog(self.settings.patterns_file)
        self.event_bus = event_bus or EventBus()
        self.rng = rng or random.Random(self.settings.seed)

        self.width = self.settings.viewport.width
        self.height = self.settings.viewport.height

        self.phases = PhaseMachine()
        self.phases.add_listener(self._on_phase_changed)

        self.progression = ProgressionTracker(
            score_per_second=self.settings.score_per_second,
            milestone_step=self.settings.milestone_step,
        )
        self.avatar_controller = AvatarController(
            smoothing=self.settings.avatar.smoothing,
            trail_length=self.settings.avatar.trail_length,
            start_offset=self.settings.avatar.start_offset,
        )
        self.spawner = SpawnScheduler(self.catalog, self.settings.spawn, self.rng)
        self.collisions = CollisionDetector(
            warning_margin=self.settings.collision.warning_margin,
            bottom_margin=self.settings.collision.bottom_margin,
        )

        self.pattern: Pattern = self.catalog.default
        self.avatar: Optional[Avatar] = None
        self.obstacles: List[Obstacle] = []

        self._run_id = 0
        self._tick = 0
        self._elapsed_ms = 0.0
        self._pointer: Optional[Tuple[float, float]] = None
        self._pending_events: List[Event] = []
        self._effects: List[EffectUpdater] = []

        self.event_bus.subscribe(EventType.POINTER_MOVED, self._on_pointer_event)
        self.event_bus.subscribe(EventType.VIEWPORT_RESIZED, self._on_resize_event)
        self.event_bus.subscribe(EventType.START_REQUESTED, self._on_start_event)

    # State access
    @property
    def phase(self) -> Phase:
        return self.phases.phase

    @property
    def is_running(self) -> bool:
        return self.phases.is_running

    @property
    def run_id(self) -> int:
        return self._run_id

    @property
    def tick_count(self) -> int:
        return self._tick

    @property
    def elapsed_ms(self) -> float:
        return self._elapsed_ms

    @property
    def score(self) -> int:
        return self.progression.score

    @property
    def level(self) -> int:
        return self.progression.level

    # Inputs
    def set_pointer(self, x: float, y: float) -> None:
        """Record the latest pointer position in viewport coordinates."""
        self._pointer = (x, y)
        if self.avatar is not None:
            self.avatar_controller.set_target(self.avatar, x, y)

    def set_viewport(self, width: int, height: int) -> None:
        """Change clamping bounds. Existing entities keep their positions."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid viewport size: {width}x{height}")
        self.width = width
        self.height = height
        logger.debug(f"Viewport set to {width}x{height}")

    def add_effect(self, updater: EffectUpdater) -> Callable[[], None]:
        """Register an external per-tick updater (particles and the like).

        Returns:
            Function that unregisters the updater
        """
        self._effects.append(updater)

        def remove() -> None:
            if updater in self._effects:
                self._effects.remove(updater)

        return remove

    # Run control
    def start_run(self, pattern_name: Optional[str] = None) -> bool:
        """Enter RUNNING from IDLE with fresh state and a new pattern.

        Args:
            pattern_name: Force a catalog pattern; falls back to the
                configured pattern, then to a random choice that differs
                from the previous run's

        Returns:
            True if the run started
        """
        if not self.phases.can_transition(Phase.RUNNING):
            logger.warning(f"Cannot start a run from {self.phase.name}")
            return False

        previous = self.pattern.name if self._run_id > 0 else None
        forced = pattern_name or self.settings.pattern
        if forced is not None:
            self.pattern = self.catalog.get(forced)
        else:
            self.pattern = self.catalog.choose(self.rng, previous)

        self._run_id += 1
        self._tick = 0
        self._elapsed_ms = 0.0
        self.progression.reset(self.pattern.level_up_score)
        self.spawner.reset()
        self.obstacles.clear()
        self.avatar = self.avatar_controller.spawn(
            self.settings.avatar.hit_radius, self.width, self.height
        )
        if self._pointer is not None:
            self.avatar_controller.set_target(self.avatar, *self._pointer)

        self.phases.transition(Phase.RUNNING)
        self._push(EventType.RUN_STARTED, pattern=self.pattern.name)
        logger.info(f"Run {self._run_id} started with pattern '{self.pattern.name}'")

        self._dispatch(self._drain_events())
        return True

    def reset(self) -> bool:
        """Leave GAME_OVER for IDLE. Entities stay frozen until the next run."""
        ok = self.phases.transition(Phase.IDLE)
        self._dispatch(self._drain_events())
        return ok

    def restart(self) -> bool:
        """Explicit restart request: GAME_OVER -> IDLE -> RUNNING."""
        if self.phase == Phase.GAME_OVER:
            self.reset()
        return self.start_run()

    # Frame loop
    def clamp_delta(self, delta_ms: float) -> float:
        if delta_ms > self.settings.max_delta_ms:
            logger.debug(f"Clamping frame delta {delta_ms:.1f}ms")
            return self.settings.max_delta_ms
        return max(0.0, delta_ms)

    def tick(self, delta_ms: float) -> Snapshot:
        """Advance the whole system by one frame.

        Args:
            delta_ms: Time since the previous frame in milliseconds

        Returns:
            Read-only snapshot of the state after this frame
        """
        delta = self.clamp_delta(delta_ms)

        if self.phases.is_running:
            self._advance(delta)

        for updater in list(self._effects):
            try:
                updater(delta)
            except Exception as e:
                logger.error(f"Error in effect updater: {e}")

        events = self._drain_events()
        snapshot = self.snapshot(events)
        self._dispatch(events)
        return snapshot

    def snapshot(self, events: Tuple[Event, ...] = ()) -> Snapshot:
        return Snapshot(
            tick=self._tick,
            run_id=self._run_id,
            phase=self.phase,
            score=self.score,
            level=self.level,
            pattern=self.pattern.name,
            width=self.width,
            height=self.height,
            avatar=self.avatar.view() if self.avatar is not None else None,
            obstacles=tuple(o.view() for o in self.obstacles),
            events=events,
        )

    def _advance(self, delta: float) -> None:
        self._tick += 1
        self._elapsed_ms += delta

        for event in self.progression.advance(delta, source=self.source):
            self._tag(event)

        avatar = self.avatar
        self.avatar_controller.update(avatar, self.width, self.height)

        self.spawner.update(
            self.pattern,
            self.level,
            self._elapsed_ms,
            self._tick,
            self.obstacles,
            self.width,
            self.height,
        )

        near_miss_chance = self.settings.collision.near_miss_chance
        for i in range(len(self.obstacles) - 1, -1, -1):
            obstacle = self.obstacles[i]
            obstacle.advance()

            contact = self.collisions.classify(avatar, obstacle)
            if contact is Contact.HIT:
                self._end_run(obstacle)
                return

            if contact is Contact.NEAR_MISS and self.rng.random() < near_miss_chance:
                self._push(
                    EventType.NEAR_MISS,
                    x=obstacle.x,
                    y=obstacle.y,
                    archetype=obstacle.archetype,
                    distance=obstacle.distance_to(avatar.x, avatar.y),
                )

            if self.collisions.escaped(obstacle, self.height):
                del self.obstacles[i]

    def _end_run(self, obstacle: Obstacle) -> None:
        self.phases.transition(Phase.GAME_OVER)
        self._push(
            EventType.GAME_OVER,
            final_score=self.score,
            level=self.level,
            pattern=self.pattern.name,
            x=self.avatar.x,
            y=self.avatar.y,
            archetype=obstacle.archetype,
        )
        logger.info(
            f"Run {self._run_id} over: score {self.score}, level {self.level}, "
            f"{self._tick} ticks"
        )

    # Event plumbing
    def _tag(self, event: Event) -> Event:
        event.data.setdefault("run_id", self._run_id)
        event.data.setdefault("tick", self._tick)
        self._pending_events.append(event)
        return event

    def _push(self, event_type: EventType, **data) -> Event:
        return self._tag(Event(event_type, data=data, source=self.source))

    def _drain_events(self) -> Tuple[Event, ...]:
        events = tuple(self._pending_events)
        self._pending_events.clear()
        return events

    def _dispatch(self, events: Tuple[Event, ...]) -> None:
        for event in events:
            self.event_bus.emit(event)

    def _on_phase_changed(self, old_phase: Phase, new_phase: Phase) -> None:
        self._push(EventType.PHASE_CHANGED, old=old_phase.name, new=new_phase.name)

    def _on_pointer_event(self, event: Event) -> None:
        self.set_pointer(float(event.data["x"]), float(event.data["y"]))

    def _on_resize_event(self, event: Event) -> None:
        self.set_viewport(int(event.data["width"]), int(event.data["height"]))

    def _on_start_event(self, event: Event) -> None:
        if not self.is_running:
            self.restart()
