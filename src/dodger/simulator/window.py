"""
Desktop host window using pygame.

Owns the frame callback: every frame it drains queued input events into
the simulation, ticks it with the measured frame time and draws the
resulting snapshot.

Controls:
    MOUSE / TOUCH: Steer
    CLICK / SPACE / RETURN: Start or restart a run
    T: Toggle trail (saved)
    H: Toggle hitbox overlay
    ESC / Q: Exit
"""

import pygame
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from dodger.core.events import EventType, pointer_event, resize_event, start_event
from dodger.core.state import Phase
from dodger.effects.director import EffectsDirector
from dodger.game.entities import Snapshot
from dodger.game.simulation import Simulation
from dodger.graphics.renderer import Renderer
from dodger.persistence.store import ScoreStore

logger = logging.getLogger(__name__)


@dataclass
class WindowConfig:
    """Simulator window configuration."""
    title: str = "DODGER"
    fps: int = 60
    scale: float = 1.0  # Window pixels per viewport unit

    text_color: tuple[int, int, int] = (230, 230, 240)
    accent_color: tuple[int, int, int] = (255, 107, 157)


def window_to_viewport(pos: Tuple[float, float], scale: float) -> Tuple[float, float]:
    """Convert window pixel coordinates into viewport units."""
    return pos[0] / scale, pos[1] / scale


def touch_to_viewport(nx: float, ny: float, width: int, height: int) -> Tuple[float, float]:
    """Convert normalized (0..1) touch coordinates into viewport units."""
    return nx * width, ny * height


class SimulatorWindow:
    """Pygame host for a Simulation."""

    def __init__(
        self,
        simulation: Simulation,
        config: WindowConfig | None = None,
        store: Optional[ScoreStore] = None,
    ) -> None:
        self.simulation = simulation
        self.event_bus = simulation.event_bus
        self.config = config or WindowConfig()
        self.store = store
        self.effects = EffectsDirector(simulation)

        show_trail = store.get_setting("show_trail", True) if store else True
        self.renderer = Renderer(show_trail=show_trail)

        self._screen: pygame.Surface | None = None
        self._clock: pygame.time.Clock | None = None
        self._font: pygame.font.Font | None = None
        self._big_font: pygame.font.Font | None = None
        self._running = False
        self._new_best = False
        self._best_at_start = 0

        self.event_bus.subscribe(EventType.RUN_STARTED, self._on_run_started)
        self.event_bus.subscribe(EventType.GAME_OVER, self._on_game_over)

        logger.info("SimulatorWindow created")

    def _window_size(self) -> Tuple[int, int]:
        scale = self.config.scale
        return (
            int(self.simulation.width * scale),
            int(self.simulation.height * scale),
        )

    def _init_pygame(self) -> None:
        """Initialize pygame and create window."""
        pygame.init()
        pygame.display.set_caption(self.config.title)

        self._screen = pygame.display.set_mode(self._window_size(), pygame.RESIZABLE)
        self._clock = pygame.time.Clock()

        pygame.font.init()
        self._font = pygame.font.SysFont(None, 24)
        self._big_font = pygame.font.SysFont(None, 48)

        logger.info(f"Pygame initialized: {self._window_size()[0]}x{self._window_size()[1]}")

    def _handle_events(self) -> None:
        """Translate pygame events into bus events for the next tick."""
        scale = self.config.scale
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._running = False

            elif event.type == pygame.KEYDOWN:
                self._handle_keydown(event)

            elif event.type == pygame.MOUSEMOTION:
                self.event_bus.queue_event(pointer_event(*window_to_viewport(event.pos, scale), source="mouse"))

            elif event.type == pygame.FINGERMOTION or event.type == pygame.FINGERDOWN:
                x, y = touch_to_viewport(event.x, event.y, self.simulation.width, self.simulation.height)
                self.event_bus.queue_event(pointer_event(x, y, source="touch"))
                if event.type == pygame.FINGERDOWN and not self.simulation.is_running:
                    self.event_bus.queue_event(start_event(source="touch"))

            elif event.type == pygame.MOUSEBUTTONDOWN:
                if not self.simulation.is_running:
                    self.event_bus.queue_event(start_event(source="mouse"))

            elif event.type == pygame.VIDEORESIZE:
                width, height = window_to_viewport(event.size, scale)
                self.event_bus.queue_event(resize_event(max(1, int(width)), max(1, int(height))))

    def _handle_keydown(self, event: pygame.event.Event) -> None:
        key = event.key

        if key == pygame.K_ESCAPE or key == pygame.K_q:
            self._running = False
        elif key in (pygame.K_SPACE, pygame.K_RETURN):
            if not self.simulation.is_running:
                self.event_bus.queue_event(start_event(source="keyboard"))
        elif key == pygame.K_t:
            self.renderer.show_trail = not self.renderer.show_trail
            if self.store:
                self.store.set_setting("show_trail", self.renderer.show_trail)
        elif key == pygame.K_h:
            self.renderer.show_hitbox = not self.renderer.show_hitbox

    def _render(self, snapshot: Snapshot) -> None:
        if not self._screen:
            return

        buffer = self.renderer.render(snapshot, self.effects.particles)
        surface = pygame.surfarray.make_surface(buffer.swapaxes(0, 1))
        if self.config.scale != 1.0:
            surface = pygame.transform.scale(surface, self._screen.get_size())
        self._screen.blit(surface, (0, 0))

        self._render_hud(snapshot)
        pygame.display.flip()

    def _render_hud(self, snapshot: Snapshot) -> None:
        color = self.config.text_color
        best = self.store.best_score if self.store else 0

        self._blit_text(self._font, f"SCORE {snapshot.score}", (10, 10), color)
        self._blit_text(self._font, f"LVL {snapshot.level}  {snapshot.pattern.upper()}", (10, 34), color)
        self._blit_text(self._font, f"BEST {best}", (10, 58), color)

        if snapshot.phase == Phase.IDLE:
            self._blit_centered(self._big_font, "CLICK TO START", 0.45)
        elif snapshot.phase == Phase.GAME_OVER:
            self._blit_centered(self._big_font, f"FINAL SCORE {snapshot.score}", 0.4)
            if self._new_best:
                self._blit_centered(self._font, "NEW BEST!", 0.48)
            self._blit_centered(self._font, "CLICK TO PLAY AGAIN", 0.54)

    def _blit_text(self, font, text: str, pos: Tuple[int, int], color) -> None:
        if font and self._screen:
            self._screen.blit(font.render(text, True, color), pos)

    def _blit_centered(self, font, text: str, y_ratio: float) -> None:
        if not font or not self._screen:
            return
        surface = font.render(text, True, self.config.accent_color)
        w, h = self._screen.get_size()
        self._screen.blit(surface, ((w - surface.get_width()) // 2, int(h * y_ratio)))

    def _on_run_started(self, event) -> None:
        self._new_best = False
        self._best_at_start = self.store.best_score if self.store else 0

    def _on_game_over(self, event) -> None:
        self._new_best = self.store is not None and event.data.get("final_score", 0) > self._best_at_start

    async def run(self) -> None:
        """Main frame loop."""
        self._init_pygame()
        self._running = True

        logger.info("Simulator started")

        while self._running:
            self._handle_events()

            # Input lands between ticks, never inside one
            await self.event_bus.process_queue()

            delta_ms = float(self._clock.get_time()) if self._clock else 0.0
            snapshot = self.simulation.tick(delta_ms)

            self._render(snapshot)

            if self._clock:
                self._clock.tick(self.config.fps)

            # Yield to other tasks
            await asyncio.sleep(0)

        self._cleanup()

    def _cleanup(self) -> None:
        """Clean up pygame resources."""
        self.effects.detach()
        pygame.quit()
        logger.info("Simulator stopped")

    def stop(self) -> None:
        """Stop the simulator."""
        self._running = False
