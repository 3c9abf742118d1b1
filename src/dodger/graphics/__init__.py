"""Buffer rendering for the simulator window."""

from dodger.graphics.renderer import Renderer

__all__ = ["Renderer"]
