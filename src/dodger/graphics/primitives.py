"""Basic drawing primitives for RGB numpy buffers."""

from typing import Sequence, Tuple
import numpy as np
from numpy.typing import NDArray

# Type aliases
Color = Tuple[int, int, int]
Buffer = NDArray[np.uint8]


def fill(buffer: Buffer, color: Color) -> None:
    """Fill entire buffer with color."""
    buffer[:, :] = color


def _circle_mask(buffer: Buffer, cx: float, cy: float, outer: float, inner: float = -1.0):
    """Bounding-box slice plus mask of pixels with inner < d <= outer."""
    h, w = buffer.shape[:2]
    x1, x2 = max(0, int(cx - outer)), min(w, int(cx + outer) + 1)
    y1, y2 = max(0, int(cy - outer)), min(h, int(cy + outer) + 1)
    if x1 >= x2 or y1 >= y2:
        return None, None

    ys, xs = np.ogrid[y1:y2, x1:x2]
    dist_sq = (xs - cx) ** 2 + (ys - cy) ** 2
    mask = dist_sq <= outer * outer
    if inner >= 0:
        mask &= dist_sq > inner * inner
    return (slice(y1, y2), slice(x1, x2)), mask


def draw_disc(buffer: Buffer, cx: float, cy: float, radius: float, color: Color) -> None:
    """Draw a filled circle. Only the covered region is touched."""
    region, mask = _circle_mask(buffer, cx, cy, radius)
    if region is not None:
        buffer[region][mask] = color


def draw_ring(
    buffer: Buffer,
    cx: float,
    cy: float,
    radius: float,
    color: Color,
    thickness: float = 1.0,
) -> None:
    """Draw a circle outline of the given thickness."""
    region, mask = _circle_mask(buffer, cx, cy, radius, radius - thickness)
    if region is not None:
        buffer[region][mask] = color


def draw_line(
    buffer: Buffer,
    x1: int,
    y1: int,
    x2: int,
    y2: int,
    color: Color,
) -> None:
    """Draw a one-pixel line using Bresenham's algorithm."""
    h, w = buffer.shape[:2]

    dx = abs(x2 - x1)
    dy = abs(y2 - y1)
    sx = 1 if x1 < x2 else -1
    sy = 1 if y1 < y2 else -1
    err = dx - dy

    x, y = x1, y1

    while True:
        if 0 <= x < w and 0 <= y < h:
            buffer[y, x] = color

        if x == x2 and y == y2:
            break

        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy


def draw_trail(
    buffer: Buffer,
    points: Sequence[Tuple[float, float]],
    color: Color,
    max_radius: float = 4.0,
) -> None:
    """Draw a fading dotted trail, oldest point first."""
    count = len(points)
    for i, (x, y) in enumerate(points):
        t = (i + 1) / count
        faded = (int(color[0] * t), int(color[1] * t), int(color[2] * t))
        draw_disc(buffer, x, y, max(1.0, max_radius * t), faded)
