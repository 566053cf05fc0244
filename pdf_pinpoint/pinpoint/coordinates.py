"""Coordinate frames and the transforms between them.

Four frames are in play and are never mixed:

* canonical -- PDF points, origin bottom-left, Y up.  What we store.
* user      -- canonical re-expressed under the selected OriginConvention.
               Only used for the coordinate fields and label text.
* view      -- PDF points, origin top-left, Y down, unscaled.  The scene
               space of the viewer and the frame label flips are judged in.
* screen    -- pixels: ``pan + scale * view``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import uuid4


def make_uid() -> str:
    return str(uuid4())


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

class OriginConvention(Enum):
    BOTTOM_LEFT  = "bottom_left"
    TOP_LEFT     = "top_left"
    TOP_RIGHT    = "top_right"
    BOTTOM_RIGHT = "bottom_right"

    @property
    def label(self) -> str:
        return self.value.replace("_", "-").title()

    @property
    def mirrors_x(self) -> bool:
        return self in (OriginConvention.TOP_RIGHT, OriginConvention.BOTTOM_RIGHT)

    @property
    def mirrors_y(self) -> bool:
        return self in (OriginConvention.TOP_LEFT, OriginConvention.TOP_RIGHT)


@dataclass(frozen=True)
class PageDimensions:
    width: float    # PDF points
    height: float


@dataclass
class ViewportTransform:
    scale: float = 1.0
    pan_x: float = 0.0   # pixel offset of the view origin
    pan_y: float = 0.0


# ---------------------------------------------------------------------------
# canonical <-> user
# ---------------------------------------------------------------------------

def canonical_to_user(x: float, y: float, origin: OriginConvention,
                      dims: Optional[PageDimensions]) -> tuple[float, float]:
    """Express a canonical point under *origin*.

    Without page dimensions the canonical value is returned unchanged; this
    happens while a document is still being parsed.
    """
    if dims is None:
        return (x, y)
    ux = dims.width - x if origin.mirrors_x else x
    uy = dims.height - y if origin.mirrors_y else y
    return (ux, uy)


def user_to_canonical(ux: float, uy: float, origin: OriginConvention,
                      dims: Optional[PageDimensions]) -> tuple[float, float]:
    # Every mirror is its own inverse.
    return canonical_to_user(ux, uy, origin, dims)


def user_axis_to_canonical(value: float, axis: str, origin: OriginConvention,
                           dims: Optional[PageDimensions]) -> float:
    """Single-axis form of :func:`user_to_canonical` (``axis`` is "x" or "y")."""
    if axis not in ("x", "y"):
        raise ValueError(f"Unknown axis {axis!r}")
    if dims is None:
        return value
    if axis == "x":
        return dims.width - value if origin.mirrors_x else value
    return dims.height - value if origin.mirrors_y else value


# ---------------------------------------------------------------------------
# canonical <-> view <-> screen
# ---------------------------------------------------------------------------

def canonical_to_view(x: float, y: float, page_height: float) -> tuple[float, float]:
    """Canonical (bottom-left, Y up) to view (top-left, Y down).  No zoom."""
    return (x, page_height - y)


def view_to_canonical(vx: float, vy: float, page_height: float) -> tuple[float, float]:
    """Inverse of canonical_to_view."""
    return (vx, page_height - vy)


def view_to_screen(vx: float, vy: float,
                   viewport: ViewportTransform) -> tuple[float, float]:
    return (viewport.pan_x + viewport.scale * vx,
            viewport.pan_y + viewport.scale * vy)


def screen_to_view(px: float, py: float,
                   viewport: ViewportTransform) -> tuple[float, float]:
    return ((px - viewport.pan_x) / viewport.scale,
            (py - viewport.pan_y) / viewport.scale)


def screen_to_canonical(px: float, py: float, page_height: float,
                        viewport: ViewportTransform) -> tuple[float, float]:
    vx, vy = screen_to_view(px, py, viewport)
    return view_to_canonical(vx, vy, page_height)


def canonical_to_screen(x: float, y: float, page_height: float,
                        viewport: ViewportTransform) -> tuple[float, float]:
    vx, vy = canonical_to_view(x, y, page_height)
    return view_to_screen(vx, vy, viewport)


def screen_delta_to_canonical(dx: float, dy: float, scale: float) -> tuple[float, float]:
    """Pixel drag delta to a canonical delta.  Screen Y grows down, PDF Y up."""
    return (dx / scale, -dy / scale)


def clamp_to_page(x: float, y: float, dims: PageDimensions) -> tuple[float, float]:
    return (max(0.0, min(x, dims.width)),
            max(0.0, min(y, dims.height)))
