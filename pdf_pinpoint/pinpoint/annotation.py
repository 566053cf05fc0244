"""Annotation point data model and the in-memory store that owns it."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Iterator, Mapping, Optional

from pinpoint.config import ROW_TOLERANCE
from pinpoint.coordinates import (
    OriginConvention, PageDimensions,
    canonical_to_user, canonical_to_view, clamp_to_page,
    user_axis_to_canonical, make_uid,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class AnnotationPoint:
    page_index: int               # 1-indexed
    x: float                      # PDF coords (origin bottom-left, Y up)
    y: float
    display_x: float = 0.0        # view coords (origin top-left), derived
    display_y: float = 0.0
    id: str = field(default_factory=make_uid)

    def sync_view(self, page_height: float):
        """Re-derive the cached view position from the canonical one."""
        self.display_x, self.display_y = canonical_to_view(self.x, self.y, page_height)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "pageIndex": self.page_index,
            "x": self.x,
            "y": self.y,
            "displayX": self.display_x,
            "displayY": self.display_y,
        }

    @staticmethod
    def from_dict(d: dict) -> "AnnotationPoint":
        return AnnotationPoint(
            page_index=int(d["pageIndex"]),
            x=float(d["x"]),
            y=float(d["y"]),
            display_x=float(d.get("displayX", 0.0)),
            display_y=float(d.get("displayY", 0.0)),
            id=d["id"],
        )


def _reading_order(a: AnnotationPoint, b: AnnotationPoint) -> int:
    if a.page_index != b.page_index:
        return a.page_index - b.page_index
    # Higher Y is higher on the page; rows within the tolerance read left to right.
    y_diff = b.y - a.y
    if abs(y_diff) > ROW_TOLERANCE:
        return 1 if y_diff > 0 else -1
    if a.x != b.x:
        return -1 if a.x < b.x else 1
    return 0


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class AnnotationStore:
    """All points of the open document, keyed by id.

    The canonical ``(x, y)`` is authoritative.  ``display_x``/``display_y``
    are rewritten by every method that moves a point, and by nothing else.
    """

    def __init__(self, origin: OriginConvention = OriginConvention.BOTTOM_LEFT):
        self._points: dict[str, AnnotationPoint] = {}
        self._page_dims: dict[int, PageDimensions] = {}
        self.origin = origin
        self.selected_id: Optional[str] = None

    # ------------------------------------------------------------------
    # Page dimensions
    # ------------------------------------------------------------------

    def set_page_dimensions(self, dims: Mapping[int, PageDimensions]):
        self._page_dims = dict(dims)
        for p in self._points.values():
            d = self._page_dims.get(p.page_index)
            if d is not None:
                p.sync_view(d.height)
        logger.debug("Page dimensions set for %d page(s)", len(self._page_dims))

    def page_dimensions(self, page_index: int) -> Optional[PageDimensions]:
        return self._page_dims.get(page_index)

    def _sync(self, point: AnnotationPoint):
        # display_x needs no page height; display_y waits for the dimensions.
        dims = self.page_dimensions(point.page_index)
        if dims is None:
            point.display_x = point.x
        else:
            point.sync_view(dims.height)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, page_index: int, x: float, y: float) -> AnnotationPoint:
        """Add a point from canonical coordinates.  Clicks are not clamped."""
        point = AnnotationPoint(page_index=page_index, x=x, y=y)
        self._sync(point)
        self._points[point.id] = point
        self.selected_id = point.id
        logger.debug("Added point %s on page %d at (%.2f, %.2f)",
                     point.id, page_index, x, y)
        return point

    def update_from_drag(self, uid: str, x: float, y: float) -> Optional[AnnotationPoint]:
        point = self._points.get(uid)
        if point is None:
            return None
        dims = self.page_dimensions(point.page_index)
        if dims is None:
            point.x, point.y = x, y
            self._sync(point)
            return point
        point.x, point.y = clamp_to_page(x, y, dims)
        point.sync_view(dims.height)
        return point

    def update_from_user_frame(self, uid: str,
                               new_x: Optional[float] = None,
                               new_y: Optional[float] = None) -> Optional[AnnotationPoint]:
        """Apply a coordinate typed under the current origin.

        Either axis may be omitted.  Typed values are trusted and not clamped.
        """
        point = self._points.get(uid)
        if point is None:
            return None
        dims = self.page_dimensions(point.page_index)
        if dims is None:
            return None
        if new_x is not None:
            point.x = user_axis_to_canonical(new_x, "x", self.origin, dims)
        if new_y is not None:
            point.y = user_axis_to_canonical(new_y, "y", self.origin, dims)
        point.sync_view(dims.height)
        logger.debug("Point %s edited to (%.2f, %.2f)", uid, point.x, point.y)
        return point

    def remove(self, uid: str) -> bool:
        if self._points.pop(uid, None) is None:
            return False
        if self.selected_id == uid:
            self.selected_id = None
        logger.debug("Removed point %s", uid)
        return True

    def select(self, uid: Optional[str]):
        self.selected_id = uid if uid in self._points else None

    def clear(self):
        self._points.clear()
        self._page_dims.clear()
        self.selected_id = None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, uid: str) -> Optional[AnnotationPoint]:
        return self._points.get(uid)

    def user_coordinates(self, point: AnnotationPoint) -> tuple[float, float]:
        return canonical_to_user(point.x, point.y, self.origin,
                                 self.page_dimensions(point.page_index))

    def ordered_view(self) -> list[AnnotationPoint]:
        """Points by page, then top-to-bottom, then left-to-right."""
        return sorted(self._points.values(), key=cmp_to_key(_reading_order))

    def for_page(self, page_index: int) -> list[AnnotationPoint]:
        return [p for p in self._points.values() if p.page_index == page_index]

    def snapshot(self) -> list[AnnotationPoint]:
        return [copy.copy(p) for p in self._points.values()]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[AnnotationPoint]:
        return iter(list(self._points.values()))

    def __contains__(self, uid: object) -> bool:
        return uid in self._points
