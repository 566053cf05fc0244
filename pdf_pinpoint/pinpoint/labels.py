"""Label text and label-box placement next to a marker dot."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pinpoint.config import ESTIMATED_LABEL_HEIGHT, ESTIMATED_LABEL_WIDTH
from pinpoint.coordinates import PageDimensions


@dataclass(frozen=True)
class LabelBox:
    """A label rectangle in canonical space.

    ``(x, y)`` is the bottom-left corner; the box grows up and to the right.
    """
    x: float
    y: float
    width: float
    height: float
    flipped_x: bool = False
    flipped_y: bool = False

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    def to_view(self, page_height: float) -> tuple[float, float, float, float]:
        """(left, top, width, height) with a top-left origin, for drawing."""
        return (self.x, page_height - self.top, self.width, self.height)


def place_label(x: float, y: float, radius: float,
                box_width: float, box_height: float,
                dims: Optional[PageDimensions]) -> LabelBox:
    """Anchor a label box against the dot centred on canonical ``(x, y)``.

    By default the box's bottom-left corner sits on the dot's top-right
    extent.  Each axis flips to the other side of the dot when the box would
    cross the page's right or top edge.  Flipped positions are not checked
    again, so a box wider than the space on either side still overflows.
    """
    box_x = x + radius
    box_y = y + radius
    flipped_x = flipped_y = False

    if dims is not None:
        if box_x + box_width > dims.width:
            box_x = x - radius - box_width
            flipped_x = True
        if box_y + box_height > dims.height:
            box_y = y - radius - box_height
            flipped_y = True

    return LabelBox(box_x, box_y, box_width, box_height, flipped_x, flipped_y)


def preview_label(x: float, y: float, radius: float,
                  text_width: float, text_height: float,
                  dims: Optional[PageDimensions]) -> LabelBox:
    """Label box for the on-screen view.

    The flip decision uses the estimated size, as the real one is unknown
    until the label is drawn; the returned box has the drawn size and sits
    in the corner that decision picked.  Near an edge this can disagree with
    the exported placement, which flips on measured text.
    """
    est_w, est_h = estimated_label_size()
    decided = place_label(x, y, radius, est_w, est_h, dims)
    box_x = x - radius - text_width if decided.flipped_x else x + radius
    box_y = y - radius - text_height if decided.flipped_y else y + radius
    return LabelBox(box_x, box_y, text_width, text_height,
                    decided.flipped_x, decided.flipped_y)


def format_label(ux: float, uy: float) -> str:
    return f"x:{round(ux)}, y:{round(uy)}"


def estimated_label_size() -> tuple[float, float]:
    """Size assumed for on-screen labels, which are never measured."""
    return (ESTIMATED_LABEL_WIDTH, ESTIMATED_LABEL_HEIGHT)
