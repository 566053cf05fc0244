"""Fixed sizes, colours and limits shared by the viewer and the exporter."""
from __future__ import annotations

from dataclasses import dataclass

# Marker geometry, PDF points
DOT_RADIUS      = 3.0
CORNER_RADIUS   = 3.0
LABEL_PADDING   = 2.0
BASELINE_OFFSET = 1.5
TEXT_SIZE       = 8.0
LABEL_FONT      = "hebo"    # PyMuPDF base-14 Helvetica-Bold

# The on-screen label is not measured; it is assumed to be this big.
ESTIMATED_LABEL_WIDTH  = 110.0
ESTIMATED_LABEL_HEIGHT = 30.0

# Points closer than this in Y count as the same row when listing.
ROW_TOLERANCE = 2.0

# Viewer
RENDER_DPI      = 150
POINTS_PER_INCH = 72.0
ZOOM_MIN        = 0.5
ZOOM_MAX        = 3.0
ZOOM_STEP       = 0.2

MARKER_RED = (0.8, 0.1, 0.1)
LABEL_TEXT = (1.0, 1.0, 1.0)

EXPORT_PREFIX = "annotated_"


@dataclass
class MarkerStyle:
    """Appearance of an exported marker."""

    dot_radius: float = DOT_RADIUS
    corner_radius: float = CORNER_RADIUS
    padding: float = LABEL_PADDING
    baseline_offset: float = BASELINE_OFFSET
    font_size: float = TEXT_SIZE
    fontname: str = LABEL_FONT
    fill_color: tuple = MARKER_RED
    text_color: tuple = LABEL_TEXT

    @classmethod
    def from_config(cls, config: dict) -> "MarkerStyle":
        """Create a style from a plain dict, ignoring unknown keys."""
        style = cls()

        for key in ("dot_radius", "corner_radius", "padding",
                    "baseline_offset", "font_size"):
            if key in config:
                setattr(style, key, float(config[key]))

        if "fontname" in config:
            style.fontname = str(config["fontname"])

        for key in ("fill_color", "text_color"):
            color = config.get(key)
            if isinstance(color, (list, tuple)) and len(color) == 3:
                # Accept 0-255 as well as 0.0-1.0
                if any(c > 1 for c in color):
                    color = [c / 255.0 for c in color]
                setattr(style, key, tuple(float(c) for c in color))

        return style
