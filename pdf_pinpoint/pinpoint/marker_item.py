"""QGraphicsItem drawing one point: red dot plus coordinate label."""
from __future__ import annotations

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QPainter, QPen
from PyQt6.QtWidgets import QGraphicsItem

from pinpoint.annotation import AnnotationPoint, AnnotationStore
from pinpoint.config import DOT_RADIUS, LABEL_PADDING, MARKER_RED
from pinpoint.labels import LabelBox, format_label, preview_label

# On-screen dot is a little bigger than the exported one so it can be grabbed.
MARKER_VISUAL_RADIUS = 4.0
LABEL_FONT_PX = 8
GRAB_MARGIN = 3.0


def _qcolor(rgb: tuple) -> QColor:
    return QColor.fromRgbF(*rgb)


class MarkerItem(QGraphicsItem):
    """Draws an AnnotationPoint in scene (view-frame) coordinates.

    The item's origin is the dot centre.  It never moves itself: the viewer
    turns mouse drags into store updates and then calls :meth:`refresh`.
    """

    def __init__(self, point: AnnotationPoint, store: AnnotationStore):
        super().__init__()
        self._point = point
        self._store = store
        self._font = QFont("Courier New")
        self._font.setPixelSize(LABEL_FONT_PX)
        self._font.setBold(True)
        self._text = ""
        self._label_local = QRectF()

        self.setAcceptHoverEvents(True)
        self.setZValue(10)
        self.refresh()

    @property
    def uid(self) -> str:
        return self._point.id

    @property
    def point(self) -> AnnotationPoint:
        return self._point

    @property
    def label_text(self) -> str:
        return self._text

    def label_box(self) -> LabelBox:
        """Where the label sits, in canonical coordinates."""
        p = self._point
        ux, uy = self._store.user_coordinates(p)
        text = format_label(ux, uy)
        metrics = QFontMetricsF(self._font)
        w = metrics.horizontalAdvance(text) + LABEL_PADDING * 2
        h = metrics.height() + LABEL_PADDING * 2
        return preview_label(p.x, p.y, DOT_RADIUS, w, h,
                             self._store.page_dimensions(p.page_index))

    def refresh(self):
        """Re-read position, origin and label from the store."""
        self.prepareGeometryChange()
        p = self._point
        self.setPos(QPointF(p.display_x, p.display_y))

        ux, uy = self._store.user_coordinates(p)
        self._text = format_label(ux, uy)
        dims = self._store.page_dimensions(p.page_index)
        box = self.label_box()
        if dims is not None:
            left, top, w, h = box.to_view(dims.height)
            self._label_local = QRectF(left - p.display_x, top - p.display_y, w, h)
        else:
            # Heights unknown: keep the default up-right anchor in local space.
            self._label_local = QRectF(DOT_RADIUS, -DOT_RADIUS - box.height,
                                       box.width, box.height)
        self.update()

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def dot_rect(self) -> QRectF:
        r = MARKER_VISUAL_RADIUS + GRAB_MARGIN
        return QRectF(-r, -r, 2 * r, 2 * r)

    def boundingRect(self) -> QRectF:
        return self.dot_rect().united(self._label_local).adjusted(-2, -2, 2, 2)

    def contains_dot(self, scene_pt: QPointF) -> bool:
        return self.dot_rect().contains(self.mapFromScene(scene_pt))

    # ------------------------------------------------------------------
    # Paint
    # ------------------------------------------------------------------

    def paint(self, painter: QPainter, option, widget=None):
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        selected = self._store.selected_id == self._point.id
        red = _qcolor(MARKER_RED)
        if selected:
            red = red.lighter(125)

        # --- Dot ---
        if selected:
            pen = QPen(QColor("white"), 1.5)
        else:
            pen = QPen(Qt.PenStyle.NoPen)
        painter.setPen(pen)
        painter.setBrush(QBrush(red))
        painter.drawEllipse(QPointF(0, 0), MARKER_VISUAL_RADIUS, MARKER_VISUAL_RADIUS)

        # --- Label ---
        painter.setPen(QPen(QColor("white"), 0.75) if selected else Qt.PenStyle.NoPen)
        painter.drawRoundedRect(self._label_local, 2, 2)

        painter.setFont(self._font)
        painter.setPen(QPen(QColor("white")))
        painter.drawText(self._label_local, Qt.AlignmentFlag.AlignCenter, self._text)
