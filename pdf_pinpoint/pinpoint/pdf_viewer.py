"""PDF canvas: QGraphicsView that renders PDF pages and handles point placement."""
from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Optional

import fitz  # PyMuPDF
from PyQt6.QtCore import pyqtSignal, Qt, QPointF, QRectF
from PyQt6.QtGui import QImage, QPainter, QPixmap, QTransform, QWheelEvent, QKeyEvent
from PyQt6.QtWidgets import (
    QGraphicsView, QGraphicsScene, QGraphicsPixmapItem,
)

from pinpoint.annotation import AnnotationStore
from pinpoint.config import (
    POINTS_PER_INCH, RENDER_DPI, ZOOM_MAX, ZOOM_MIN, ZOOM_STEP,
)
from pinpoint.coordinates import (
    ViewportTransform, screen_delta_to_canonical, screen_to_canonical,
)
from pinpoint.marker_item import MarkerItem

logger = logging.getLogger(__name__)


class ViewMode(Enum):
    NAVIGATE = auto()
    ANNOTATE = auto()


class PDFViewer(QGraphicsView):
    """Displays one PDF page at a time with zoom/pan.

    Acts on the shared AnnotationStore directly and emits signals so the
    rest of the window can follow along.
    """

    point_added       = pyqtSignal(str)        # uid
    point_moved       = pyqtSignal(str)        # uid
    point_removed     = pyqtSignal(str)        # uid
    selection_changed = pyqtSignal(object)     # uid or None
    page_changed      = pyqtSignal(int, int)   # current (1-based), total
    zoom_changed      = pyqtSignal(float)

    def __init__(self, store: AnnotationStore, parent=None):
        super().__init__(parent)
        self._store = store
        self._scene = QGraphicsScene(self)
        self.setScene(self._scene)

        self.setRenderHints(
            QPainter.RenderHint.Antialiasing |
            QPainter.RenderHint.SmoothPixmapTransform
        )
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)
        self.setResizeAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)

        self._doc: Optional[fitz.Document] = None
        self._current_page: int = 1
        self._zoom: float = 1.0
        self._page_height: float = 0.0
        self._mode: ViewMode = ViewMode.NAVIGATE
        self._space_held = False

        # uid -> MarkerItem for the *current page only*
        self._markers: dict[str, MarkerItem] = {}
        self._pixmap_item: Optional[QGraphicsPixmapItem] = None

        # (uid, press pixel, canonical position at press)
        self._drag: Optional[tuple[str, QPointF, tuple[float, float]]] = None

        self.set_mode(ViewMode.NAVIGATE)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load_document(self, data: bytes):
        self.close_document()
        self._doc = fitz.open(stream=data, filetype="pdf")
        self._current_page = 1
        self._zoom = 1.0
        self._render_page(self._current_page)
        self.page_changed.emit(self._current_page, len(self._doc))
        self.zoom_changed.emit(self._zoom)

    def close_document(self):
        if self._doc is not None:
            self._doc.close()
        self._doc = None
        self._markers.clear()
        self._scene.clear()
        self._pixmap_item = None

    def set_page(self, page: int):
        if self._doc is None:
            return
        page = max(1, min(page, len(self._doc)))
        self._current_page = page
        self._render_page(page)
        self.page_changed.emit(self._current_page, len(self._doc))

    def next_page(self):
        if self._doc:
            self.set_page(self._current_page + 1)

    def prev_page(self):
        if self._doc:
            self.set_page(self._current_page - 1)

    def set_mode(self, mode: ViewMode):
        self._mode = mode
        self._apply_cursor()

    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def page_count(self) -> int:
        return len(self._doc) if self._doc else 0

    @property
    def zoom(self) -> float:
        return self._zoom

    def viewport_transform(self) -> ViewportTransform:
        """Scene (view frame) to viewport pixels, scroll position included."""
        t = self.viewportTransform()
        return ViewportTransform(scale=t.m11(), pan_x=t.dx(), pan_y=t.dy())

    def zoom_in(self):
        self._apply_zoom(self._zoom + ZOOM_STEP)

    def zoom_out(self):
        self._apply_zoom(self._zoom - ZOOM_STEP)

    def reset_view(self):
        self._apply_zoom(1.0)
        self.horizontalScrollBar().setValue(self.horizontalScrollBar().minimum())
        self.verticalScrollBar().setValue(self.verticalScrollBar().minimum())

    def marker(self, uid: str) -> Optional[MarkerItem]:
        return self._markers.get(uid)

    # Store changes made elsewhere (table edits, deletes, origin switch)

    def refresh_point(self, uid: str):
        item = self._markers.get(uid)
        if item is not None:
            item.refresh()

    def remove_point(self, uid: str):
        item = self._markers.pop(uid, None)
        if item is not None:
            self._scene.removeItem(item)

    def refresh_markers(self):
        for item in self._markers.values():
            item.refresh()

    def sync_markers(self):
        """Rebuild marker items for the current page from the store."""
        for item in self._markers.values():
            self._scene.removeItem(item)
        self._markers.clear()
        if self._doc is None:
            return
        for point in self._store.for_page(self._current_page):
            item = MarkerItem(point, self._store)
            self._scene.addItem(item)
            self._markers[point.id] = item

    def scroll_to_point(self, uid: str):
        point = self._store.get(uid)
        if point is None:
            return
        if point.page_index != self._current_page:
            self.set_page(point.page_index)
        item = self._markers.get(uid)
        if item:
            self.centerOn(item)
        self._select(uid)

    # ------------------------------------------------------------------
    # Internal rendering
    # ------------------------------------------------------------------

    def _render_page(self, page_no: int):
        self._markers.clear()
        self._scene.clear()
        self._pixmap_item = None

        if self._doc is None:
            return

        page = self._doc[page_no - 1]
        dims = self._store.page_dimensions(page_no)
        pt_w = dims.width if dims else page.rect.width
        pt_h = dims.height if dims else page.rect.height
        self._page_height = pt_h

        scale = RENDER_DPI / POINTS_PER_INCH
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        img = QImage(pix.samples, pix.width, pix.height,
                     pix.stride, QImage.Format.Format_RGB888)
        # QImage does not own pix.samples; copy before pix goes away.
        qpix = QPixmap.fromImage(img.copy())

        self._pixmap_item = QGraphicsPixmapItem(qpix)
        # Transform: pixmap px -> pdf pts
        px_to_pt = pt_w / pix.width
        self._pixmap_item.setTransform(QTransform().scale(px_to_pt, px_to_pt))
        self._scene.addItem(self._pixmap_item)
        self._scene.setSceneRect(QRectF(0, 0, pt_w, pt_h))

        self.setTransform(QTransform().scale(self._zoom, self._zoom))
        self.sync_markers()
        logger.debug("Rendered page %d (%.1f x %.1f pt)", page_no, pt_w, pt_h)

    # ------------------------------------------------------------------
    # Zoom helpers
    # ------------------------------------------------------------------

    def _apply_zoom(self, zoom: float):
        zoom = round(max(ZOOM_MIN, min(zoom, ZOOM_MAX)), 2)
        self._zoom = zoom
        self.setTransform(QTransform().scale(zoom, zoom))
        self.zoom_changed.emit(zoom)

    # ------------------------------------------------------------------
    # Selection / mode helpers
    # ------------------------------------------------------------------

    def _select(self, uid: Optional[str]):
        previous = self._store.selected_id
        self._store.select(uid)
        if previous != self._store.selected_id:
            for key in (previous, self._store.selected_id):
                if key in self._markers:
                    self._markers[key].update()
            self.selection_changed.emit(self._store.selected_id)

    def _panning(self) -> bool:
        return self._mode == ViewMode.NAVIGATE or self._space_held

    def _apply_cursor(self):
        if self._panning():
            self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)
            self.viewport().setCursor(Qt.CursorShape.OpenHandCursor)
        else:
            self.setDragMode(QGraphicsView.DragMode.NoDrag)
            self.viewport().setCursor(Qt.CursorShape.CrossCursor)

    def _marker_at(self, pos) -> Optional[MarkerItem]:
        scene_pt = self.mapToScene(pos)
        for item in self._markers.values():
            if item.contains_dot(scene_pt):
                return item
        return None

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def wheelEvent(self, event: QWheelEvent):
        if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            delta = event.angleDelta().y()
            self._apply_zoom(self._zoom + (ZOOM_STEP if delta > 0 else -ZOOM_STEP))
            event.accept()
        else:
            super().wheelEvent(event)

    def mousePressEvent(self, event):
        if (event.button() != Qt.MouseButton.LeftButton or self._doc is None
                or self._space_held):
            super().mousePressEvent(event)
            return

        pos = event.position()
        item = self._marker_at(pos.toPoint())
        if item is not None:
            self._select(item.uid)
            point = item.point
            self._drag = (item.uid, QPointF(pos), (point.x, point.y))
            self.viewport().setCursor(Qt.CursorShape.ClosedHandCursor)
            event.accept()
            return

        if self._mode == ViewMode.ANNOTATE:
            x, y = screen_to_canonical(pos.x(), pos.y(), self._page_height,
                                       self.viewport_transform())
            point = self._store.add(self._current_page, x, y)
            item = MarkerItem(point, self._store)
            self._scene.addItem(item)
            self._markers[point.id] = item
            self.point_added.emit(point.id)
            self.selection_changed.emit(point.id)
            event.accept()
            return

        self._select(None)
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._drag is None:
            super().mouseMoveEvent(event)
            return
        uid, start, (x0, y0) = self._drag
        pos = event.position()
        dx, dy = screen_delta_to_canonical(pos.x() - start.x(), pos.y() - start.y(),
                                           self._zoom)
        if self._store.update_from_drag(uid, x0 + dx, y0 + dy) is not None:
            self.refresh_point(uid)
            self.point_moved.emit(uid)
        event.accept()

    def mouseReleaseEvent(self, event):
        if self._drag is not None and event.button() == Qt.MouseButton.LeftButton:
            self._drag = None
            self._apply_cursor()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def keyPressEvent(self, event: QKeyEvent):
        if event.key() in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            uid = self._store.selected_id
            if uid is not None and self._store.remove(uid):
                self.remove_point(uid)
                self.point_removed.emit(uid)
                self.selection_changed.emit(None)
            event.accept()
            return
        if event.key() == Qt.Key.Key_Space and not event.isAutoRepeat():
            self._space_held = True
            self._apply_cursor()
            event.accept()
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key.Key_Space and not event.isAutoRepeat():
            self._space_held = False
            self._apply_cursor()
            event.accept()
            return
        super().keyReleaseEvent(event)
