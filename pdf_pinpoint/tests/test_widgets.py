import fitz  # PyMuPDF
import pytest
from PyQt6.QtCore import QEvent, QPointF, Qt
from PyQt6.QtGui import QKeyEvent, QMouseEvent
from PyQt6.QtWidgets import QMessageBox

from pinpoint.annotation import AnnotationStore
from pinpoint.coordinates import OriginConvention, canonical_to_screen
from pinpoint.export_worker import ExportWorker
from pinpoint.exporter import read_page_dimensions
from pinpoint.main_window import MainWindow
from pinpoint.pdf_viewer import PDFViewer, ViewMode
from pinpoint.point_table import PointTableWidget

from conftest import make_pdf


def mouse(kind, x, y):
    left, none = Qt.MouseButton.LeftButton, Qt.MouseButton.NoButton
    button = none if kind == QEvent.Type.MouseMove else left
    buttons = none if kind == QEvent.Type.MouseButtonRelease else left
    pt = QPointF(x, y)
    return QMouseEvent(kind, pt, pt, button, buttons, Qt.KeyboardModifier.NoModifier)


def key(k):
    return QKeyEvent(QEvent.Type.KeyPress, k, Qt.KeyboardModifier.NoModifier)


@pytest.fixture
def viewer(qapp, letter_pdf):
    store = AnnotationStore()
    store.set_page_dimensions(read_page_dimensions(letter_pdf))
    v = PDFViewer(store)
    v.resize(900, 1000)
    v.show()
    v.load_document(letter_pdf)
    qapp.processEvents()
    yield v
    v.close_document()
    v.close()


def screen_pos(viewer, x, y):
    return canonical_to_screen(x, y, 792, viewer.viewport_transform())


class TestViewer:

    def test_click_in_annotate_mode_adds_point(self, viewer):
        store = viewer._store
        viewer.set_mode(ViewMode.ANNOTATE)
        added = []
        viewer.point_added.connect(added.append)

        viewer.mousePressEvent(mouse(QEvent.Type.MouseButtonPress, *screen_pos(viewer, 100, 700)))

        assert len(store) == 1
        p = next(iter(store))
        assert p.page_index == 1
        assert p.x == pytest.approx(100, abs=0.01)
        assert p.y == pytest.approx(700, abs=0.01)
        assert p.display_y == pytest.approx(92, abs=0.01)
        assert added == [p.id]
        assert viewer.marker(p.id) is not None

    def test_click_in_navigate_mode_adds_nothing(self, viewer):
        viewer.mousePressEvent(mouse(QEvent.Type.MouseButtonPress, *screen_pos(viewer, 100, 700)))
        viewer.mouseReleaseEvent(mouse(QEvent.Type.MouseButtonRelease, *screen_pos(viewer, 100, 700)))

        assert len(viewer._store) == 0

    def test_drag_moves_point_in_canonical_space(self, viewer):
        store = viewer._store
        p = store.add(1, 100, 700)
        viewer.sync_markers()
        sx, sy = screen_pos(viewer, 100, 700)

        viewer.mousePressEvent(mouse(QEvent.Type.MouseButtonPress, sx, sy))
        viewer.mouseMoveEvent(mouse(QEvent.Type.MouseMove, sx + 20, sy + 10))
        viewer.mouseReleaseEvent(mouse(QEvent.Type.MouseButtonRelease, sx + 20, sy + 10))

        assert store.selected_id == p.id
        assert (p.x, p.y) == pytest.approx((120, 690))
        assert p.display_y == pytest.approx(102)
        pos = viewer.marker(p.id).pos()
        assert (pos.x(), pos.y()) == pytest.approx((120, 102))

    def test_drag_is_clamped(self, viewer):
        store = viewer._store
        p = store.add(1, 10, 780)
        viewer.sync_markers()
        sx, sy = screen_pos(viewer, 10, 780)

        viewer.mousePressEvent(mouse(QEvent.Type.MouseButtonPress, sx, sy))
        viewer.mouseMoveEvent(mouse(QEvent.Type.MouseMove, sx - 100, sy - 100))

        assert (p.x, p.y) == (0, 792)

    def test_delete_key_removes_selected(self, viewer):
        store = viewer._store
        p = store.add(1, 100, 700)
        viewer.sync_markers()
        removed = []
        viewer.point_removed.connect(removed.append)

        viewer.keyPressEvent(key(Qt.Key.Key_Delete))

        assert p.id not in store
        assert store.selected_id is None
        assert viewer.marker(p.id) is None
        assert removed == [p.id]

    def test_markers_follow_page(self, viewer):
        store = viewer._store
        a = store.add(1, 100, 700)
        b = store.add(2, 100, 700)

        viewer.set_page(2)

        assert viewer.marker(a.id) is None
        assert viewer.marker(b.id) is not None

    def test_zoom_is_clamped(self, viewer):
        for _ in range(30):
            viewer.zoom_in()
        assert viewer.zoom == 3.0
        for _ in range(30):
            viewer.zoom_out()
        assert viewer.zoom == 0.5

    def test_click_maps_through_zoom(self, viewer):
        viewer.zoom_in()
        viewer.zoom_in()
        viewer.set_mode(ViewMode.ANNOTATE)

        viewer.mousePressEvent(mouse(QEvent.Type.MouseButtonPress, *screen_pos(viewer, 300, 400)))

        p = next(iter(viewer._store))
        assert (p.x, p.y) == pytest.approx((300, 400), abs=0.01)


class TestMarkerItem:

    def test_label_follows_origin(self, viewer):
        store = viewer._store
        p = store.add(1, 100, 700)
        viewer.sync_markers()
        item = viewer.marker(p.id)
        assert item.label_text == "x:100, y:700"

        store.origin = OriginConvention.TOP_RIGHT
        viewer.refresh_markers()

        assert item.label_text == "x:512, y:92"

    def test_label_flips_near_right_edge(self, viewer):
        store = viewer._store
        p = store.add(1, 600, 400)
        viewer.sync_markers()

        box = viewer.marker(p.id).label_box()

        assert box.flipped_x
        assert box.right == pytest.approx(597)


class TestPointTable:

    def test_rows_in_reading_order(self, qapp, store):
        store.add(1, 50, 700)
        store.add(1, 10, 700.5)
        store.add(1, 5, 650)
        table = PointTableWidget(store)

        table.rebuild()

        xs = [table.table.item(r, 2).text() for r in range(3)]
        assert xs == ["10.0", "50.0", "5.0"]

    def test_edit_converts_from_user_frame(self, qapp, store):
        p = store.add(1, 100, 700)
        store.origin = OriginConvention.TOP_LEFT
        table = PointTableWidget(store)
        table.rebuild()
        edited = []
        table.point_edited.connect(edited.append)

        table.table.item(0, 3).setText("200")

        assert p.y == 592
        assert p.display_y == 200
        assert edited == [p.id]

    def test_non_numeric_edit_ignored(self, qapp, store):
        p = store.add(1, 100, 700)
        table = PointTableWidget(store)
        table.rebuild()

        table.table.item(0, 2).setText("abc")

        assert p.x == 100


class TestMainWindow:

    def test_open_and_switch_origin(self, qapp, tmp_path):
        path = tmp_path / "doc.pdf"
        path.write_bytes(make_pdf((612, 792)))
        win = MainWindow()

        assert win.load_file(str(path))
        p = win.store.add(1, 100, 700)
        win.viewer.sync_markers()
        win.set_origin(OriginConvention.TOP_LEFT)

        assert win.store.origin is OriginConvention.TOP_LEFT
        assert win.viewer.marker(p.id).label_text == "x:100, y:92"
        win.viewer.close_document()
        win.close()

    def test_failed_write_is_not_reported_as_success(self, qapp, tmp_path, monkeypatch):
        path = tmp_path / "doc.pdf"
        path.write_bytes(make_pdf((612, 792)))
        errors = []
        monkeypatch.setattr(QMessageBox, "critical",
                            lambda parent, title, text: errors.append(text))
        win = MainWindow()
        assert win.load_file(str(path))
        # Exporting over the source is refused by write_output.
        win._export_path = str(path)

        win._on_exported(b"%PDF-1.7")
        win._on_export_finished(True, "Annotated PDF exported.")

        assert path.read_bytes() != b"%PDF-1.7"
        assert win.statusBar().currentMessage().startswith("Cannot overwrite")
        assert len(errors) == 1
        win.viewer.close_document()
        win.close()


class TestExportWorker:

    def test_run_emits_bytes(self, qapp, letter_pdf, store):
        store.add(1, 100, 700)
        worker = ExportWorker(letter_pdf, store.snapshot(), OriginConvention.TOP_LEFT)
        results, payloads = [], []
        worker.finished_export.connect(lambda ok, msg: results.append(ok))
        worker.exported.connect(payloads.append)

        worker.run()

        assert results == [True]
        with fitz.open(stream=payloads[0], filetype="pdf") as doc:
            assert "x:100, y:92" in doc[0].get_text()

    def test_failure_emits_generic_message(self, qapp, store):
        store.add(1, 100, 700)
        worker = ExportWorker(b"broken", store.snapshot(), OriginConvention.BOTTOM_LEFT)
        results, payloads = [], []
        worker.finished_export.connect(lambda ok, msg: results.append((ok, msg)))
        worker.exported.connect(payloads.append)

        worker.run()

        assert results == [(False, "Failed to export annotated PDF.")]
        assert payloads == []
