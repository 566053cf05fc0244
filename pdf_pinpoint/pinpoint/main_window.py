"""Main application window: menus, toolbar, origin selector, wiring."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import Qt, QSize, QTimer
from PyQt6.QtGui import QAction
from PyQt6.QtWidgets import (
    QMainWindow, QToolBar, QStatusBar, QLabel, QFileDialog,
    QMessageBox, QPushButton, QSpinBox, QComboBox,
)

from pinpoint.annotation import AnnotationStore
from pinpoint.coordinates import OriginConvention
from pinpoint.export_worker import ExportWorker
from pinpoint.exporter import (
    PinpointError, export_csv, export_excel, read_page_dimensions,
    suggested_filename, write_output,
)
from pinpoint.pdf_viewer import PDFViewer, ViewMode
from pinpoint.point_table import PointTableWidget

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("PDF Pinpoint")
        self.resize(1280, 900)

        self._store = AnnotationStore()
        self._pdf_path: str = ""
        self._pdf_bytes: Optional[bytes] = None
        self._worker: Optional[ExportWorker] = None
        self._export_path: str = ""
        self._write_error: str = ""

        # -- Central viewer --
        self._viewer = PDFViewer(self._store, self)
        self.setCentralWidget(self._viewer)

        # -- Side panel --
        self._table = PointTableWidget(self._store, self)
        self.addDockWidget(Qt.DockWidgetArea.RightDockWidgetArea, self._table)

        # -- Status bar --
        self._status_page  = QLabel("No file open")
        self._status_zoom  = QLabel("Zoom: 100%")
        self._status_count = QLabel("Points: 0")
        sb = QStatusBar()
        sb.addWidget(self._status_page)
        sb.addPermanentWidget(self._status_zoom)
        sb.addPermanentWidget(self._status_count)
        self.setStatusBar(sb)

        self._build_menus()
        self._build_toolbar()
        self._connect_signals()

    @property
    def store(self) -> AnnotationStore:
        return self._store

    @property
    def viewer(self) -> PDFViewer:
        return self._viewer

    # ------------------------------------------------------------------
    # Menu / Toolbar
    # ------------------------------------------------------------------

    def _build_menus(self):
        mb = self.menuBar()

        # File
        file_menu = mb.addMenu("&File")
        self._act_open = QAction("&Open PDF…", self, shortcut="Ctrl+O")
        self._act_open.triggered.connect(self.open_pdf)
        file_menu.addAction(self._act_open)

        self._act_save = QAction("&Export Annotated PDF…", self, shortcut="Ctrl+S")
        self._act_save.triggered.connect(self.export_pdf)
        file_menu.addAction(self._act_save)

        self._act_csv = QAction("Export Point &List (CSV)…", self)
        self._act_csv.triggered.connect(self.export_csv)
        file_menu.addAction(self._act_csv)

        self._act_xlsx = QAction("Export Point List (E&xcel)…", self)
        self._act_xlsx.triggered.connect(self.export_excel)
        file_menu.addAction(self._act_xlsx)

        file_menu.addSeparator()
        file_menu.addAction(QAction("&Quit", self, shortcut="Ctrl+Q",
                                    triggered=self.close))

        # View
        view_menu = mb.addMenu("&View")
        view_menu.addAction(QAction("Zoom &In", self, shortcut="Ctrl++",
                                     triggered=self._viewer.zoom_in))
        view_menu.addAction(QAction("Zoom &Out", self, shortcut="Ctrl+-",
                                     triggered=self._viewer.zoom_out))
        view_menu.addAction(QAction("&Reset View", self, shortcut="Ctrl+0",
                                     triggered=self._viewer.reset_view))
        view_menu.addSeparator()
        view_menu.addAction(QAction("&Previous Page", self, shortcut="PgUp",
                                     triggered=self._viewer.prev_page))
        view_menu.addAction(QAction("&Next Page", self, shortcut="PgDown",
                                     triggered=self._viewer.next_page))

        # Tools
        tools_menu = mb.addMenu("&Tools")
        self._act_nav_mode = QAction("&Navigate Mode", self, checkable=True,
                                      shortcut="Escape")
        self._act_nav_mode.setChecked(True)
        self._act_nav_mode.triggered.connect(lambda: self._set_mode(ViewMode.NAVIGATE))
        tools_menu.addAction(self._act_nav_mode)

        self._act_ann_mode = QAction("&Annotate Mode", self, checkable=True,
                                      shortcut="A")
        self._act_ann_mode.triggered.connect(lambda: self._set_mode(ViewMode.ANNOTATE))
        tools_menu.addAction(self._act_ann_mode)

    def _build_toolbar(self):
        tb = QToolBar("Main Toolbar")
        tb.setMovable(False)
        tb.setIconSize(QSize(20, 20))
        self.addToolBar(tb)

        tb.addAction(self._act_open)
        tb.addAction(self._act_save)
        tb.addSeparator()

        # Zoom controls
        tb.addAction(QAction("−", self, triggered=self._viewer.zoom_out))
        tb.addAction(QAction("+", self, triggered=self._viewer.zoom_in))
        tb.addAction(QAction("Reset", self, triggered=self._viewer.reset_view))
        tb.addSeparator()

        # Page navigation
        tb.addAction(QAction("◄", self, triggered=self._viewer.prev_page))
        self._page_spin = QSpinBox()
        self._page_spin.setMinimum(1)
        self._page_spin.setMaximum(1)
        self._page_spin.setFixedWidth(55)
        self._page_spin.valueChanged.connect(self._viewer.set_page)
        tb.addWidget(self._page_spin)
        tb.addAction(QAction("►", self, triggered=self._viewer.next_page))
        tb.addSeparator()

        # Mode button
        self._mode_btn = QPushButton("Mode: Navigate")
        self._mode_btn.setCheckable(True)
        self._mode_btn.setFixedWidth(130)
        self._mode_btn.toggled.connect(self._on_mode_btn_toggled)
        tb.addWidget(self._mode_btn)

        # Origin selector
        tb.addWidget(QLabel("  Origin: "))
        self._origin_combo = QComboBox()
        for origin in OriginConvention:
            self._origin_combo.addItem(origin.label, origin.value)
        self._origin_combo.setFixedWidth(130)
        self._origin_combo.currentIndexChanged.connect(self._on_origin_changed)
        tb.addWidget(self._origin_combo)

    # ------------------------------------------------------------------
    # Signal wiring
    # ------------------------------------------------------------------

    def _connect_signals(self):
        self._viewer.point_added.connect(self._on_points_changed)
        self._viewer.point_moved.connect(self._on_points_changed)
        self._viewer.point_removed.connect(self._on_points_changed)
        self._viewer.selection_changed.connect(self._table.select_point)
        self._viewer.page_changed.connect(self._on_page_changed)
        self._viewer.zoom_changed.connect(self._on_zoom_changed)
        self._table.point_selected.connect(self._viewer.scroll_to_point)
        self._table.point_edited.connect(self._on_point_edited)

    # ------------------------------------------------------------------
    # Mode / origin
    # ------------------------------------------------------------------

    def _set_mode(self, mode: ViewMode):
        self._viewer.set_mode(mode)
        annotating = mode == ViewMode.ANNOTATE
        self._mode_btn.blockSignals(True)
        self._mode_btn.setChecked(annotating)
        self._mode_btn.blockSignals(False)
        self._mode_btn.setText("Mode: Annotate" if annotating else "Mode: Navigate")
        self._act_nav_mode.setChecked(not annotating)
        self._act_ann_mode.setChecked(annotating)

    def _on_mode_btn_toggled(self, checked: bool):
        self._set_mode(ViewMode.ANNOTATE if checked else ViewMode.NAVIGATE)

    def set_origin(self, origin: OriginConvention):
        idx = self._origin_combo.findData(origin.value)
        if idx >= 0:
            self._origin_combo.setCurrentIndex(idx)

    def _on_origin_changed(self, idx: int):
        self._store.origin = OriginConvention(self._origin_combo.itemData(idx))
        self._viewer.refresh_markers()
        self._table.rebuild()

    # ------------------------------------------------------------------
    # File operations
    # ------------------------------------------------------------------

    def open_pdf(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Open PDF", "", "PDF Files (*.pdf)"
        )
        if path:
            self.load_file(path)

    def load_file(self, path: str) -> bool:
        try:
            data = Path(path).read_bytes()
            dims = read_page_dimensions(data)
        except (OSError, PinpointError) as e:
            logger.error("Could not open %s: %s", path, e)
            QMessageBox.critical(self, "Open Error", "Please select a valid PDF file.")
            return False

        self._pdf_path = path
        self._pdf_bytes = data
        self._store.clear()
        self._store.set_page_dimensions(dims)
        self._viewer.load_document(data)
        self._table.rebuild()
        self._update_count()
        self.setWindowTitle(f"PDF Pinpoint — {Path(path).name}")
        logger.info("Opened %s (%d page(s))", path, len(dims))
        return True

    def export_pdf(self):
        if self._pdf_bytes is None:
            QMessageBox.warning(self, "No PDF", "Open a PDF first.")
            return
        if self._worker is not None:
            return
        default = str(Path(self._pdf_path).with_name(suggested_filename(self._pdf_path)))
        path, _ = QFileDialog.getSaveFileName(
            self, "Export Annotated PDF", default, "PDF Files (*.pdf)"
        )
        if not path:
            return
        self.start_export(path)

    def start_export(self, path: str):
        self._export_path = path
        self._write_error = ""
        self._act_save.setEnabled(False)
        self._worker = ExportWorker(self._pdf_bytes, self._store.snapshot(),
                                    self._store.origin, self)
        self._worker.progress.connect(self.statusBar().showMessage)
        self._worker.exported.connect(self._on_exported)
        self._worker.finished_export.connect(self._on_export_finished)
        self._worker.start()

    def _on_exported(self, data: bytes):
        try:
            write_output(data, self._export_path, self._pdf_path)
        except (OSError, ValueError) as e:
            logger.error("Could not write %s: %s", self._export_path, e)
            self._write_error = str(e)

    def _on_export_finished(self, ok: bool, message: str):
        worker, self._worker = self._worker, None
        if worker is not None:
            worker.wait()
            worker.deleteLater()
        self._act_save.setEnabled(True)
        if self._write_error:
            ok, message = False, self._write_error
        self.statusBar().showMessage(message, 5000)
        if not ok:
            QMessageBox.critical(self, "Export Error",
                                 f"{message} Please try again.")

    def export_csv(self):
        self._export_list("Export Point List", ".csv", "CSV Files (*.csv)", export_csv)

    def export_excel(self):
        name = Path(self._pdf_path).name if self._pdf_path else ""
        self._export_list(
            "Export Point List", ".xlsx", "Excel Files (*.xlsx)",
            lambda path, store: export_excel(path, store, name),
        )

    def _export_list(self, title: str, suffix: str, filter_: str, writer):
        if not len(self._store):
            QMessageBox.information(self, "No Points", "No points to export.")
            return
        default = str(Path(self._pdf_path).with_suffix(suffix)) if self._pdf_path else "points" + suffix
        path, _ = QFileDialog.getSaveFileName(self, title, default, filter_)
        if not path:
            return
        try:
            writer(path, self._store)
            QMessageBox.information(self, "Done", f"Saved to:\n{path}")
        except OSError as e:
            QMessageBox.critical(self, "Export Error", str(e))

    # ------------------------------------------------------------------
    # Signal handlers
    # ------------------------------------------------------------------

    def _on_points_changed(self, uid: str):
        self._table.rebuild()
        self._update_count()

    def _on_point_edited(self, uid: str):
        self._viewer.refresh_point(uid)
        # The edit came from inside the table's own cellChanged handler.
        QTimer.singleShot(0, self._table.rebuild)

    def _on_page_changed(self, current: int, total: int):
        self._status_page.setText(f"Page {current} / {total}")
        self._page_spin.blockSignals(True)
        self._page_spin.setMaximum(total)
        self._page_spin.setValue(current)
        self._page_spin.blockSignals(False)

    def _on_zoom_changed(self, zoom: float):
        self._status_zoom.setText(f"Zoom: {int(round(zoom * 100))}%")

    def _update_count(self):
        self._status_count.setText(f"Points: {len(self._store)}")
