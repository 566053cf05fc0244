"""Dockable side panel listing points in reading order."""
from __future__ import annotations

import logging

from PyQt6.QtCore import pyqtSignal, Qt, QTimer
from PyQt6.QtWidgets import (
    QDockWidget, QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem,
    QHeaderView, QAbstractItemView,
)

from pinpoint.annotation import AnnotationStore

logger = logging.getLogger(__name__)

_COL_NUM  = 0
_COL_PAGE = 1
_COL_X    = 2
_COL_Y    = 3
_HEADERS  = ["#", "Page", "X", "Y"]


class PointTableWidget(QDockWidget):
    point_selected = pyqtSignal(str)     # uid
    point_edited   = pyqtSignal(str)     # uid, after a typed X/Y change

    def __init__(self, store: AnnotationStore, parent=None):
        super().__init__("Points", parent)
        self.setAllowedAreas(
            Qt.DockWidgetArea.RightDockWidgetArea |
            Qt.DockWidgetArea.LeftDockWidgetArea
        )
        self._store = store
        self._uid_for_row: list[str] = []              # row index -> uid

        container = QWidget()
        layout = QVBoxLayout(container)
        layout.setContentsMargins(4, 4, 4, 4)

        self._table = QTableWidget(0, len(_HEADERS))
        self._table.setHorizontalHeaderLabels(_HEADERS)
        header = self._table.horizontalHeader()
        for col in (_COL_NUM, _COL_PAGE):
            header.setSectionResizeMode(col, QHeaderView.ResizeMode.ResizeToContents)
        for col in (_COL_X, _COL_Y):
            header.setSectionResizeMode(col, QHeaderView.ResizeMode.Stretch)
        self._table.setSelectionBehavior(
            QAbstractItemView.SelectionBehavior.SelectRows
        )
        self._table.setEditTriggers(
            QAbstractItemView.EditTrigger.DoubleClicked |
            QAbstractItemView.EditTrigger.SelectedClicked
        )
        self._table.verticalHeader().setVisible(False)
        self._table.cellClicked.connect(self._on_row_clicked)
        self._table.cellChanged.connect(self._on_cell_changed)

        layout.addWidget(self._table)
        self.setWidget(container)
        self.setMinimumWidth(240)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def table(self) -> QTableWidget:
        return self._table

    def rebuild(self):
        self._table.blockSignals(True)
        self._table.setRowCount(0)
        self._uid_for_row.clear()

        for n, point in enumerate(self._store.ordered_view(), 1):
            row = self._table.rowCount()
            self._table.insertRow(row)
            self._uid_for_row.append(point.id)
            ux, uy = self._store.user_coordinates(point)

            num_item = QTableWidgetItem(str(n))
            num_item.setFlags(num_item.flags() & ~Qt.ItemFlag.ItemIsEditable)
            self._table.setItem(row, _COL_NUM, num_item)

            page_item = QTableWidgetItem(str(point.page_index))
            page_item.setFlags(page_item.flags() & ~Qt.ItemFlag.ItemIsEditable)
            self._table.setItem(row, _COL_PAGE, page_item)

            self._table.setItem(row, _COL_X, QTableWidgetItem(f"{ux:.1f}"))
            self._table.setItem(row, _COL_Y, QTableWidgetItem(f"{uy:.1f}"))

        self._table.blockSignals(False)
        self.select_point(self._store.selected_id)

    def select_point(self, uid):
        """Highlight the row corresponding to uid (or clear on None)."""
        try:
            row = self._uid_for_row.index(uid)
        except ValueError:
            self._table.clearSelection()
            return
        self._table.selectRow(row)

    def uid_at(self, row: int) -> str:
        return self._uid_for_row[row]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_row_clicked(self, row: int, col: int):
        if row < len(self._uid_for_row):
            self.point_selected.emit(self._uid_for_row[row])

    def _on_cell_changed(self, row: int, col: int):
        if col not in (_COL_X, _COL_Y) or row >= len(self._uid_for_row):
            return
        uid = self._uid_for_row[row]
        text = self._table.item(row, col).text().strip()
        try:
            value = float(text) if text else 0.0
        except ValueError:
            logger.debug("Ignoring non-numeric coordinate %r", text)
            QTimer.singleShot(0, self.rebuild)
            return

        if col == _COL_X:
            self._store.update_from_user_frame(uid, new_x=value)
        else:
            self._store.update_from_user_frame(uid, new_y=value)
        self.point_edited.emit(uid)
