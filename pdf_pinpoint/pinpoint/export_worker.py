"""Background thread that runs the PDF export without freezing the UI."""
from __future__ import annotations

import logging

from PyQt6.QtCore import QThread, pyqtSignal

from pinpoint.annotation import AnnotationPoint
from pinpoint.coordinates import OriginConvention
from pinpoint.exporter import EXPORT_FAILED, PinpointError, export_pdf_bytes

logger = logging.getLogger(__name__)


class ExportWorker(QThread):
    """Runs one export.  Not cancellable once started.

    Only one worker should run at a time; the main window enforces this by
    disabling its export action until ``finished_export`` fires.
    """

    progress = pyqtSignal(str)            # status message
    exported = pyqtSignal(bytes)          # output document
    finished_export = pyqtSignal(bool, str)  # success, message

    def __init__(self, source_bytes: bytes, annotations: list[AnnotationPoint],
                 origin: OriginConvention, parent=None):
        super().__init__(parent)
        self._source = source_bytes
        self._annotations = annotations
        self._origin = origin

    def run(self):
        self.progress.emit("Exporting points...")
        try:
            data = export_pdf_bytes(self._source, self._annotations, self._origin)
        except PinpointError as e:
            self.finished_export.emit(False, str(e))
            return
        except Exception:
            logger.exception("Unexpected error in export worker")
            self.finished_export.emit(False, EXPORT_FAILED)
            return
        self.exported.emit(data)
        self.finished_export.emit(True, "Annotated PDF exported.")
