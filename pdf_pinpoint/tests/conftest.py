import os
import sys

import fitz  # PyMuPDF
import pytest

# Offscreen platform for Qt
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pinpoint.annotation import AnnotationStore
from pinpoint.coordinates import PageDimensions

LETTER = PageDimensions(612, 792)


def make_pdf(*sizes) -> bytes:
    """Blank PDF with one page per (width, height)."""
    doc = fitz.open()
    for w, h in sizes or [(612, 792)]:
        doc.new_page(width=w, height=h)
    data = doc.tobytes(no_new_id=True)
    doc.close()
    return data


@pytest.fixture
def letter_pdf() -> bytes:
    return make_pdf((612, 792), (612, 792))


@pytest.fixture
def store() -> AnnotationStore:
    s = AnnotationStore()
    s.set_page_dimensions({1: LETTER, 2: LETTER})
    return s


@pytest.fixture(scope="session")
def qapp():
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication(sys.argv)
    yield app
