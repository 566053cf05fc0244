"""PDF, CSV and Excel export using PyMuPDF's vector drawing API."""
from __future__ import annotations

import csv
import logging
from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

import fitz  # PyMuPDF

from pinpoint.annotation import AnnotationPoint, AnnotationStore
from pinpoint.config import EXPORT_PREFIX, MarkerStyle
from pinpoint.coordinates import (
    OriginConvention, PageDimensions, canonical_to_user, canonical_to_view,
)
from pinpoint.labels import LabelBox, format_label, place_label

logger = logging.getLogger(__name__)


class PinpointError(Exception):
    pass


class DocumentLoadError(PinpointError):
    pass


class ExportError(PinpointError):
    pass


EXPORT_FAILED = "Failed to export annotated PDF."


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------

def read_page_dimensions(source_bytes: bytes) -> dict[int, PageDimensions]:
    """Page sizes keyed by 1-based page number."""
    try:
        with fitz.open(stream=source_bytes, filetype="pdf") as doc:
            dims = {
                i + 1: PageDimensions(page.rect.width, page.rect.height)
                for i, page in enumerate(doc)
            }
    except Exception as e:
        logger.exception("Could not read page dimensions")
        raise DocumentLoadError("Could not open the PDF document.") from e
    if not dims:
        raise DocumentLoadError("The PDF document has no pages.")
    return dims


# ---------------------------------------------------------------------------
# PDF export
# ---------------------------------------------------------------------------

def export_pdf_bytes(source_bytes: bytes, annotations: Iterable[AnnotationPoint],
                     origin: OriginConvention = OriginConvention.BOTTOM_LEFT,
                     style: Optional[MarkerStyle] = None) -> bytes:
    """Return a copy of *source_bytes* with every point drawn as page content.

    *origin* only affects the label text; drawing happens in canonical space.
    Any failure is raised as a single ExportError and nothing is returned.
    """
    style = style or MarkerStyle()
    by_page: dict[int, list[AnnotationPoint]] = defaultdict(list)
    for ann in annotations:
        by_page[ann.page_index].append(ann)

    logger.info("Exporting %d point(s) on %d page(s)",
                sum(len(v) for v in by_page.values()), len(by_page))
    try:
        doc = fitz.open(stream=source_bytes, filetype="pdf")
        try:
            if doc.page_count == 0:
                raise ValueError("document has no pages")
            font = fitz.Font(style.fontname)
            text_height = (font.ascender - font.descender) * style.font_size

            for page_index in sorted(by_page):
                if not 1 <= page_index <= len(doc):
                    logger.warning("Skipping %d point(s) on missing page %d",
                                   len(by_page[page_index]), page_index)
                    continue
                _draw_page(doc[page_index - 1], by_page[page_index],
                           origin, style, text_height)

            data = doc.tobytes(garbage=4, deflate=True, no_new_id=True)
        finally:
            doc.close()
    except Exception as e:
        logger.exception("PDF export failed")
        raise ExportError(EXPORT_FAILED) from e

    logger.info("Export finished, %d bytes", len(data))
    return data


def _draw_page(page: fitz.Page, points: list[AnnotationPoint],
               origin: OriginConvention, style: MarkerStyle,
               text_height: float) -> None:
    # page.rect is the rotated, visible page; Shape and insert_text work in
    # unrotated page space, so every drawn point goes through derotation.
    dims = PageDimensions(page.rect.width, page.rect.height)
    mat = page.derotation_matrix
    r = style.dot_radius
    pad = style.padding

    shape = page.new_shape()
    # Text goes in after shape.commit() so it sits on top of the boxes.
    text_items: list[tuple[fitz.Point, str]] = []

    for ann in points:
        ux, uy = canonical_to_user(ann.x, ann.y, origin, dims)
        text = format_label(ux, uy)
        text_width = fitz.get_text_length(text, fontname=style.fontname,
                                          fontsize=style.font_size)
        box = place_label(ann.x, ann.y, r,
                          text_width + pad * 2, text_height + pad * 2, dims)

        # --- Dot ---
        shape.draw_circle(_to_page(ann.x, ann.y, dims, mat), r)
        shape.finish(color=None, fill=style.fill_color, width=0)

        # --- Label box ---
        _draw_rounded_box(shape, box, style.corner_radius, dims, mat, style.fill_color)

        text_items.append((
            _to_page(box.x + pad, box.y + pad + style.baseline_offset, dims, mat),
            text,
        ))

    shape.commit()

    for pt, text in text_items:
        page.insert_text(
            pt, text,
            fontname=style.fontname,
            fontsize=style.font_size,
            color=style.text_color,
            rotate=page.rotation,
        )


def _draw_rounded_box(shape: fitz.Shape, box: LabelBox, cr: float,
                      dims: PageDimensions, mat: fitz.Matrix,
                      color: tuple) -> None:
    """Two overlapping rectangles plus four corner discs."""
    # Full width, height shortened by the corner radius at each end
    _fill_rect(shape, box.x, box.y + cr, box.right, box.top - cr, dims, mat, color)
    # Full height, width shortened by the corner radius at each end
    _fill_rect(shape, box.x + cr, box.y, box.right - cr, box.top, dims, mat, color)

    for cx, cy in (
        (box.x + cr, box.y + cr),          # bottom left
        (box.right - cr, box.y + cr),      # bottom right
        (box.right - cr, box.top - cr),    # top right
        (box.x + cr, box.top - cr),        # top left
    ):
        shape.draw_circle(_to_page(cx, cy, dims, mat), cr)
        shape.finish(color=None, fill=color, width=0)


def _fill_rect(shape: fitz.Shape, x0: float, y0: float, x1: float, y1: float,
               dims: PageDimensions, mat: fitz.Matrix, color: tuple) -> None:
    # Canonical top edge becomes the top-left corner after the Y flip.
    tl = fitz.Point(*canonical_to_view(x0, y1, dims.height))
    br = fitz.Point(*canonical_to_view(x1, y0, dims.height))
    # A quarter-turn keeps the rectangle axis-aligned.
    shape.draw_rect(fitz.Rect(tl, br) * mat)
    shape.finish(color=None, fill=color, width=0)


def _to_page(x: float, y: float, dims: PageDimensions,
             mat: fitz.Matrix) -> fitz.Point:
    # The view frame is the rotated page with a top-left origin.
    return fitz.Point(*canonical_to_view(x, y, dims.height)) * mat


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------

def suggested_filename(source_name: str) -> str:
    return EXPORT_PREFIX + Path(source_name).name


def write_output(data: bytes, dst_path: str, src_path: str = "") -> None:
    """Write exported bytes to *dst_path*, never over the source document."""
    if src_path and Path(src_path).resolve() == Path(dst_path).resolve():
        raise ValueError("Cannot overwrite the original PDF. Choose a different output path.")
    Path(dst_path).write_bytes(data)
    logger.info("Wrote %s", dst_path)


# ---------------------------------------------------------------------------
# Point lists
# ---------------------------------------------------------------------------

def _rows(store: AnnotationStore) -> list[list]:
    rows = []
    for n, p in enumerate(store.ordered_view(), 1):
        ux, uy = store.user_coordinates(p)
        rows.append([n, p.page_index, round(p.x, 2), round(p.y, 2),
                     round(ux, 2), round(uy, 2)])
    return rows


def _headers(origin: OriginConvention) -> list[str]:
    return ["#", "Page", "X (pts)", "Y (pts)",
            f"X ({origin.label})", f"Y ({origin.label})"]


def export_csv(dst_path: str, store: AnnotationStore) -> None:
    """Write the point list, in reading order, to a CSV file."""
    with open(dst_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(_headers(store.origin))
        writer.writerows(_rows(store))


def export_excel(dst_path: str, store: AnnotationStore,
                 document_name: str = "") -> None:
    """Write a formatted point-list workbook to *dst_path*."""
    import openpyxl
    from openpyxl.styles import (
        Alignment, Border, Font, PatternFill, Side,
    )
    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Points"

    # ---- Palette ----
    hdr_fill   = PatternFill("solid", fgColor="8B1A1A")   # dark red
    alt_fill   = PatternFill("solid", fgColor="F6DADA")   # light red
    hdr_font   = Font(name="Calibri", bold=True, size=10, color="FFFFFF")
    body_font  = Font(name="Calibri", size=10)
    thin_side  = Side(style="thin", color="AAAAAA")
    thin_bdr   = Border(left=thin_side, right=thin_side,
                        top=thin_side, bottom=thin_side)
    center     = Alignment(horizontal="center", vertical="center")

    headers = _headers(store.origin)
    for i, w in enumerate([6, 7, 12, 12, 18, 18], 1):
        ws.column_dimensions[get_column_letter(i)].width = w

    # ---- Row 1: title bar ----
    ws.merge_cells("A1:F1")
    title_cell = ws["A1"]
    title_cell.value = "COORDINATE SHEET"
    title_cell.font  = Font(name="Calibri", bold=True, size=16, color="FFFFFF")
    title_cell.fill  = hdr_fill
    title_cell.alignment = center
    ws.row_dimensions[1].height = 28

    # ---- Row 2: document name + date ----
    ws.merge_cells("A2:C2")
    ws["A2"].value = f"Document: {document_name}" if document_name else "Document:"
    ws["A2"].font  = Font(name="Calibri", bold=True, size=10)

    ws.merge_cells("D2:F2")
    ws["D2"].value = f"Date: {date.today().strftime('%Y-%m-%d')}"
    ws["D2"].font  = body_font
    ws["D2"].alignment = Alignment(horizontal="right", vertical="center")

    # ---- Row 4: column headers ----
    for col, text in enumerate(headers, 1):
        cell = ws.cell(row=4, column=col, value=text)
        cell.font      = hdr_font
        cell.fill      = hdr_fill
        cell.alignment = center
        cell.border    = thin_bdr

    # ---- Data rows ----
    for row_idx, values in enumerate(_rows(store), 5):
        fill = alt_fill if row_idx % 2 == 1 else None
        for col, val in enumerate(values, 1):
            cell = ws.cell(row=row_idx, column=col, value=val)
            cell.font      = body_font
            cell.border    = thin_bdr
            cell.alignment = center
            if fill:
                cell.fill = fill

    ws.freeze_panes = "A5"
    wb.save(dst_path)
