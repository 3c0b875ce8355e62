"""
PDF splitting & rendering via PyMuPDF (fitz).

Responsibilities
- Cut a multi-page brochure into standalone single-page PDF documents.
- Render a single-page PDF to PNG so it can be sent to a vision model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF

from summer_camps.ingestion.config import ingest_settings

logger = logging.getLogger(__name__)


@dataclass
class PageDocument:
    """One page of the source brochure as its own PDF."""

    page_number: int  # 1-based
    pdf_bytes: bytes


def page_count(pdf_path: Path) -> int:
    with fitz.open(str(pdf_path)) as doc:
        return len(doc)


def split_pages(pdf_path: Path) -> Iterator[PageDocument]:
    """Yield one single-page PDF per page of *pdf_path*, in page order."""
    with fitz.open(str(pdf_path)) as doc:
        total = len(doc)
        for idx in range(total):
            single = fitz.open()
            single.insert_pdf(doc, from_page=idx, to_page=idx)
            data = single.tobytes()
            single.close()
            yield PageDocument(page_number=idx + 1, pdf_bytes=data)

    logger.info("Split %d pages from %s.", total, pdf_path.name)


def render_page_png(pdf_bytes: bytes, dpi: int | None = None) -> bytes:
    """Render the first page of an in-memory PDF to PNG bytes."""
    dpi = dpi or ingest_settings.render_dpi
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        page: fitz.Page = doc[0]
        mat = fitz.Matrix(dpi / 72, dpi / 72)
        pix = page.get_pixmap(matrix=mat)
        return pix.tobytes("png")
