"""Shared fixtures: small brochure PDFs and camp workbooks built on the fly."""

from __future__ import annotations

from pathlib import Path

import pytest

HEADER = [
    "Camp Title", "Camp Category", "Catalog ID", "Community", "Location",
    "Fee", "Start Date", "End Date", "Start Time", "End Time",
    "Min Age", "Max Age", "Date Range", "Status", "Extended Care", None,
]

ROWS = [
    [
        "Nature-SP (7-14yrs)", "Nature", "12A.3456", "West Community", "Field A",
        "$139", "6/15/26", "6/19/26", "9:00 AM", "4:00 PM",
        "7 Years", "14 Years", "Jun 15 - Jun 19", "Open", "Yes", "junk",
    ],
    [
        "Junior Robotics Camp", "STEM", "12B.0001", "East Community", "Tech Center",
        "$1,440", "TBD", "6/26/26", "9:00 AM", "12:00 PM",
        "8 Years", "12 Years", "Jun 22 - Jun 26", "Waitlist", None, None,
    ],
    [
        "Art Studio", "Arts", "12C.0002", "West Community", "Field A",
        "$55 ", "6/22/26", "6/22/26", "1:00 PM", "3:30 PM",
        "6 Years", "9 Years", "Jun 22 - Jun 26", "Open", None, None,
    ],
]


@pytest.fixture
def brochure_pdf(tmp_path: Path) -> Path:
    """A 5-page PDF whose pages say "Page <n>"."""
    import fitz

    path = tmp_path / "brochure.pdf"
    doc = fitz.open()
    for n in range(1, 6):
        page = doc.new_page()
        page.insert_text((72, 72), f"Page {n}: summer camps")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def camps_workbook(tmp_path: Path) -> Path:
    """Workbook with a title banner above the header, a decorative footer row
    and a second sheet that carries no camp data."""
    import openpyxl

    path = tmp_path / "camps.xlsx"
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "2026 FCPA Camps"
    ws.append(["FCPA Summer Camps 2026"])
    ws.append(["Exported from the registration system"])
    ws.append(HEADER)
    for row in ROWS:
        ws.append(row)
    ws.append(["Page 1 of 1", None, None, None, None, None, None, None,
               None, None, None, None, None, "printed"])

    notes = wb.create_sheet("Notes")
    notes.append(["Nothing to see here"])
    notes.append(["Still nothing"])

    wb.save(str(path))
    return path
