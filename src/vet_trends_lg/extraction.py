"""
Row and table extraction from the clinical records page snapshot.

Everything here reads BeautifulSoup trees and never modifies them; row text
is taken from a detached copy of the row.
"""

import copy
import re
from typing import List, Optional
from bs4 import BeautifulSoup, Tag
from bs4.element import (
    CData,
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    ProcessingInstruction,
)

from .records import PatientInfo


class RowPattern:
    """Regex patterns for the loosely structured row and sidebar text."""

    # 09-10-2024 12:34:56pm, 9-1-2024 1:02:03 PM
    NUMERIC_DATE = re.compile(
        r'\b(\d{1,2})-(\d{1,2})-(\d{4})\s+'
        r'(\d{1,2}):(\d{2}):(\d{2})\s*(am|pm)\b',
        re.IGNORECASE
    )

    # Result Date: September 10, 2024 1:34:56 PM
    RESULT_DATE = re.compile(
        r'Result Date:\s*([A-Za-z]{3,})\s+(\d{1,2}),\s+(\d{4})\s+'
        r'(\d{1,2}):(\d{2}):(\d{2})\s*(AM|PM)\b',
        re.IGNORECASE
    )

    REFERENCE = re.compile(r'Reference:\s*([A-Za-z0-9-]+)', re.IGNORECASE)
    REFERENCE_ANCHOR = re.compile(r'Reference:', re.IGNORECASE)
    CLINIC_NOTES_ANCHOR = re.compile(r'Clinic Notes\s*/\s*Specifics:', re.IGNORECASE)
    LAB_LINE = re.compile(r'^Lab\b', re.IGNORECASE)
    CODE_LINE = re.compile(r'^[A-Z]{2,}\d+', re.IGNORECASE)

    SPECIES = (
        (re.compile(r'\bcanine\b', re.IGNORECASE), "Canine"),
        (re.compile(r'\bfeline\b', re.IGNORECASE), "Feline"),
        (re.compile(r'\bavian\b', re.IGNORECASE), "Avian"),
        (re.compile(r'\bequine\b', re.IGNORECASE), "Equine"),
    )

    PATIENT_ID = re.compile(r'Patient ID:\s*([A-Za-z_]*\d+)', re.IGNORECASE)
    PATIENT_ID_LINE = re.compile(r'Patient ID:', re.IGNORECASE)
    TRAILING_PAREN = re.compile(r'\s*\([^)]*\)\s*$')
    OWNER_LAST_NAME = re.compile(r'^([^,]+),')

    UI_ARTIFACTS = re.compile(r'Show More\.\.\.|Show Less', re.IGNORECASE)


BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "caption", "dd", "div", "dl",
    "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2",
    "h3", "h4", "h5", "h6", "header", "hr", "li", "main", "nav", "ol",
    "option", "p", "pre", "section", "table", "tbody", "td", "tfoot", "th",
    "thead", "tr", "ul",
}
SKIP_TAGS = {"script", "style", "noscript", "template", "head", "title"}
_NON_TEXT = (Comment, CData, Declaration, Doctype, ProcessingInstruction)


def inner_text(node) -> str:
    """
    Approximate the browser's ``innerText``: block elements and ``<br>``
    start new lines, whitespace inside text runs collapses to one space.
    """
    parts: List[str] = []

    def walk(el):
        for child in el.children:
            if isinstance(child, _NON_TEXT):
                continue
            if isinstance(child, NavigableString):
                parts.append(re.sub(r"\s+", " ", str(child)))
                continue
            if not isinstance(child, Tag) or child.name in SKIP_TAGS:
                continue
            if child.name == "br":
                parts.append("\n")
                continue
            block = child.name in BLOCK_TAGS
            if block:
                parts.append("\n")
            walk(child)
            if block:
                parts.append("\n")

    if isinstance(node, NavigableString):
        return re.sub(r"\s+", " ", str(node))
    walk(node)
    return "".join(parts)


def row_text_without_nested_tables(row: Tag) -> str:
    """Text of a row with the content of every nested table removed."""
    clone = copy.copy(row)
    for table in clone.find_all("table"):
        if table.decomposed:
            continue
        table.decompose()
    return inner_text(clone).strip()


def clean_row_text(text: str) -> List[str]:
    lines = []
    for line in (text or "").split("\n"):
        line = re.sub(r"\s+", " ", line).strip()
        if line:
            lines.append(line)
    return lines


def cell_to_text(cell: Tag) -> str:
    text = cell.get_text() or ""
    text = RowPattern.UI_ARTIFACTS.sub(" ", text)
    return re.sub(r"\s+", " ", text).strip()


def table_to_matrix(table: Tag) -> List[List[str]]:
    """
    Rectangular-ish string matrix of a nested results table.
    Rows with no text in any cell are dropped; short rows are not padded.
    """
    matrix = []
    for tr in table.find_all("tr"):
        cells = [cell_to_text(c) for c in tr.find_all(["th", "td"])]
        if any(cells):
            matrix.append(cells)
    return matrix


def extract_patient_info(container: Optional[Tag]) -> PatientInfo:
    """Patient name/id from the patient sidebar, owner surname from the owner sidebar."""
    root = container
    name = None
    patient_id = None

    sidebar = root.select_one('div[id^="patientSideBar"]') if root is not None else None
    if sidebar is not None:
        lines = clean_row_text(inner_text(sidebar))
        name = lines[0] if lines else None
        id_idx = next(
            (i for i, line in enumerate(lines) if RowPattern.PATIENT_ID_LINE.search(line)),
            -1,
        )
        if id_idx > 0:
            name = lines[id_idx - 1] or name
        if name:
            name = RowPattern.TRAILING_PAREN.sub("", name).strip() or None
        if id_idx != -1:
            m = RowPattern.PATIENT_ID.search(lines[id_idx])
            if m:
                patient_id = m.group(1)

    owner_last_name = None
    owner_el = root.select_one('div[id^="ownerSideBar"] span') if root is not None else None
    if owner_el is not None:
        m = RowPattern.OWNER_LAST_NAME.match(owner_el.get_text().strip())
        if m:
            owner_last_name = m.group(1).strip()

    return PatientInfo(name=name, id=patient_id, owner_last_name=owner_last_name)


def to_soup(source) -> BeautifulSoup:
    """Parse an HTML snapshot once; an already parsed tree is returned as is."""
    if isinstance(source, (BeautifulSoup, Tag)):
        return source
    if isinstance(source, bytes):
        source = source.decode("utf-8", errors="replace")
    return BeautifulSoup(source or "", "html.parser")
