"""
Row metadata parsing: collection date, reference code, panel label and
species tags from the cleaned context lines of one notes row.
"""

import logging
from datetime import date, time
from typing import Callable, Dict, List, Optional, Tuple

from .extraction import RowPattern, clean_row_text
from .records import RowMeta
from .settings import ExtractionSettings

logger = logging.getLogger(__name__)

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

AMBIGUOUS_ANCHORS = "ambiguous panel anchors"
NO_PANEL_ANCHOR = "no panel anchor"


def _to_iso(y: int, m: int, d: int, hour: int, minute: int, second: int, period: str) -> Optional[str]:
    try:
        day = date(y, m, d)
    except ValueError:
        return None
    period = period.upper()
    if not 1 <= hour <= 12:
        return day.isoformat()
    if period == "AM" and hour == 12:
        hour = 0
    elif period == "PM" and hour < 12:
        hour += 12
    try:
        t = time(hour, minute, second)
    except ValueError:
        return day.isoformat()
    return f"{day.isoformat()}T{t.isoformat()}"


def _parse_numeric(line: str) -> Optional[str]:
    m = RowPattern.NUMERIC_DATE.search(line)
    if not m:
        return None
    mm, dd, yyyy, hh, mi, ss, period = m.groups()
    return _to_iso(int(yyyy), int(mm), int(dd), int(hh), int(mi), int(ss), period)


def _parse_result_date(line: str) -> Optional[str]:
    m = RowPattern.RESULT_DATE.search(line)
    if not m:
        return None
    month_name, dd, yyyy, hh, mi, ss, period = m.groups()
    month = MONTHS.get(month_name[:3].lower())
    if not month:
        return None
    return _to_iso(int(yyyy), month, int(dd), int(hh), int(mi), int(ss), period)


DATE_PARSERS: Dict[str, Callable[[str], Optional[str]]] = {
    "numeric": _parse_numeric,
    "result_date": _parse_result_date,
}


def parse_date_from_line(line: str, formats=("numeric", "result_date")) -> Optional[str]:
    for fmt in formats:
        parsed = DATE_PARSERS[fmt](line)
        if parsed:
            return parsed
    return None


def extract_sample_date(lines: List[str], formats=("numeric", "result_date")) -> Optional[str]:
    for line in lines:
        parsed = parse_date_from_line(line, formats)
        if parsed:
            return parsed
    return None


def extract_reference(lines: List[str]) -> Optional[str]:
    for line in lines:
        m = RowPattern.REFERENCE.search(line)
        if m:
            return m.group(1)
    return None


def panel_from_clinic_notes(lines: List[str]) -> Optional[str]:
    idx = next((i for i, line in enumerate(lines) if RowPattern.CLINIC_NOTES_ANCHOR.search(line)), -1)
    if idx == -1:
        return None
    for line in lines[idx + 1:]:
        if not line:
            continue
        if RowPattern.LAB_LINE.search(line):
            continue
        if RowPattern.CODE_LINE.search(line):
            continue
        return line
    return None


def panel_from_reference(lines: List[str]) -> Optional[str]:
    idx = next((i for i, line in enumerate(lines) if RowPattern.REFERENCE_ANCHOR.search(line)), -1)
    if idx == -1:
        return None
    for line in lines[idx + 1:]:
        if line:
            return line
    return None


PANEL_STRATEGIES = {
    "clinic_notes": panel_from_clinic_notes,
    "reference": panel_from_reference,
}


def extract_panel_label(lines: List[str], strategy: str = "auto") -> Tuple[Optional[str], Optional[str], List[str]]:
    """
    Returns (label, strategy used, warnings).

    In ``auto`` mode the strategy follows the anchor present in the row. With
    both anchors present the clinic notes label wins (the reference one only
    when the notes anchor yields nothing) and the row is flagged.
    """
    if strategy != "auto":
        return PANEL_STRATEGIES[strategy](lines), strategy, []

    has_notes = any(RowPattern.CLINIC_NOTES_ANCHOR.search(line) for line in lines)
    has_reference = any(RowPattern.REFERENCE_ANCHOR.search(line) for line in lines)

    if has_notes and has_reference:
        notes_label = panel_from_clinic_notes(lines)
        if notes_label is not None:
            return notes_label, "clinic_notes", [AMBIGUOUS_ANCHORS]
        return panel_from_reference(lines), "reference", [AMBIGUOUS_ANCHORS]
    if has_notes:
        return panel_from_clinic_notes(lines), "clinic_notes", []
    if has_reference:
        return panel_from_reference(lines), "reference", []
    return None, None, [NO_PANEL_ANCHOR]


def extract_species(lines: List[str]) -> List[str]:
    found: List[str] = []
    for line in lines:
        for pattern, value in RowPattern.SPECIES:
            if value not in found and pattern.search(line):
                found.append(value)
    return found


def parse_row_text(row_text: str, settings: ExtractionSettings | None = None) -> RowMeta:
    settings = settings or ExtractionSettings()
    lines = clean_row_text(row_text)
    label, used, warnings = extract_panel_label(lines, settings.panel_label_strategy)
    meta = RowMeta(
        raw_lines=lines,
        sample_date=extract_sample_date(lines, settings.date_formats),
        reference=extract_reference(lines),
        raw_panel_label=label,
        panel_strategy=used,
        species=extract_species(lines),
        warnings=warnings,
    )
    if warnings:
        logger.debug("row metadata warnings %s for lines %s", warnings, lines[:3])
    return meta
