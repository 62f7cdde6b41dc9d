from datetime import datetime
from typing import Dict, Iterable, List, Optional
from tabulate import tabulate

from .normalize import parse_numeric_value
from .records import Observation, Pagination, PatientInfo
from .settings import TrendSettings
from .trends import (
    UNKNOWN,
    PanelTable,
    TrendRow,
    abnormal_flag,
    build_panel_tables,
    day_key,
    pagination_warning,
)

SPARK_BLOCKS = "▁▂▃▄▅▆▇█"
MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_date_label(date_key: str, show_time: bool = False) -> str:
    if date_key == UNKNOWN:
        return UNKNOWN
    try:
        parsed = datetime.fromisoformat(date_key)
    except ValueError:
        return UNKNOWN
    label = f"{MONTHS[parsed.month - 1]} {parsed.day}, {parsed.year}"
    if show_time and "T" in date_key:
        hour = parsed.hour % 12 or 12
        label += f" ({hour} {'PM' if parsed.hour >= 12 else 'AM'})"
    return label


def sparkline(values: List[Optional[float]], low: Optional[float] = None, high: Optional[float] = None) -> str:
    """Unicode sparkline scaled to the data and, when known, the reference range."""
    points = [v for v in values if v is not None]
    if len(points) < 2:
        return ""
    lo, hi = min(points), max(points)
    if low is not None:
        lo = min(lo, low)
    if high is not None:
        hi = max(hi, high)
    if lo == hi:
        lo, hi = lo - 1, hi + 1
    steps = len(SPARK_BLOCKS) - 1
    return "".join(SPARK_BLOCKS[round((v - lo) / (hi - lo) * steps)] for v in points)


def format_cell(observations: List[Observation], low: Optional[str], high: Optional[str]) -> str:
    parts = []
    for obs in observations:
        bits = []
        if obs.value_raw:
            flag = abnormal_flag(obs.value_raw, low, high)
            if flag == "low":
                bits.append(f"**{obs.value_raw}** ↓")
            elif flag == "high":
                bits.append(f"**{obs.value_raw}** ↑")
            else:
                bits.append(obs.value_raw)
        if obs.qualifier:
            bits.append(f"({obs.qualifier})")
        parts.append(" ".join(bits))
    return "; ".join(p for p in parts if p)


def _test_label(row: TrendRow, has_any_reference: bool) -> str:
    meta = []
    if row.range_text:
        meta.append(row.range_text)
    elif has_any_reference:
        meta.append("no ref")
    if row.unit:
        meta.append(f"({row.unit})")
    return f"{row.test_name} {' '.join(meta)}".strip()


def _date_headers(table: PanelTable) -> List[str]:
    per_day: Dict[str, int] = {}
    for d in table.dates:
        per_day[day_key(d)] = per_day.get(day_key(d), 0) + 1
    return [format_date_label(d, show_time=per_day[day_key(d)] > 1) for d in table.dates]


def _source_panels(table: PanelTable, labels: List[str]) -> str:
    sources = [
        f"{label}: {table.original_panel_by_date[d]}"
        for d, label in zip(table.dates, labels)
        if table.original_panel_by_date.get(d, table.panel) != table.panel
    ]
    return "; ".join(sources)


def render_panel(table: PanelTable) -> str:
    date_labels = _date_headers(table)
    headers = ["Test"] + date_labels
    if table.show_trend:
        headers.append("Trend")

    body = []
    for row in table.tests:
        line = [_test_label(row, table.has_any_reference)]
        for d in table.dates:
            line.append(format_cell(row.cells.get(d, []), row.reference_low, row.reference_high))
        if table.show_trend:
            if row.trend_enabled:
                line.append(sparkline(
                    [parse_numeric_value(v) for v in row.series],
                    parse_numeric_value(row.reference_low),
                    parse_numeric_value(row.reference_high),
                ))
            else:
                line.append("")
        body.append(line)

    lines = [f"## {table.panel}", ""]
    sources = _source_panels(table, date_labels)
    if sources:
        lines.append(f"*Source panels: {sources}*")
        lines.append("")
    if len(table.reference_dates) > 1:
        lines.append(f"*Reference ranges from {format_date_label(table.selected_reference_date)}*")
        lines.append("")
    lines.append(tabulate(body, headers=headers, tablefmt="github"))
    return "\n".join(lines)


def render_trends_markdown(
    observations: Iterable,
    patient: PatientInfo | dict | None = None,
    pagination: Pagination | dict | None = None,
    trend_settings: TrendSettings | None = None,
    selected_reference_dates: Dict[str, str] | None = None,
) -> str:
    if isinstance(patient, dict):
        patient = PatientInfo.model_validate(patient)

    lines = ["# Lab Trends", ""]
    if patient is not None:
        animal = patient.name or "Unknown"
        owner = patient.owner_last_name or "Unknown"
        ident = f" ({patient.id})" if patient.id else ""
        lines.append(f'**"{animal}" {owner}**{ident}')
        lines.append("")
    warning = pagination_warning(pagination)
    if warning:
        lines.append(f"> {warning}")
        lines.append("")

    tables = build_panel_tables(observations, trend_settings, selected_reference_dates)
    if not tables:
        lines.append("No panel data found.")
        return "\n".join(lines) + "\n"

    for table in tables:
        lines.append(render_panel(table))
        lines.append("")
    return "\n".join(lines)
