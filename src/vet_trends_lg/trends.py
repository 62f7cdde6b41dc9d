"""
Trend tables for display: observations grouped by panel, one column per
collection date, one row per test.

Everything here is pure data. Rendering lives in ``reporter`` and export goes
through ``observations_frame``.
"""

import re
from datetime import datetime
from typing import Dict, Iterable, List, Optional
import pandas as pd
from pydantic import BaseModel, Field

from .normalize import parse_numeric_value
from .panels import panel_category
from .records import Observation, Pagination
from .settings import TrendSettings

UNKNOWN = "Unknown"
PANEL_ORDER = ["CBC", "Chemistry", "Urinalysis", "Other"]

ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TrendRow(BaseModel):
    test_name: str
    unit: str = ""
    reference_low: Optional[str] = None
    reference_high: Optional[str] = None
    cells: Dict[str, List[Observation]] = Field(default_factory=dict)
    series: List[Optional[str]] = Field(default_factory=list)
    trend_enabled: bool = True

    @property
    def range_text(self) -> str:
        low = self.reference_low or ""
        high = self.reference_high or ""
        return f"{low}{'-' if low and high else ''}{high}"

    def numeric_series(self) -> List[float]:
        values = (parse_numeric_value(v) for v in self.series if v is not None)
        return [v for v in values if v is not None]


class PanelTable(BaseModel):
    panel: str
    dates: List[str] = Field(default_factory=list)
    reference_dates: List[str] = Field(default_factory=list)
    selected_reference_date: str = UNKNOWN
    original_panel_by_date: Dict[str, str] = Field(default_factory=dict)
    tests: List[TrendRow] = Field(default_factory=list)
    show_trend: bool = False

    @property
    def has_any_reference(self) -> bool:
        return bool(self.reference_dates)


def as_date_key(value: Optional[str]) -> str:
    if not value:
        return UNKNOWN
    if ISO_DATETIME.match(value) or ISO_DATE.match(value):
        return value
    try:
        return datetime.fromisoformat(value).date().isoformat()
    except ValueError:
        return UNKNOWN


def day_key(date_key: Optional[str]) -> str:
    if not date_key or date_key == UNKNOWN:
        return UNKNOWN
    return date_key.split("T")[0]


def _sort_key(key: str):
    if key == UNKNOWN:
        return (2, datetime.max, key)
    try:
        return (0, datetime.fromisoformat(key).replace(tzinfo=None), key)
    except ValueError:
        return (1, datetime.max, key)


def sort_date_keys(keys: Iterable[str]) -> List[str]:
    """Chronological, unparseable keys after parseable ones, Unknown last."""
    return sorted(set(keys), key=_sort_key)


def abnormal_flag(value_raw: Optional[str], low: Optional[str], high: Optional[str]) -> Optional[str]:
    """'low' or 'high' when the numeric value falls outside the reference range."""
    value = parse_numeric_value(value_raw)
    if value is None:
        return None
    lo = parse_numeric_value(low)
    hi = parse_numeric_value(high)
    if lo is not None and value < lo:
        return "low"
    if hi is not None and value > hi:
        return "high"
    return None


def pagination_warning(pagination: Pagination | dict | None) -> str:
    if pagination is None:
        return ""
    if isinstance(pagination, dict):
        pagination = Pagination.model_validate(pagination)
    if not pagination.has_more:
        return ""
    return (
        f"Possible missing labs: page {pagination.current} of {pagination.total}. "
        "Load additional pages or increase items/page."
    )


def _coerce(observations: Iterable) -> List[Observation]:
    return [o if isinstance(o, Observation) else Observation.model_validate(o) for o in observations]


def preferred_test_order(panel_obs: List[Observation]) -> List[str]:
    """The longest first-seen test list among the original panels feeding this table."""
    order_by_panel: Dict[str, List[str]] = {}
    for obs in panel_obs:
        key = obs.original_panel or obs.panel or ""
        if not key or not obs.test_name:
            continue
        names = order_by_panel.setdefault(key, [])
        if obs.test_name not in names:
            names.append(obs.test_name)
    best: List[str] = []
    for names in order_by_panel.values():
        if len(names) > len(best):
            best = names
    return best


def _reference_for(panel_obs: List[Observation], test_name: str, date_key: str):
    for o in panel_obs:
        if o.test_name == test_name and as_date_key(o.collected_at) == date_key:
            if o.lowest_value or o.highest_value:
                return o.lowest_value or None, o.highest_value or None
            break
    return None, None


def _panel_rank(name: str):
    rank = PANEL_ORDER.index(name) if name in PANEL_ORDER else len(PANEL_ORDER)
    return (rank, name)


def build_panel_tables(
    observations: Iterable,
    trend_settings: TrendSettings | None = None,
    selected_reference_dates: Dict[str, str] | None = None,
) -> List[PanelTable]:
    trend_settings = trend_settings or TrendSettings()
    selected_reference_dates = selected_reference_dates or {}

    panels: Dict[str, List[Observation]] = {}
    for obs in _coerce(observations):
        if not obs.panel or not obs.test_name:
            continue
        panels.setdefault(panel_category(obs.panel), []).append(obs)

    tables = []
    for panel_name in sorted(panels, key=_panel_rank):
        panel_obs = panels[panel_name]
        dates = sort_date_keys(as_date_key(o.collected_at) for o in panel_obs)
        ref_dates = [
            d for d in dates
            if any(as_date_key(o.collected_at) == d and (o.lowest_value or o.highest_value) for o in panel_obs)
        ]
        if ref_dates:
            default_ref = ref_dates[-1]
        else:
            default_ref = dates[-1] if dates else UNKNOWN
        selected_ref = selected_reference_dates.get(panel_name) or default_ref

        original_by_date: Dict[str, str] = {}
        by_test: Dict[str, Dict[str, List[Observation]]] = {}
        for o in panel_obs:
            dk = as_date_key(o.collected_at)
            if o.original_panel:
                original_by_date.setdefault(dk, o.original_panel)
            by_test.setdefault(o.test_name, {}).setdefault(dk, []).append(o)

        test_names = list(by_test)
        if panel_name == "Chemistry":
            preferred = preferred_test_order(panel_obs)
            if preferred:
                rank = {name: i for i, name in enumerate(preferred)}
                test_names = sorted(test_names, key=lambda n: rank.get(n, len(rank)))

        rows = []
        for name in test_names:
            by_date = by_test[name]
            low, high = _reference_for(panel_obs, name, selected_ref)
            unit = next((o.unit for o in panel_obs if o.test_name == name and o.unit), "")
            rows.append(TrendRow(
                test_name=name,
                unit=unit,
                reference_low=low,
                reference_high=high,
                cells=by_date,
                series=[by_date[d][0].value_raw if d in by_date else None for d in dates],
                trend_enabled=not trend_settings.is_trend_disabled(panel_name, name),
            ))

        has_trend_data = any(r.trend_enabled and len(r.numeric_series()) >= 2 for r in rows)
        show_trend = (
            len(dates) > 1
            and not trend_settings.is_trend_disabled(panel_name)
            and has_trend_data
        )
        tables.append(PanelTable(
            panel=panel_name,
            dates=dates,
            reference_dates=ref_dates,
            selected_reference_date=selected_ref,
            original_panel_by_date=original_by_date,
            tests=rows,
            show_trend=show_trend,
        ))
    return tables


def observations_frame(observations: Iterable) -> pd.DataFrame:
    """Flat table of observations with camelCase columns, for CSV export."""
    rows = [o.model_dump(by_alias=True) for o in _coerce(observations)]
    columns = list(Observation.model_fields)
    columns = [Observation.model_fields[c].alias or c for c in columns]
    df = pd.DataFrame(rows, columns=columns)
    df["species"] = df["species"].apply(lambda s: ", ".join(s) if isinstance(s, list) else s)
    return df
