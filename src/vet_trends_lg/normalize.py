import re
import logging
from typing import Iterable, List, Optional

from .panels import is_target_panel, normalize_panel_name, normalize_test_name
from .records import Observation, RawRow
from .settings import ExtractionSettings

logger = logging.getLogger(__name__)

# "resuts" is how the source system spells its results column
HEADER_KEYWORDS = re.compile(r"test|resuts|unit|lowest value|highest value|qualifier")
NON_NUMERIC = re.compile(r"[^\d.+-]")
CLICK_THIS = re.compile(r"\(click this!\)|click this!", re.IGNORECASE)
PDF_SUFFIX = re.compile(r"\.pdf", re.IGNORECASE)

CELL_FIELDS = ("test_name", "value_raw", "unit", "lowest_value", "highest_value", "qualifier")


def is_header_row(non_empty_cells: List[str]) -> bool:
    joined = " ".join(non_empty_cells).lower()
    return bool(HEADER_KEYWORDS.search(joined))


def clean_value_text(value: Optional[str], placeholder: str = "(See ezyVet for pdf.)") -> Optional[str]:
    """Drop attachment artifacts the results table leaves in value cells."""
    if not value:
        return value
    text = PDF_SUFFIX.sub("", str(value))
    text = CLICK_THIS.sub(placeholder, text)
    return text.strip()


def parse_numeric_value(value_raw: Optional[str]) -> Optional[float]:
    if not value_raw:
        return None
    cleaned = NON_NUMERIC.sub("", str(value_raw))
    if not re.search(r"\d", cleaned):
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_observation_row(
    cells: List[str],
    panel_name: Optional[str] = None,
    settings: ExtractionSettings | None = None,
) -> Optional[Observation]:
    """
    Interpret one matrix row positionally as
    [test name, value, unit, lowest value, highest value, qualifier].
    Returns None when the row has no usable test name.
    """
    settings = settings or ExtractionSettings()
    if not cells:
        return None
    padded = list(cells[: len(CELL_FIELDS)]) + [None] * (len(CELL_FIELDS) - len(cells))
    fields = {k: (v or None) for k, v in zip(CELL_FIELDS, padded)}

    test_name = normalize_test_name(fields["test_name"], panel_name)
    if not test_name:
        return None

    value_raw = fields["value_raw"]
    qualifier = fields["qualifier"]
    if settings.sanitize_cells:
        value_raw = clean_value_text(value_raw, settings.pdf_placeholder) or None
        qualifier = clean_value_text(qualifier, settings.pdf_placeholder) or None

    return Observation(
        test_name=test_name,
        value_raw=value_raw,
        value=parse_numeric_value(value_raw),
        unit=fields["unit"],
        lowest_value=fields["lowest_value"],
        highest_value=fields["highest_value"],
        qualifier=qualifier,
    )


def select_panel_rows(rows: Iterable[RawRow], mode: str = "permissive") -> List[RawRow]:
    if mode == "strict":
        return [r for r in rows if is_target_panel(r.meta.raw_panel_label)]
    return [r for r in rows if r.meta.raw_panel_label]


def build_observations(rows: Iterable[RawRow], settings: ExtractionSettings | None = None) -> List[Observation]:
    """Flatten the nested result tables of panel rows into observations."""
    settings = settings or ExtractionSettings()
    observations: List[Observation] = []
    for row in rows:
        original_panel = row.meta.raw_panel_label
        if settings.normalize_panels:
            panel = normalize_panel_name(original_panel)
        else:
            panel = original_panel
        last: Optional[Observation] = None

        for cells in row.nested_matrix:
            cleaned = [c.strip() for c in cells]
            non_empty = [c for c in cleaned if c]
            if not non_empty:
                continue
            if is_header_row(non_empty):
                continue

            # a lone cell under a result continues that result
            if len(cleaned) == 1 and last is not None:
                comment = non_empty[0]
                if not last.value_raw:
                    last.value_raw = comment
                last.comment = comment
                continue

            base = parse_observation_row(cleaned, original_panel or panel, settings)
            if base is None:
                continue
            obs = base.model_copy(update={
                "panel": panel,
                "original_panel": original_panel,
                "collected_at": row.meta.sample_date,
                "reference": row.meta.reference,
                "species": list(row.meta.species),
            })
            observations.append(obs)
            last = obs

    logger.debug("built %d observations", len(observations))
    return observations
