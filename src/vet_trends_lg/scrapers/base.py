from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple
import logging
from bs4 import Tag

from ..errors import StructuralAbsence
from ..extraction import (
    extract_patient_info,
    inner_text,
    row_text_without_nested_tables,
    table_to_matrix,
)
from ..metadata import parse_row_text
from ..normalize import build_observations, select_panel_rows
from ..pagination import extract_pagination_info
from ..records import ExtractionResult, RawRow
from ..settings import ExtractionSettings

logger = logging.getLogger(__name__)

# (row index, row carrying the context text, nested results table)
RowPair = Tuple[int, Tag, Tag]


class BaseScraper(ABC):
    def __init__(self, settings: ExtractionSettings | None = None):
        self.settings = settings or ExtractionSettings()

    @abstractmethod
    def layout(self) -> str: ...

    @abstractmethod
    def container_selector(self) -> str: ...

    @abstractmethod
    def locate(self, container: Tag) -> Tuple[Tag, Tag]:
        """Return (records region, outer table) or raise StructuralAbsence."""

    @abstractmethod
    def iter_row_pairs(self, region: Tag, table: Tag) -> Iterable[RowPair]: ...

    def find_container(self, soup) -> Optional[Tag]:
        return soup.select_one(self.container_selector())

    def require(self, parent: Tag, selector: str, reason: str) -> Tag:
        found = parent.select_one(selector)
        if found is None:
            raise StructuralAbsence(reason)
        return found

    def build_row(self, row_index: int, meta_row: Tag, nested: Tag) -> RawRow:
        context_text = row_text_without_nested_tables(meta_row)
        return RawRow(
            row_index=row_index,
            context_text=context_text,
            meta=parse_row_text(context_text, self.settings),
            nested_text=inner_text(nested).strip(),
            nested_matrix=table_to_matrix(nested),
        )

    def scrape(self, container: Tag) -> ExtractionResult:
        region, table = self.locate(container)
        pagination = extract_pagination_info(table, region)

        rows: List[RawRow] = [
            self.build_row(idx, meta_row, nested)
            for idx, meta_row, nested in self.iter_row_pairs(region, table)
        ]
        panel_rows = select_panel_rows(rows, self.settings.panel_filter_mode)
        observations = build_observations(panel_rows, self.settings)
        warnings = [f"row {r.row_index}: {w}" for r in rows for w in r.meta.warnings]

        logger.info(
            "%s: %d rows, %d panel rows, %d observations",
            self.layout(), len(rows), len(panel_rows), len(observations),
        )
        return ExtractionResult(
            ok=True,
            patient=extract_patient_info(container),
            container_id=region.get("id") or None,
            layout=self.layout(),
            count=len(rows),
            rows=rows,
            panel_rows_count=len(panel_rows),
            observations=observations,
            pagination=pagination,
            warnings=warnings,
        )
