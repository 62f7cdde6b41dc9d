"""
Typed records passed between the extraction stages.

Python attributes are snake_case; ``model_dump(by_alias=True)`` produces the
camelCase shape the stored trends use (``testName``, ``valueRaw``, ...).
"""

from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


Layout = Literal["clinical_notes", "diagnostic_results"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RowMeta(CamelModel):
    sample_date: Optional[str] = None
    reference: Optional[str] = None
    raw_panel_label: Optional[str] = None
    species: List[str] = Field(default_factory=list)
    raw_lines: List[str] = Field(default_factory=list)
    panel_strategy: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class RawRow(CamelModel):
    row_index: int
    context_text: str = ""
    meta: RowMeta = Field(default_factory=RowMeta)
    nested_text: str = ""
    nested_matrix: List[List[str]] = Field(default_factory=list)


class Observation(CamelModel):
    panel: Optional[str] = None
    original_panel: Optional[str] = None
    test_name: str
    value_raw: Optional[str] = None
    value: Optional[float] = None
    unit: Optional[str] = None
    lowest_value: Optional[str] = None
    highest_value: Optional[str] = None
    qualifier: Optional[str] = None
    comment: Optional[str] = None
    collected_at: Optional[str] = None
    reference: Optional[str] = None
    species: List[str] = Field(default_factory=list)


class PatientInfo(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: Optional[str] = None
    id: Optional[str] = None
    owner_last_name: Optional[str] = None


class Pagination(CamelModel):
    current: int
    total: int
    text: str = ""
    has_more: bool = False


class ExtractionResult(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    ok: bool
    error: Optional[str] = None
    patient: Optional[PatientInfo] = None
    container_id: Optional[str] = None
    layout: Optional[Layout] = None
    count: int = 0
    rows: List[RawRow] = Field(default_factory=list)
    panel_rows_count: int = 0
    observations: List[Observation] = Field(default_factory=list)
    pagination: Optional[Pagination] = None
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def failure(cls, reason: str) -> "ExtractionResult":
        return cls(ok=False, error=reason)
