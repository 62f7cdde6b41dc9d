"""
Vet Trends - Lab Trend Extraction Pipeline
Built on LangGraph with BeautifulSoup for clinical records page snapshots
"""

__version__ = "0.1.0"

from .graph import build_graph, GraphState
from .pipeline import extract_lab_trends
from .records import ExtractionResult, Observation, PatientInfo, Pagination, RawRow, RowMeta
from .settings import AppConfig, ExtractionSettings, TrendSettings, load_config
from .store import TrendStore

__all__ = [
    "build_graph",
    "GraphState",
    "extract_lab_trends",
    "ExtractionResult",
    "Observation",
    "PatientInfo",
    "Pagination",
    "RawRow",
    "RowMeta",
    "AppConfig",
    "ExtractionSettings",
    "TrendSettings",
    "load_config",
    "TrendStore",
]
