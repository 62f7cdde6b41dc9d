from typing import Any, Dict, List, Optional
from pathlib import Path
from pydantic import BaseModel, Field
from langgraph.graph import StateGraph, END

from .pipeline import extract_lab_trends
from .records import ExtractionResult
from .reporter import render_trends_markdown
from .settings import AppConfig, load_config
from .store import TrendStore


class GraphState(BaseModel):
    html_path: str
    config_path: Optional[str] = None
    db_path: Optional[str] = None
    persist: bool = True
    strict: bool = False
    html: Optional[str] = None
    app_config: Optional[AppConfig] = None
    result: Optional[ExtractionResult] = None
    stored: Optional[Dict[str, Any]] = None
    report_md: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


def node_load(state: GraphState) -> GraphState:
    try:
        config = load_config(state.config_path)
        if state.strict:
            config.extraction.panel_filter_mode = "strict"
        state.app_config = config
        state.html = Path(state.html_path).read_text(encoding="utf-8", errors="replace")
    except Exception as e:
        state.errors.append(f"load: {e}")
    return state


def node_extract(state: GraphState) -> GraphState:
    if state.html is None:
        return state
    config = state.app_config or AppConfig()
    result = extract_lab_trends(state.html, config.extraction)
    if not result.ok:
        state.errors.append(f"extract: {result.error}")
    state.result = result
    return state


def node_merge(state: GraphState) -> GraphState:
    if not state.persist or state.result is None or not state.result.ok:
        return state
    try:
        config = state.app_config or AppConfig()
        store = TrendStore.from_path(state.db_path or config.database.path)
        state.stored = store.merge_result(state.result)
    except Exception as e:
        state.errors.append(f"merge: {e}")
    return state


def node_report(state: GraphState) -> GraphState:
    if state.result is None or not state.result.ok:
        return state
    try:
        config = state.app_config or AppConfig()
        observations = state.stored["observations"] if state.stored else state.result.observations
        state.report_md = render_trends_markdown(
            observations,
            patient=state.result.patient,
            pagination=state.result.pagination,
            trend_settings=config.trends,
        )
    except Exception as e:
        state.errors.append(f"report: {e}")
    return state


def build_graph():
    g = StateGraph(GraphState)
    g.add_node("load", node_load)
    g.add_node("extract", node_extract)
    g.add_node("merge", node_merge)
    g.add_node("report", node_report)

    g.set_entry_point("load")
    g.add_edge("load", "extract")
    g.add_edge("extract", "merge")
    g.add_edge("merge", "report")
    g.add_edge("report", END)
    return g.compile()
