"""LangGraph orchestration"""

from vet_trends_lg.graph import GraphState, build_graph


def _final(out):
    return out if isinstance(out, GraphState) else GraphState(**out)


def test_graph_extracts_merges_and_reports(tmp_path, monkeypatch, clinical_html):
    monkeypatch.delenv("VET_TRENDS_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    html = tmp_path / "page.html"
    html.write_text(clinical_html, encoding="utf-8")

    final = _final(build_graph().invoke(
        GraphState(html_path=str(html), db_path=str(tmp_path / "t.sqlite"))
    ))

    assert final.errors == []
    assert final.result.ok
    assert final.stored["patient"]["id"] == "AB123"
    assert "## Chemistry" in final.report_md


def test_graph_collects_errors(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    final = _final(build_graph().invoke(
        GraphState(html_path=str(tmp_path / "missing.html"), persist=False)
    ))
    assert final.result is None
    assert final.report_md is None
    assert len(final.errors) == 1
    assert final.errors[0].startswith("load:")
