from .base import BaseScraper

RESULT_ROW = 'tr[data-testid="DiagnosticResult"]'


class DiagnosticResultsScraper(BaseScraper):
    """
    Diagnostic results list on the active animals tab. Each result's header
    row is followed by a separate row holding the nested results table.
    """

    def layout(self) -> str:
        return "diagnostic_results"

    def container_selector(self) -> str:
        return ".rtabdetails.animals.active"

    def locate(self, container):
        diagnostics = self.require(
            container, 'div[id^="diagnosticResultsListTable"]', "No diagnostics table container found"
        )
        table = self.require(diagnostics, "table", "No diagnostics table found")
        return diagnostics, table

    def iter_row_pairs(self, region, table):
        result_rows = region.select(RESULT_ROW)
        if result_rows:
            yield from self._pairs_from_result_rows(result_rows)
        else:
            yield from self._pairs_from_adjacent_rows(table)

    def _pairs_from_result_rows(self, result_rows):
        for idx, tr in enumerate(result_rows):
            nxt = tr.find_next_sibling()
            while nxt is not None and nxt.name == "tr" and nxt.find("table") is None:
                if nxt.get("data-testid") == "DiagnosticResult":
                    break
                nxt = nxt.find_next_sibling()
            if nxt is None:
                continue
            nested = nxt.find("table")
            if nested is None:
                continue
            yield idx, tr, nested

    def _pairs_from_adjacent_rows(self, table):
        trs = table.find_all("tr")
        for i, tr in enumerate(trs):
            if tr.find("table") is not None:
                continue
            if len(tr.find_all("td")) < 2:
                continue
            if i + 1 >= len(trs):
                continue
            nested = trs[i + 1].find("table")
            if nested is None:
                continue
            yield i, tr, nested
