"""
Detect whether the scraped results table is one page of several.

Heuristics run in a fixed order and the first that matches wins:
the page selection dropdown, "page X of Y"-style pager text, and finally an
item range ("1-25 of 80") paired with a total page count.
"""

import re
from typing import List, Optional
from bs4 import Tag

from .extraction import inner_text
from .records import Pagination

PAGE_PATTERNS = (
    re.compile(r"page\s+(\d+)\s+of\s+(\d+)", re.IGNORECASE),
    re.compile(r"page\s+(\d+)\s*/\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s+of\s+(\d+)\s+pages", re.IGNORECASE),
)
ITEM_RANGE = re.compile(r"\b\d+\s*-\s*\d+\s+of\s+(\d+)\b", re.IGNORECASE)
TOTAL_PAGES = (
    re.compile(r"page:\s*\d+\s*of\s*(\d+)", re.IGNORECASE),
    re.compile(r"\bpage\s+\d+\s+of\s+(\d+)", re.IGNORECASE),
)

TABLE_PAGER_ROWS = 'tr[class*="footer"], tr[class*="pager"], tr[class*="pagination"]'
CONTAINER_PAGERS = '[class*="pager"], [class*="pagination"], [id*="pager"], [id*="pagination"]'
PAGE_SELECT = "select.pageSelection"


def _pager_texts(table: Optional[Tag], container: Optional[Tag]) -> List[str]:
    sources = []
    if table is not None:
        tfoot = table.find("tfoot")
        if tfoot is not None:
            sources.append(inner_text(tfoot))
        sources.extend(inner_text(row) for row in table.select(TABLE_PAGER_ROWS))
    if container is not None:
        sources.extend(inner_text(el) for el in container.select(CONTAINER_PAGERS))
    normalized = [re.sub(r"\s+", " ", s).strip() for s in sources]
    return [s for s in normalized if s]


def _find_page_select(table: Optional[Tag], container: Optional[Tag]) -> Optional[Tag]:
    scope = table
    while scope is not None and scope.name != "body":
        found = scope.select_one(PAGE_SELECT)
        if found is not None:
            return found
        scope = scope.parent
    if container is not None:
        return container.select_one(PAGE_SELECT)
    return None


def _from_page_select(select: Tag) -> Optional[Pagination]:
    options = select.find_all("option")
    if not options:
        return None
    selected = select.find("option", selected=True) or options[0]
    text = selected.get_text().strip()
    if not text.isdigit():
        return None
    current, total = int(text), len(options)
    return Pagination(current=current, total=total, text=f"page {current} of {total}", has_more=total > current)


def extract_pagination_info(table: Optional[Tag], container: Optional[Tag] = None) -> Optional[Pagination]:
    select = _find_page_select(table, container)
    if select is not None:
        info = _from_page_select(select)
        if info is not None:
            return info

    joined = " ".join(_pager_texts(table, container))
    if not joined:
        return None

    for pattern in PAGE_PATTERNS:
        m = pattern.search(joined)
        if m:
            current, total = int(m.group(1)), int(m.group(2))
            return Pagination(current=current, total=total, text=m.group(0), has_more=total > current)

    range_match = ITEM_RANGE.search(joined)
    total_match = next((m for m in (p.search(joined) for p in TOTAL_PAGES) if m), None)
    if range_match and total_match:
        total_pages = int(total_match.group(1))
        return Pagination(current=1, total=total_pages, text=range_match.group(0), has_more=total_pages > 1)
    return None
