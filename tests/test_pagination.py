"""Pagination detection heuristics"""

from bs4 import BeautifulSoup

from vet_trends_lg.pagination import extract_pagination_info


def _parts(html):
    soup = BeautifulSoup(html, "html.parser")
    container = soup.find("div", id="medicalnotesNotes_1")
    return container.find("table"), container


def test_page_select_wins():
    table, container = _parts(
        '<div id="medicalnotesNotes_1"><table><tr><td>x</td></tr></table>'
        '<div class="pager">Page 1 of 9</div>'
        '<select class="pageSelection"><option>1</option><option selected>2</option><option>3</option></select>'
        "</div>"
    )
    info = extract_pagination_info(table, container)
    assert (info.current, info.total, info.has_more) == (2, 3, True)


def test_page_select_found_outside_container():
    soup = BeautifulSoup(
        '<body><div class="notes-shell">'
        '<select class="pageSelection"><option selected>4</option><option>5</option></select>'
        '<div id="medicalnotesNotes_1"><table><tr><td>x</td></tr></table></div>'
        "</div></body>",
        "html.parser",
    )
    container = soup.find("div", id="medicalnotesNotes_1")
    info = extract_pagination_info(container.find("table"), container)
    assert (info.current, info.total, info.has_more) == (4, 2, False)


def test_page_select_directly_under_body_is_ignored():
    soup = BeautifulSoup(
        '<body><select class="pageSelection"><option selected>4</option><option>5</option></select>'
        '<div id="medicalnotesNotes_1"><table><tr><td>x</td></tr></table></div></body>',
        "html.parser",
    )
    container = soup.find("div", id="medicalnotesNotes_1")
    assert extract_pagination_info(container.find("table"), container) is None


def test_page_x_slash_y_in_table_footer():
    table, container = _parts(
        '<div id="medicalnotesNotes_1"><table><tr><td>x</td></tr>'
        "<tfoot><tr><td>Page 2 / 5</td></tr></tfoot></table></div>"
    )
    info = extract_pagination_info(table, container)
    assert (info.current, info.total, info.has_more) == (2, 5, True)
    assert info.text == "Page 2 / 5"


def test_page_x_of_y_in_table_footer():
    table, container = _parts(
        '<div id="medicalnotesNotes_1"><table><tr><td>x</td></tr>'
        "<tfoot><tr><td>Page 2 of 2</td></tr></tfoot></table></div>"
    )
    info = extract_pagination_info(table, container)
    assert (info.current, info.total, info.has_more) == (2, 2, False)
    assert info.text == "Page 2 of 2"


def test_x_of_y_pages_in_container_pager():
    table, container = _parts(
        '<div id="medicalnotesNotes_1"><table><tr><td>x</td></tr></table>'
        '<div id="notes-pagination">1 of 3 pages</div></div>'
    )
    info = extract_pagination_info(table, container)
    assert (info.current, info.total, info.has_more) == (1, 3, True)


def test_item_range_with_page_count():
    table, container = _parts(
        '<div id="medicalnotesNotes_1"><table><tr><td>x</td></tr>'
        '<tr class="grid-footer"><td>1-25 of 80</td><td>Page: 1 of 4</td></tr></table></div>'
    )
    info = extract_pagination_info(table, container)
    assert (info.current, info.total, info.has_more) == (1, 4, True)
    assert info.text == "1-25 of 80"


def test_no_pager_means_no_pagination():
    table, container = _parts('<div id="medicalnotesNotes_1"><table><tr><td>Page 1 of 3</td></tr></table></div>')
    assert extract_pagination_info(table, container) is None
