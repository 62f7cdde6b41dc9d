"""Row text, matrix and patient sidebar extraction"""

from bs4 import BeautifulSoup

from vet_trends_lg.extraction import (
    clean_row_text,
    extract_patient_info,
    row_text_without_nested_tables,
    table_to_matrix,
    to_soup,
)

from conftest import result_table, sidebars


def _tag(html, name):
    return BeautifulSoup(html, "html.parser").find(name)


def test_row_text_excludes_nested_table_and_leaves_source_intact():
    html = (
        "<table><tr><td><div>09-10-2024 12:34:56pm</div><div>Chemistry Panel</div>"
        + result_table(["Glucose", "110", "mg/dL", "70", "120", ""])
        + "</td></tr></table>"
    )
    soup = BeautifulSoup(html, "html.parser")
    row = soup.find("tr")
    text = row_text_without_nested_tables(row)

    assert "09-10-2024 12:34:56pm" in text
    assert "Chemistry Panel" in text
    assert "Glucose" not in text
    # the original tree still holds the nested table
    assert row.find("table") is not None
    assert "Glucose" in row.get_text()


def test_clean_row_text_collapses_whitespace_and_drops_blank_lines():
    assert clean_row_text("  a \t b \n\n   \n c  ") == ["a b", "c"]
    assert clean_row_text("") == []


def test_table_to_matrix_skips_empty_rows_and_ui_artifacts():
    table = _tag(
        "<table>"
        "<tr><td> </td><td></td></tr>"
        "<tr><td>Glucose</td><td>110 Show More...</td></tr>"
        "<tr><td>Note only</td></tr>"
        "</table>",
        "table",
    )
    assert table_to_matrix(table) == [["Glucose", "110"], ["Note only"]]


def test_patient_info_from_sidebars():
    container = _tag(f"<div>{sidebars()}</div>", "div")
    info = extract_patient_info(container)
    assert info.name == "Rex"
    assert info.id == "AB123"
    assert info.owner_last_name == "Smith"


def test_patient_info_missing_pieces_are_none():
    container = _tag('<div><div id="ownerSideBar_2"><span>Nocomma</span></div></div>', "div")
    info = extract_patient_info(container)
    assert info.name is None
    assert info.id is None
    assert info.owner_last_name is None


def test_patient_name_falls_back_to_first_line_without_id():
    container = _tag('<div><div id="patientSideBar_3"><div>Whiskers</div><div>Feline</div></div></div>', "div")
    info = extract_patient_info(container)
    assert info.name == "Whiskers"
    assert info.id is None


def test_to_soup_passes_parsed_trees_through():
    soup = BeautifulSoup("<p>x</p>", "html.parser")
    assert to_soup(soup) is soup
    assert to_soup(b"<p>y</p>").find("p").get_text() == "y"
