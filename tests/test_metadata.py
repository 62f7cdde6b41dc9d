"""Row metadata: dates, reference, panel label anchors, species"""

import pytest

from vet_trends_lg.metadata import (
    AMBIGUOUS_ANCHORS,
    NO_PANEL_ANCHOR,
    extract_panel_label,
    extract_sample_date,
    extract_species,
    parse_date_from_line,
    parse_row_text,
)
from vet_trends_lg.settings import ExtractionSettings


@pytest.mark.parametrize(
    "line,expected",
    [
        ("09-10-2024 12:34:56pm", "2024-09-10T12:34:56"),
        ("9-1-2024 1:02:03 AM", "2024-09-01T01:02:03"),
        ("12-31-2023 12:00:00am", "2023-12-31T00:00:00"),
        ("Result Date: September 10, 2024 1:34:56 PM", "2024-09-10T13:34:56"),
    ],
)
def test_date_formats(line, expected):
    assert parse_date_from_line(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "09-10-2024 13:34:56pm",
        "09-10-2024 00:34:56am",
        "09-10-2024 12:60:56pm",
        "Result Date: September 10, 2024 13:34:56 PM",
    ],
)
def test_bad_time_on_valid_date_keeps_date_only(line):
    assert parse_date_from_line(line) == "2024-09-10"


def test_invalid_calendar_date_is_none():
    assert parse_date_from_line("02-30-2024 10:00:00am") is None


def test_date_formats_are_configurable():
    line = "Result Date: September 10, 2024 1:34:56 PM"
    assert parse_date_from_line(line, ["numeric"]) is None


def test_first_dated_line_wins():
    lines = ["nothing here", "01-02-2024 03:04:05pm", "05-06-2024 07:08:09am"]
    assert extract_sample_date(lines) == "2024-01-02T15:04:05"


def test_reference_anchor_takes_next_line():
    label, used, warnings = extract_panel_label(["Reference: ABC-123", "", "CBC w/ Diff"])
    assert label == "CBC w/ Diff"
    assert used == "reference"
    assert warnings == []


def test_clinic_notes_anchor_skips_lab_and_code_lines():
    lines = ["Clinic Notes / Specifics:", "Lab Results", "IDX1234", "Canine Chemistry Panel"]
    label, used, warnings = extract_panel_label(lines)
    assert label == "Canine Chemistry Panel"
    assert used == "clinic_notes"
    assert warnings == []


def test_both_anchors_flagged_as_ambiguous():
    lines = ["Reference: R-1", "Urinalysis", "Clinic Notes / Specifics:", "CBC"]
    label, used, warnings = extract_panel_label(lines)
    assert label == "CBC"
    assert used == "clinic_notes"
    assert warnings == [AMBIGUOUS_ANCHORS]


def test_no_anchor_is_a_warning_not_a_guess():
    label, used, warnings = extract_panel_label(["Chemistry Panel"])
    assert label is None
    assert used is None
    assert warnings == [NO_PANEL_ANCHOR]


def test_explicit_strategy_ignores_other_anchor():
    lines = ["Reference: R-1", "Urinalysis", "Clinic Notes / Specifics:", "CBC"]
    label, used, warnings = extract_panel_label(lines, "reference")
    assert label == "Urinalysis"
    assert warnings == []


def test_species_ordered_without_duplicates():
    assert extract_species(["feline leukemia", "Canine", "FELINE again", "Equine"]) == [
        "Feline",
        "Canine",
        "Equine",
    ]


def test_parse_row_text():
    meta = parse_row_text("09-10-2024 12:34:56pm\nReference: ABC-123\nChemistry Panel\nCanine")
    assert meta.sample_date == "2024-09-10T12:34:56"
    assert meta.reference == "ABC-123"
    assert meta.raw_panel_label == "Chemistry Panel"
    assert meta.species == ["Canine"]
    assert meta.raw_lines[0] == "09-10-2024 12:34:56pm"


def test_parse_row_text_with_settings():
    settings = ExtractionSettings(date_formats=["result_date"], panel_label_strategy="clinic_notes")
    meta = parse_row_text("09-10-2024 12:34:56pm\nReference: ABC-123\nChemistry Panel", settings)
    assert meta.sample_date is None
    assert meta.raw_panel_label is None
