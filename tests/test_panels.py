"""Panel and test name normalization"""

import pytest

from vet_trends_lg.panels import (
    is_target_panel,
    normalize_panel_name,
    normalize_test_name,
    panel_category,
)


@pytest.mark.parametrize(
    "label,expected",
    [
        ("CBC w/ Diff", "CBC"),
        ("After Hours CBC", "CBC"),
        ("CBC and Absolute Reticulocyte Count", "CBC"),
        ("Canine Chemistry Panel and Electrolytes", "Chemistry"),
        ("Small Animal (no Canine) Panel and Electrolytes", "Chemistry"),
        ("STAT   Renal Panel", "Chemistry"),
        ("Electrolytes", "Chemistry"),
        ("Urine Analysis", "Urinalysis"),
        ("Emergency Urinalysis", "Urinalysis"),
        ("Senior Animal Wellness Panel", "Chemistry"),
        ("  Thyroid   T4 ", "Thyroid T4"),
    ],
)
def test_normalize_panel_name(label, expected):
    assert normalize_panel_name(label) == expected


def test_empty_panel_passes_through():
    assert normalize_panel_name(None) is None
    assert normalize_panel_name("") == ""


def test_target_panels():
    assert is_target_panel("CBC w/ Diff")
    assert is_target_panel("General Chemistry")
    assert not is_target_panel("Thyroid T4")
    assert not is_target_panel(None)


def test_panel_category():
    assert panel_category("CBC") == "CBC"
    assert panel_category("Chemistry") == "Chemistry"
    assert panel_category("UA") == "Urinalysis"
    assert panel_category("Thyroid T4") == "Other"


@pytest.mark.parametrize(
    "name,panel,expected",
    [
        ("Glucose : Value", None, "Glucose"),
        ("After Hours   Glucose", None, "Glucose"),
        ("Albumin (g/dL)", None, "Albumin"),
        ("Alkaline Phosphatase", None, "Alk Phosphatase"),
        ("PHOSPHATE", None, "Phosphorus"),
        ("Total Bilirubin", None, "Bilirubin, Total"),
        ("Value", "Total T4 (Canine)", "Total T4"),
        ("Value", None, "Value"),
        ("Neutrophils (seg)", None, "Neutrophils (seg)"),
    ],
)
def test_normalize_test_name(name, panel, expected):
    assert normalize_test_name(name, panel) == expected
