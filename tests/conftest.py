import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

HEADER_ROW = (
    "<tr><th>Test</th><th>Resuts</th><th>Unit</th>"
    "<th>Lowest Value</th><th>Highest Value</th><th>Qualifier</th></tr>"
)


def result_table(*rows):
    body = "".join(
        "<tr>" + "".join(f"<td>{c}</td>" for c in row) + "</tr>" for row in rows
    )
    return f"<table>{HEADER_ROW}{body}</table>"


def note_row(lines, nested):
    divs = "".join(f"<div>{line}</div>" for line in lines)
    return f"<tr><td>{divs}{nested}</td></tr>"


def sidebars(name="Rex (Canine)", patient_id="AB123", owner="Smith, John"):
    return (
        f'<div id="patientSideBar_1"><div>{name}</div><div>Patient ID: {patient_id}</div></div>'
        f'<div id="ownerSideBar_1"><span>{owner}</span></div>'
    )


def clinical_page(rows_html, extra="", patient_id="AB123"):
    return (
        "<html><body>"
        '<div class="rtabdetails clinical active">'
        f"{sidebars(patient_id=patient_id)}"
        f'<div id="medicalnotesNotes_42"><table>{rows_html}</table>{extra}</div>'
        "</div></body></html>"
    )


@pytest.fixture
def chemistry_row():
    return note_row(
        ["09-10-2024 12:34:56pm", "Reference: ABC-123", "Chemistry Panel"],
        result_table(["Glucose", "110", "mg/dL", "70", "120", ""]),
    )


@pytest.fixture
def cbc_row():
    return note_row(
        ["09-10-2024 12:34:56pm", "Reference: XYZ-456", "CBC"],
        result_table(["WBC", "15.2", "K/uL", "5.0", "14.0", "H"]),
    )


@pytest.fixture
def clinical_html(chemistry_row, cbc_row):
    return clinical_page(chemistry_row + cbc_row)


@pytest.fixture
def diagnostics_html():
    nested = "<table><tr><td>Color</td><td>Yellow</td></tr><tr><td>pH</td><td>6.5</td></tr></table>"
    return (
        "<html><body>"
        '<div class="rtabdetails animals active">'
        f"{sidebars(name='Tweety', patient_id='P77', owner='Jones, Ann')}"
        '<div id="diagnosticResultsListTable_9"><table>'
        '<tr data-testid="DiagnosticResult">'
        "<td>Result Date: September 10, 2024 1:34:56 PM</td>"
        "<td><div>Reference: Q-1</div><div>Urinalysis</div><div>Avian</div></td>"
        "</tr>"
        f'<tr><td colspan="2">{nested}</td></tr>'
        "</table></div>"
        "</div></body></html>"
    )
