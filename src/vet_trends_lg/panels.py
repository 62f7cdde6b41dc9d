import re
from typing import Optional

from .settings import normalize_panel_key

CANONICAL_PANELS = {"CBC", "Chemistry", "Urinalysis"}

PANEL_PREFIX = re.compile(r"^(after hours|stat|emergency)\s+", re.IGNORECASE)

# checked in order, first match wins
PANEL_MAP = {
    r"^cbc\s+and\s+absolute\s+reticulocyte\s+count$": "CBC",
    r"^after hours cbc$": "CBC",
    r"\bcbc\b": "CBC",
    r"^small animal \(no canine\) panel and electrolytes$": "Chemistry",
    r"^canine chemistry panel and electrolytes$": "Chemistry",
    r"^canine panel and electrolytes$": "Chemistry",
    r"^after hours sa general chemistry panel$": "Chemistry",
    r"chemistry|general chemistry|electrolyte": "Chemistry",
    r"renal panel": "Chemistry",
    r"urinalysis|urine analysis": "Urinalysis",
    r"animal.*panel": "Chemistry",
}

UNIT_TOKENS = ["mg/dL", "g/dL", "U/L", "mmol/L", "ug/dL", "%", "fL", "pg", "K/uL", "M/uL"]

EMBEDDED_UNIT = re.compile(
    r"\s*\([^)]*(?:" + "|".join(re.escape(u) for u in UNIT_TOKENS) + r")[^)]*\)\s*$",
    re.IGNORECASE,
)
VALUE_SUFFIX = re.compile(r"\s*:\s*Value\s*$", re.IGNORECASE)
AFTER_HOURS_PREFIX = re.compile(r"^\s*after hours\s+", re.IGNORECASE)
TRAILING_PAREN = re.compile(r"\s*\([^)]*\)\s*$")

TEST_SYNONYMS = {
    "alanine aminotransferase": "Alanine aminotransferase",
    "alkaline phosphatase": "Alk Phosphatase",
    "urea nitrogen (bun)": "Urea Nitrogen",
    "phosphate": "Phosphorus",
    "total bilirubin": "Bilirubin, Total",
}


def normalize_panel_name(panel: Optional[str]) -> Optional[str]:
    """Map a free-text panel label to CBC/Chemistry/Urinalysis, else the cleaned label."""
    if not panel:
        return panel
    name = re.sub(r"\s+", " ", str(panel)).strip()
    name = PANEL_PREFIX.sub("", name)
    for pattern, canonical in PANEL_MAP.items():
        if re.search(pattern, name, re.IGNORECASE):
            return canonical
    return name


def is_target_panel(panel: Optional[str]) -> bool:
    if not panel:
        return False
    return normalize_panel_name(panel) in CANONICAL_PANELS


def normalize_test_name(test_name: Optional[str], panel_name: Optional[str] = None) -> Optional[str]:
    if not test_name:
        return test_name
    name = VALUE_SUFFIX.sub("", str(test_name))
    name = AFTER_HOURS_PREFIX.sub("", name).strip()
    name = re.sub(r"\s+", " ", name)
    # single-metric panels report their only row as "Value"
    if name.lower() == "value" and panel_name:
        name = TRAILING_PAREN.sub("", str(panel_name)).strip()
    name = EMBEDDED_UNIT.sub("", name).strip()
    return TEST_SYNONYMS.get(name.lower(), name)


DISPLAY_PANELS = {"cbc": "CBC", "chemistry": "Chemistry", "urinalysis": "Urinalysis"}


def panel_category(panel: Optional[str]) -> str:
    """Display bucket for a panel label: CBC, Chemistry, Urinalysis or Other."""
    return DISPLAY_PANELS.get(normalize_panel_key(panel), "Other")
