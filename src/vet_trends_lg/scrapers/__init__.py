"""
Page-layout scrapers for the clinical records snapshot
"""

from .base import BaseScraper
from .clinical_notes import ClinicalNotesScraper
from .diagnostics import DiagnosticResultsScraper

# clinical notes take precedence when both tabs are marked active
SCRAPERS = [ClinicalNotesScraper, DiagnosticResultsScraper]

__all__ = [
    "BaseScraper",
    "ClinicalNotesScraper",
    "DiagnosticResultsScraper",
    "SCRAPERS",
]
