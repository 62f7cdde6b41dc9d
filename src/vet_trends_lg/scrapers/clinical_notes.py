from .base import BaseScraper


class ClinicalNotesScraper(BaseScraper):
    """Medical notes list on the active clinical tab; results sit inside the note row."""

    def layout(self) -> str:
        return "clinical_notes"

    def container_selector(self) -> str:
        return ".rtabdetails.clinical.active"

    def locate(self, container):
        notes = self.require(container, 'div[id^="medicalnotesNotes"]', "No medical notes container found")
        table = self.require(notes, "table", "No notes table found")
        return notes, table

    def iter_row_pairs(self, region, table):
        for idx, tr in enumerate(table.find_all("tr")):
            nested = tr.find("table")
            if nested is None:
                continue
            yield idx, tr, nested
