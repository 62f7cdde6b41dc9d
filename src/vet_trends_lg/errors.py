class StructuralAbsence(Exception):
    """An expected region of the page snapshot is missing (tab, notes container, table)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ConfigError(Exception):
    """Configuration file could not be read or failed validation."""
