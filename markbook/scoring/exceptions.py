"""Exceptions raised by the scoring engine."""


class ScoringError(Exception):
    """Base class for scoring engine errors."""


class NegativeScoreError(ScoringError, ValueError):
    """A section sub-score below zero was refused before reaching storage."""

    def __init__(self, section_index: int, value: float):
        self.section_index = section_index
        self.value = value
        super().__init__(f"Section {section_index} score cannot be negative: {value}")


class UnknownGradeBandError(ScoringError, KeyError):
    """The weight policy has no weights for the requested grade band."""

    def __init__(self, band: str):
        self.band = band
        super().__init__(f"No category weights configured for grade band {band!r}")

    def __str__(self) -> str:
        return self.args[0]


class RubricError(ScoringError, ValueError):
    """Invalid rubric level, criterion index or rubric target."""
