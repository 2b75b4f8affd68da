"""Composition of per-section sub-scores into an assessment total."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .exceptions import NegativeScoreError
from .models import Grade, Section, SectionedAssessment, SimpleAssessment
from .score_parser import round2

LOG = logging.getLogger(__name__)

SectionScores = Mapping[int, Optional[float]]


@dataclass
class SectionComposition:
    """Total for one student's section sub-scores."""
    total: float
    max_score: float
    entered: bool
    over_max_sections: List[int] = field(default_factory=list)

    @property
    def percentage(self) -> Optional[float]:
        if self.max_score <= 0:
            return None
        return self.total * 100 / self.max_score


def validate_section_scores(sections: Sequence[Section], section_scores: SectionScores) -> None:
    """Refuse negative sub-scores and indexes that don't name a section.

    Raises:
        NegativeScoreError: If any sub-score is below zero
        IndexError: If a sub-score refers to a section that doesn't exist
    """
    for index, value in section_scores.items():
        if not 0 <= index < len(sections):
            raise IndexError(f"Section index {index} out of range for {len(sections)} sections")
        if value is not None and value < 0:
            raise NegativeScoreError(index, value)


def compose(sections: Sequence[Section], section_scores: SectionScores) -> SectionComposition:
    """Sum sub-scores over all sections, counting missing ones as zero.

    A student counts as entered only when at least one sub-score is present;
    missing sub-scores don't mark the grade as entered on their own.

    Args:
        sections: The assessment's ordered sections
        section_scores: Section index to sub-score; entries may be absent or None

    Returns:
        SectionComposition with the total, maximum and entered flag

    Raises:
        NegativeScoreError: If any sub-score is below zero
    """
    validate_section_scores(sections, section_scores)

    total = 0.0
    over_max = []
    for index, section in enumerate(sections):
        value = section_scores.get(index)
        if value is None:
            continue
        total += value
        if value > section.max_points:
            over_max.append(index)

    if over_max:
        LOG.warning(f"Section scores above section maximum for sections {over_max}")

    return SectionComposition(
        total=round2(total),
        max_score=round2(sum(s.max_points for s in sections)),
        entered=any(v is not None for v in section_scores.values()),
        over_max_sections=over_max,
    )


def build_section_grade(assessment: SectionedAssessment, student_id: str,
                        section_scores: SectionScores) -> Grade:
    """Compose a student's sub-scores into a Grade ready to be stored.

    A student with no sub-scores at all gets a null score rather than zero.
    """
    composition = compose(assessment.sections, section_scores)
    return Grade(
        student_id=student_id,
        assessment_id=assessment.id,
        score=composition.total if composition.entered else None,
        section_scores=dict(section_scores),
    )


def edit_sections(assessment: Union[SimpleAssessment, SectionedAssessment],
                  sections: Sequence[Section]) -> Union[SimpleAssessment, SectionedAssessment]:
    """Return the assessment with a new section list.

    The maximum is recomputed from the new sections. Stored grades are not
    touched; percentages are derived at read time against the new maximum.
    Clearing the sections turns the assessment back into a simple one that
    keeps the last maximum.
    """
    base = assessment.model_dump(exclude={'kind', 'sections', 'max_score'})
    if not sections:
        return SimpleAssessment(**base, max_score=assessment.max_score)

    updated = SectionedAssessment(**base, sections=list(sections))
    if updated.max_score != assessment.max_score:
        LOG.info(f"Assessment {assessment.id} maximum changed from {assessment.max_score} "
                 f"to {updated.max_score}")
    return updated


def section_entered_counts(assessment: SectionedAssessment,
                           grades: Sequence[Grade]) -> Dict[int, int]:
    """Number of students with a sub-score recorded, per section index."""
    counts = {index: 0 for index in range(len(assessment.sections))}
    for grade in grades:
        if grade.assessment_id != assessment.id or not grade.section_scores:
            continue
        for index, value in grade.section_scores.items():
            if value is not None and index in counts:
                counts[index] += 1
    return counts
