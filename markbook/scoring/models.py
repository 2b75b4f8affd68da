"""Pydantic models for assessments, grades and rubric templates."""

import math
from datetime import date as Date
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, computed_field, field_validator, model_validator

from .exceptions import NegativeScoreError, RubricError
from .score_parser import round2
from .standards import normalize_standard


class Domain(str, Enum):
    """Curricular strand an assessment belongs to."""
    READING = 'reading'
    PHONICS = 'phonics'
    WRITING = 'writing'
    SPEAKING = 'speaking'
    LANGUAGE = 'language'


class Category(str, Enum):
    """Assessment category; each carries its own aggregation weight."""
    FORMATIVE = 'formative'
    SUMMATIVE = 'summative'
    PERFORMANCE_TASK = 'performance_task'


RUBRIC_LEVELS = (1, 2, 3, 4)

RUBRIC_LEVEL_LABELS = {
    1: 'Emerging',
    2: 'Developing',
    3: 'Meets Standards',
    4: 'Exceeds Standards',
}


class StandardTag(BaseModel):
    """A curricular standard attached to an assessment, for reporting only."""
    code: str = Field(description="Canonical dotted standard code (e.g. 'RL.3.1')")
    dok: Optional[int] = Field(default=None, ge=1, le=4, description="Depth-of-knowledge level")
    description: Optional[str] = Field(default=None, description="Human readable standard text")

    @field_validator('code')
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return normalize_standard(value)


class Section(BaseModel):
    """Named sub-part of an assessment with its own point maximum."""
    label: str = Field(description="Section label shown to teachers (e.g. 'Q1-3')")
    standard_code: Optional[str] = Field(default=None, description="Optional standard tag")
    max_points: float = Field(gt=0, description="Maximum points for this section")

    @field_validator('standard_code')
    @classmethod
    def _normalize_code(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return normalize_standard(value)


class _AssessmentBase(BaseModel):
    id: str = Field(description="Unique assessment id")
    name: str = Field(description="Assessment name")
    domain: Domain
    category: Category = Category.FORMATIVE
    grade_level: int = Field(description="Grade level the assessment is given to")
    class_name: Optional[str] = Field(default=None, description="Class/section grouping")
    term: Optional[str] = Field(default=None, description="Term (semester) identifier")
    date: Optional[Date] = None
    notes: str = ""
    standards: List[StandardTag] = Field(default_factory=list)

    @property
    def standard_codes(self) -> List[str]:
        """All standard codes tagged on this assessment."""
        return [tag.code for tag in self.standards]


class SimpleAssessment(_AssessmentBase):
    """Assessment scored as a single number out of ``max_score``."""
    kind: Literal['simple'] = 'simple'
    max_score: float = Field(gt=0, description="Nominal maximum score")


class SectionedAssessment(_AssessmentBase):
    """Assessment composed of sections; its maximum is always the section sum."""
    kind: Literal['sectioned'] = 'sectioned'
    sections: List[Section] = Field(min_length=1)

    @computed_field
    @property
    def max_score(self) -> float:
        return round(sum(section.max_points for section in self.sections), 2)

    @property
    def standard_codes(self) -> List[str]:
        codes = [tag.code for tag in self.standards]
        for section in self.sections:
            if section.standard_code and section.standard_code not in codes:
                codes.append(section.standard_code)
        return codes


Assessment = Annotated[Union[SimpleAssessment, SectionedAssessment], Field(discriminator='kind')]

_ASSESSMENT_ADAPTER = TypeAdapter(Assessment)


def assessment_from_record(record: Dict[str, Any]) -> Union[SimpleAssessment, SectionedAssessment]:
    """Build the right assessment variant from a stored record.

    Records without a ``kind`` are treated as sectioned when they carry a
    non-empty ``sections`` list and as simple otherwise.
    """
    data = dict(record)
    if 'kind' not in data:
        data['kind'] = 'sectioned' if data.get('sections') else 'simple'
    if data['kind'] == 'sectioned':
        data.pop('max_score', None)
    else:
        data.pop('sections', None)
    return _ASSESSMENT_ADAPTER.validate_python(data)


class Grade(BaseModel):
    """One student's result on one assessment, keyed by (student_id, assessment_id)."""
    student_id: str
    assessment_id: str
    score: Optional[float] = Field(default=None, ge=0, description="Stored score, null when not entered")
    section_scores: Optional[Dict[int, Optional[float]]] = Field(
        default=None,
        description="Sub-score per section index, only for sectioned assessments"
    )
    is_absent: bool = False
    is_exempt: bool = False

    @field_validator('section_scores')
    @classmethod
    def _refuse_negative_sections(cls, value: Optional[Dict[int, Optional[float]]]):
        for index, sub_score in (value or {}).items():
            if sub_score is not None and sub_score < 0:
                raise NegativeScoreError(index, sub_score)
        return value

    @model_validator(mode='after')
    def _check_invariants(self) -> 'Grade':
        if self.is_absent and self.is_exempt:
            raise ValueError("A grade cannot be both absent and exempt")
        if self.is_absent or self.is_exempt:
            self.score = None
            self.section_scores = None
            return self
        entered = [v for v in (self.section_scores or {}).values() if v is not None]
        if entered:
            expected = round2(sum(entered))
            if self.score is None:
                raise ValueError(f"Score is missing for section total {expected}")
            if not math.isclose(self.score, expected, abs_tol=1e-9):
                raise ValueError(
                    f"Score {self.score} does not match the section total {expected}"
                )
        return self

    @property
    def key(self) -> tuple:
        """Upsert key in the datastore."""
        return (self.student_id, self.assessment_id)

    @property
    def is_recorded(self) -> bool:
        """True when the grade carries a score that counts toward aggregation."""
        return self.score is not None and not (self.is_absent or self.is_exempt)


class RubricCriterion(BaseModel):
    """Single rubric criterion with one descriptor per level."""
    label: str = Field(description="What is being evaluated")
    standard: Optional[str] = Field(default=None, description="Standard code the criterion assesses")
    levels: List[str] = Field(
        min_length=4, max_length=4,
        description="Descriptors for levels 1 to 4"
    )

    @field_validator('standard')
    @classmethod
    def _normalize_code(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return normalize_standard(value)


class RubricTemplate(BaseModel):
    """Read-only rubric: ordered criteria each scored on the 1-4 scale."""
    id: str
    name: str
    grade: int = Field(description="Grade level, 0 for kindergarten")
    domain: Domain
    kind: Optional[str] = Field(default=None, description="Rubric type (opinion, narrative, ...)")
    criteria: List[RubricCriterion] = Field(min_length=1)

    @property
    def max_score(self) -> int:
        return max(RUBRIC_LEVELS) * len(self.criteria)

    @staticmethod
    def level_label(level: int) -> str:
        """Fixed label for a level, from 1 Emerging to 4 Exceeds Standards."""
        try:
            return RUBRIC_LEVEL_LABELS[level]
        except KeyError:
            raise RubricError(f"Rubric level must be one of {RUBRIC_LEVELS}, got {level}") from None


class WeightedItem(BaseModel):
    """One assessment result for one student, ready for aggregation."""
    score: float
    max_score: float
    category: Category
    domain: Optional[Domain] = None
    assessment_id: Optional[str] = None

    @property
    def percentage(self) -> Optional[float]:
        if self.max_score <= 0:
            return None
        return self.score * 100 / self.max_score
