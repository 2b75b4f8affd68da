"""Configuration objects for weighting, mastery bands, letter grades and alerts.

None of these values are baked into the engine. They come from the
``scoring`` section of the YAML configuration (see ``config/default.yaml``)
and are passed to the aggregator and statistics functions at call time.
"""

import logging
import math
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from markbook.libs.config_loader import ConfigType, get_config, resolve_config_path
from .exceptions import UnknownGradeBandError
from .models import Category, RubricTemplate
from .rubric import load_rubric_templates

LOG = logging.getLogger(__name__)


class CategoryWeights(BaseModel):
    """Aggregation weight for each assessment category; sums to 1.0."""
    formative: float = Field(ge=0)
    summative: float = Field(ge=0)
    performance_task: float = Field(ge=0)

    @model_validator(mode='after')
    def _check_sum(self) -> 'CategoryWeights':
        total = self.formative + self.summative + self.performance_task
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise ValueError(f"Category weights must sum to 1.0, got {total}")
        return self

    def weight(self, category: Category) -> float:
        return getattr(self, Category(category).value)

    def as_dict(self) -> Dict[Category, float]:
        return {category: self.weight(category) for category in Category}


class WeightPolicy(BaseModel):
    """Grade band to category weights, plus which band each grade level uses."""
    bands: Dict[str, CategoryWeights] = Field(min_length=1)
    grade_bands: Dict[int, str] = Field(default_factory=dict)

    @model_validator(mode='after')
    def _check_grade_bands(self) -> 'WeightPolicy':
        unknown = sorted(set(self.grade_bands.values()) - set(self.bands))
        if unknown:
            raise ValueError(f"grade_bands refer to undefined bands: {unknown}")
        return self

    def band_for_grade(self, grade_level: int) -> str:
        """Band used for a grade level; unmapped grades use a band named after the grade."""
        return self.grade_bands.get(grade_level, str(grade_level))

    def weights_for(self, band: str) -> CategoryWeights:
        try:
            return self.bands[str(band)]
        except KeyError:
            raise UnknownGradeBandError(str(band)) from None


class MasteryThresholds(BaseModel):
    """Percentage cutoffs separating needs-reteach, approaching and proficient."""
    pass_percent: float = Field(ge=0, le=100)
    approaching_percent: float = Field(ge=0, le=100)
    proficient_percent: float = Field(ge=0, le=100)

    @model_validator(mode='after')
    def _check_order(self) -> 'MasteryThresholds':
        if not self.pass_percent <= self.approaching_percent <= self.proficient_percent:
            raise ValueError(
                "Thresholds must satisfy pass_percent <= approaching_percent <= proficient_percent"
            )
        return self

    def needs_reteach(self, percentage: float) -> bool:
        return percentage < self.pass_percent

    def is_approaching(self, percentage: float) -> bool:
        return self.pass_percent <= percentage <= self.approaching_percent

    def is_proficient(self, percentage: float) -> bool:
        return percentage >= self.proficient_percent

    def mastery_level(self, percentage: float) -> str:
        """Standards-report band: mastered, approaching or below."""
        if percentage >= self.proficient_percent:
            return 'mastered'
        if percentage >= self.pass_percent:
            return 'approaching'
        return 'below'


class GradeScaleEntry(BaseModel):
    letter: str
    min: float = Field(ge=0)


class GradingScale(BaseModel):
    """Ordered letter-grade cutoffs, highest first."""
    entries: List[GradeScaleEntry] = Field(min_length=1)

    @field_validator('entries')
    @classmethod
    def _sort_entries(cls, entries: List[GradeScaleEntry]) -> List[GradeScaleEntry]:
        return sorted(entries, key=lambda e: e.min, reverse=True)

    def letter_for(self, percentage: float) -> str:
        rounded = math.floor(percentage + 0.5)
        for entry in self.entries:
            if rounded >= entry.min:
                return entry.letter
        return self.entries[-1].letter


class AlertThresholds(BaseModel):
    warning_threshold: float = Field(ge=0, le=100)
    decline_threshold: float = Field(gt=0)


class ScoringSettings(BaseModel):
    """All scoring policy for one deployment."""
    weight_policy: WeightPolicy
    mastery: MasteryThresholds
    grading_scale: GradingScale
    alerts: AlertThresholds
    rubric_templates: Optional[str] = None

    @classmethod
    def from_configs(cls, configs: ConfigType) -> 'ScoringSettings':
        """Build settings from the ``scoring`` section of a loaded config."""
        section = get_config('scoring', configs)
        settings = cls(
            weight_policy=section['weight_policy'],
            mastery=section['mastery'],
            grading_scale={'entries': section['grading_scale']},
            alerts=section['alerts'],
            rubric_templates=section.get('rubric_templates'),
        )
        LOG.info(f"Loaded scoring policy with bands {sorted(settings.weight_policy.bands)}")
        return settings

    def load_rubric_templates(self) -> List[RubricTemplate]:
        """Load the rubric library named by ``rubric_templates``.

        Raises:
            ValueError: If no rubric file is configured or it can't be read
        """
        if not self.rubric_templates:
            raise ValueError("No rubric template file configured (scoring.rubric_templates)")
        return load_rubric_templates(resolve_config_path(self.rubric_templates))
