"""Rubric scoring: per-criterion 1-4 levels combined into a total."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .exceptions import RubricError
from .models import RUBRIC_LEVELS, Domain, RubricTemplate

LOG = logging.getLogger(__name__)


@dataclass
class RubricScore:
    """Running total for one student's rubric session."""
    total: int
    max_score: int
    scored: int
    criteria_count: int

    @property
    def is_complete(self) -> bool:
        return self.scored == self.criteria_count

    @property
    def percentage(self) -> float:
        return self.total * 100 / self.max_score


@dataclass
class RubricSession:
    """One student's level selections across a rubric's criteria.

    Each criterion moves from unscored to scored(level). The session is
    complete once every criterion has a level from 1 to 4.
    """
    template: RubricTemplate
    levels: Dict[int, int] = field(default_factory=dict)

    def __post_init__(self):
        levels, self.levels = self.levels, {}
        for index, level in levels.items():
            self.set_level(index, level)

    def set_level(self, criterion_index: int, level: Optional[int]):
        """Select a level for a criterion; ``None`` or 0 clears it."""
        if not 0 <= criterion_index < len(self.template.criteria):
            raise RubricError(
                f"Criterion index {criterion_index} out of range for rubric {self.template.id}"
            )
        if level is None or level == 0:
            self.levels.pop(criterion_index, None)
            return
        if level not in RUBRIC_LEVELS:
            raise RubricError(f"Rubric level must be one of {RUBRIC_LEVELS}, got {level}")
        self.levels[criterion_index] = level

    def level(self, criterion_index: int) -> Optional[int]:
        return self.levels.get(criterion_index)

    @property
    def unscored(self) -> List[int]:
        return [i for i in range(len(self.template.criteria)) if i not in self.levels]

    @property
    def is_complete(self) -> bool:
        return not self.unscored

    def score(self) -> RubricScore:
        return score_rubric(self.template, self.levels)

    def selections(self) -> List[Dict[str, Any]]:
        """Selected level per scored criterion, with its label and descriptor."""
        return [
            {
                'criterion': self.template.criteria[index].label,
                'level': level,
                'label': self.template.level_label(level),
                'descriptor': self.template.criteria[index].levels[level - 1],
            }
            for index, level in sorted(self.levels.items())
        ]


def score_rubric(template: RubricTemplate, levels: Mapping[int, Optional[int]]) -> RubricScore:
    """Total the selected levels against the rubric's nominal maximum (4 per criterion).

    Unset criteria (missing, None or 0) add nothing to the total and leave the
    session incomplete.
    """
    total = 0
    scored = 0
    for index in range(len(template.criteria)):
        level = levels.get(index)
        if not level:
            continue
        if level not in RUBRIC_LEVELS:
            raise RubricError(f"Rubric level must be one of {RUBRIC_LEVELS}, got {level}")
        total += level
        scored += 1
    return RubricScore(
        total=total,
        max_score=template.max_score,
        scored=scored,
        criteria_count=len(template.criteria),
    )


def complete_sessions(sessions: Mapping[str, RubricSession]) -> Dict[str, RubricSession]:
    """Sessions eligible for batch apply; incomplete ones are left out."""
    complete = {}
    for student_id, session in sessions.items():
        if session.is_complete:
            complete[student_id] = session
        else:
            LOG.debug(f"Skipping incomplete rubric session for {student_id}: "
                      f"unscored criteria {session.unscored}")
    return complete


def load_rubric_templates(path: Path) -> List[RubricTemplate]:
    """Load rubric templates from a YAML file with a top-level ``rubrics`` list.

    Raises:
        ValueError: If the file can't be read or has no ``rubrics`` list
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"Could not read rubric file: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get('rubrics'), list):
        raise ValueError(f"Rubric file {path} must contain a 'rubrics' list")

    templates = [RubricTemplate(**entry) for entry in data['rubrics']]
    LOG.info(f"Loaded {len(templates)} rubric templates from {path}")
    return templates


def templates_for(templates: Sequence[RubricTemplate], grade: Optional[int] = None,
                  domain: Optional[Domain] = None) -> List[RubricTemplate]:
    """Filter templates by grade level and/or domain."""
    return [
        t for t in templates
        if (grade is None or t.grade == grade) and (domain is None or t.domain == domain)
    ]
