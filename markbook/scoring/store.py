"""Datastore collaborator contract and two simple implementations.

Grades are upserted on (student_id, assessment_id); concurrent writers are
resolved last-write-wins. Deleting an assessment removes its grades first.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from .models import Domain, Grade, assessment_from_record

LOG = logging.getLogger(__name__)


class GradeStore(ABC):
    """Storage for assessments and grades."""

    @abstractmethod
    def get_assessment(self, assessment_id: str):
        """Return the assessment with this id, or None."""

    @abstractmethod
    def find_assessments(self, grade_level: Optional[int] = None, class_name: Optional[str] = None,
                         domain: Optional[Domain] = None, term: Optional[str] = None) -> List:
        """Assessments matching every filter that is given."""

    @abstractmethod
    def save_assessment(self, assessment) -> None:
        """Insert or replace an assessment."""

    @abstractmethod
    def delete_assessment_record(self, assessment_id: str) -> None:
        """Remove the assessment record only; see ``delete_assessment`` for the cascade."""

    @abstractmethod
    def get_grades(self, assessment_ids: Iterable[str],
                   student_ids: Optional[Iterable[str]] = None) -> List[Grade]:
        """Grades for the given assessments, optionally limited to some students."""

    @abstractmethod
    def upsert_grade(self, grade: Grade) -> None:
        """Insert or replace the grade with the same (student_id, assessment_id)."""

    @abstractmethod
    def delete_grades(self, assessment_id: str) -> int:
        """Delete every grade for an assessment; returns how many were removed."""

    def delete_assessment(self, assessment_id: str) -> int:
        """Delete an assessment and, before it, all of its grades."""
        removed = self.delete_grades(assessment_id)
        self.delete_assessment_record(assessment_id)
        LOG.info(f"Deleted assessment {assessment_id} and {removed} grades")
        return removed


class InMemoryGradeStore(GradeStore):
    """Dictionary-backed store."""

    def __init__(self):
        self.assessments: Dict[str, object] = {}
        self.grades: Dict[Tuple[str, str], Grade] = {}

    def get_assessment(self, assessment_id: str):
        return self.assessments.get(assessment_id)

    def find_assessments(self, grade_level=None, class_name=None, domain=None, term=None) -> List:
        found = []
        for assessment in self.assessments.values():
            if grade_level is not None and assessment.grade_level != grade_level:
                continue
            if class_name is not None and assessment.class_name != class_name:
                continue
            if domain is not None and assessment.domain != domain:
                continue
            if term is not None and assessment.term != term:
                continue
            found.append(assessment)
        return found

    def save_assessment(self, assessment) -> None:
        self.assessments[assessment.id] = assessment

    def delete_assessment_record(self, assessment_id: str) -> None:
        self.assessments.pop(assessment_id, None)

    def get_grades(self, assessment_ids, student_ids=None) -> List[Grade]:
        assessment_ids = set(assessment_ids)
        student_ids = set(student_ids) if student_ids is not None else None
        return [
            g for g in self.grades.values()
            if g.assessment_id in assessment_ids
            and (student_ids is None or g.student_id in student_ids)
        ]

    def upsert_grade(self, grade: Grade) -> None:
        self.grades[grade.key] = grade

    def delete_grades(self, assessment_id: str) -> int:
        keys = [k for k, g in self.grades.items() if g.assessment_id == assessment_id]
        for key in keys:
            del self.grades[key]
        return len(keys)


class YamlGradeStore(InMemoryGradeStore):
    """Store persisted to a single YAML file, rewritten after every change."""

    def __init__(self, yaml_path: Path):
        super().__init__()
        self.yaml_path = Path(yaml_path)
        self._load_yaml()

    def _load_yaml(self):
        if not self.yaml_path.exists():
            return
        with open(self.yaml_path, 'r') as f:
            data = yaml.safe_load(f) or {}
        for record in data.get('assessments', []):
            assessment = assessment_from_record(record)
            self.assessments[assessment.id] = assessment
        for record in data.get('grades', []):
            grade = Grade(**record)
            self.grades[grade.key] = grade
        LOG.info(f"Loaded {len(self.assessments)} assessments and {len(self.grades)} grades "
                 f"from {self.yaml_path}")

    def _save_yaml(self):
        data = {
            'assessments': [a.model_dump(mode='json') for a in self.assessments.values()],
            'grades': [g.model_dump(mode='json') for g in self.grades.values()],
        }
        with open(self.yaml_path, 'w') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def save_assessment(self, assessment) -> None:
        super().save_assessment(assessment)
        self._save_yaml()

    def delete_assessment_record(self, assessment_id: str) -> None:
        super().delete_assessment_record(assessment_id)
        self._save_yaml()

    def upsert_grade(self, grade: Grade) -> None:
        super().upsert_grade(grade)
        self._save_yaml()

    def delete_grades(self, assessment_id: str) -> int:
        removed = super().delete_grades(assessment_id)
        self._save_yaml()
        return removed
