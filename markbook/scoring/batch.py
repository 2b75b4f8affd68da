"""Batch write paths: class score entry, section entry and rubric apply.

Every student's grade is written with its own upsert. A failed write is
logged and recorded, and the remaining students are still attempted unless
``stop_on_error`` is set, in which case the rest are reported as skipped.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .exceptions import RubricError
from .models import Grade, RubricTemplate, SectionedAssessment, SimpleAssessment
from .rubric import RubricSession, complete_sessions
from .score_parser import ParseStatus, parse_score
from .sections import SectionScores, build_section_grade
from .store import GradeStore

LOG = logging.getLogger(__name__)

SAVED = 'saved'
FAILED = 'failed'
SKIPPED = 'skipped'


@dataclass
class WriteResult:
    """Outcome of writing one student's grade."""
    student_id: str
    status: str
    score: Optional[float] = None
    error_message: Optional[str] = None
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    @property
    def success(self) -> bool:
        return self.status == SAVED

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'student_id': self.student_id,
            'status': self.status,
            'score': self.score,
            'timestamp': self.timestamp,
        }
        if self.error_message:
            data['error_message'] = self.error_message
        return data


@dataclass
class BatchResult:
    """Per-student results of a batch, with success and failure counts."""
    assessment_id: str
    results: List[WriteResult] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def succeeded(self) -> int:
        return self._count(SAVED)

    @property
    def failed(self) -> int:
        return self._count(FAILED)

    @property
    def skipped(self) -> int:
        return self._count(SKIPPED)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0

    def failures(self) -> Dict[str, str]:
        return {r.student_id: r.error_message or '' for r in self.results if r.status == FAILED}

    def to_dict(self) -> Dict[str, Any]:
        """Summary suitable for YAML serialization."""
        return {
            'batch_summary': {
                'assessment_id': self.assessment_id,
                'timestamp': datetime.now().isoformat(),
                'total': len(self.results),
                'succeeded': self.succeeded,
                'failed': self.failed,
                'skipped': self.skipped,
            },
            'results': [r.to_dict() for r in self.results],
        }


def _write_all(store: GradeStore, assessment_id: str, grades: Sequence[Grade],
               result: BatchResult, stop_on_error: bool) -> BatchResult:
    stopped = False
    for grade in grades:
        if stopped:
            result.results.append(WriteResult(grade.student_id, SKIPPED, grade.score,
                                              "Not attempted after an earlier failure"))
            continue
        try:
            store.upsert_grade(grade)
        except Exception as e:
            LOG.error(f"Error saving grade for {grade.student_id} on {assessment_id}: {e}")
            result.results.append(WriteResult(grade.student_id, FAILED, grade.score, str(e)))
            stopped = stop_on_error
            continue
        LOG.debug(f"Saved {grade.student_id}: {grade.score}")
        result.results.append(WriteResult(grade.student_id, SAVED, grade.score))

    LOG.info(f"Saved {result.succeeded} of {len(result.results)} grades for {assessment_id} "
             f"({result.failed} failed, {result.skipped} skipped)")
    return result


def upsert_grades(store: GradeStore, assessment_id: str, grades: Sequence[Grade],
                  stop_on_error: bool = False) -> BatchResult:
    """Upsert each grade independently and report what happened to each."""
    return _write_all(store, assessment_id, grades, BatchResult(assessment_id), stop_on_error)


def save_class_scores(store: GradeStore, assessment, raw_inputs: Mapping[str, str],
                      absent: Iterable[str] = (), exempt: Iterable[str] = (),
                      stop_on_error: bool = False) -> BatchResult:
    """Parse and save a whole class's typed scores for a simple assessment.

    Empty input clears the stored score. Input that can't be read is skipped
    so the stored value is left alone. Absent and exempt students are saved
    with a null score.

    Args:
        store: Datastore to write to
        assessment: Assessment the scores belong to
        raw_inputs: Student id to raw typed text
        absent: Students marked absent
        exempt: Students marked exempt
        stop_on_error: Stop issuing writes after the first failure

    Returns:
        BatchResult with per-student outcomes
    """
    absent, exempt = set(absent), set(exempt)
    result = BatchResult(assessment.id)
    grades = []
    for student_id in sorted(set(raw_inputs) | absent | exempt):
        if student_id in absent or student_id in exempt:
            try:
                grades.append(Grade(student_id=student_id, assessment_id=assessment.id,
                                    is_absent=student_id in absent,
                                    is_exempt=student_id in exempt))
            except ValueError as e:
                result.results.append(WriteResult(student_id, FAILED, error_message=str(e)))
            continue

        parsed = parse_score(raw_inputs[student_id], assessment.max_score)
        if parsed.status == ParseStatus.INVALID:
            result.results.append(WriteResult(
                student_id, SKIPPED,
                error_message=f"Could not read score {raw_inputs[student_id]!r}"
            ))
            continue
        grades.append(Grade(student_id=student_id, assessment_id=assessment.id,
                            score=parsed.value))

    return _write_all(store, assessment.id, grades, result, stop_on_error)


def save_section_scores(store: GradeStore, assessment: SectionedAssessment,
                        section_inputs: Mapping[str, SectionScores],
                        stop_on_error: bool = False) -> BatchResult:
    """Compose and save each student's section sub-scores.

    Students with a negative sub-score are refused and counted as failures;
    nothing is written for them.
    """
    result = BatchResult(assessment.id)
    grades = []
    for student_id in sorted(section_inputs):
        try:
            grades.append(build_section_grade(assessment, student_id, section_inputs[student_id]))
        except (ValueError, IndexError) as e:
            LOG.warning(f"Refusing section scores for {student_id}: {e}")
            result.results.append(WriteResult(student_id, FAILED, error_message=str(e)))
    return _write_all(store, assessment.id, grades, result, stop_on_error)


def apply_rubric(store: GradeStore, assessment: SimpleAssessment, template: RubricTemplate,
                 sessions: Mapping[str, RubricSession],
                 stop_on_error: bool = False) -> Tuple[SimpleAssessment, BatchResult]:
    """Write rubric totals for every student whose session is complete.

    The assessment adopts the rubric's maximum (4 per criterion) and is saved
    when that differs from its current maximum. Incomplete sessions are
    skipped without error.

    Returns:
        The (possibly updated) assessment and the batch result

    Raises:
        RubricError: If the assessment is sectioned
    """
    if isinstance(assessment, SectionedAssessment):
        raise RubricError(f"Cannot apply a rubric to sectioned assessment {assessment.id}")

    if assessment.max_score != template.max_score:
        LOG.info(f"Assessment {assessment.id} adopts rubric {template.id} maximum "
                 f"{template.max_score} (was {assessment.max_score})")
        assessment = assessment.model_copy(update={'max_score': float(template.max_score)})
        store.save_assessment(assessment)

    result = BatchResult(assessment.id)
    complete = complete_sessions(sessions)
    for student_id in sorted(set(sessions) - set(complete)):
        result.results.append(WriteResult(student_id, SKIPPED,
                                          error_message="Rubric session incomplete"))

    grades = [
        Grade(student_id=student_id, assessment_id=assessment.id,
              score=float(complete[student_id].score().total))
        for student_id in sorted(complete)
    ]
    return assessment, _write_all(store, assessment.id, grades, result, stop_on_error)


def delete_assessment(store: GradeStore, assessment_id: str) -> int:
    """Delete an assessment together with all of its grades."""
    return store.delete_assessment(assessment_id)


@dataclass
class EntryProgress:
    entered: int
    total: int

    def __str__(self) -> str:
        return f"{self.entered} of {self.total} students entered"


def entry_progress(assessment, grades: Iterable[Grade], student_ids: Sequence[str]) -> EntryProgress:
    """How many of the given students have something entered for the assessment.

    For sectioned assessments a student counts once any sub-score is present.
    """
    roster = set(student_ids)
    entered = set()
    for grade in grades:
        if grade.assessment_id != assessment.id or grade.student_id not in roster:
            continue
        if isinstance(assessment, SectionedAssessment):
            has_entry = bool(grade.section_scores) and any(
                v is not None for v in grade.section_scores.values()
            )
        else:
            has_entry = grade.score is not None or grade.is_absent or grade.is_exempt
        if has_entry:
            entered.add(grade.student_id)
    return EntryProgress(entered=len(entered), total=len(roster))
