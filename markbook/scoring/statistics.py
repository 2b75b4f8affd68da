"""Distributional summaries for item analysis and class comparison."""

import logging
import statistics as stats
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .models import Domain, Grade
from .policy import MasteryThresholds

LOG = logging.getLogger(__name__)

HISTOGRAM_BUCKETS = ('0-20%', '20-40%', '40-60%', '60-80%', '80-100%')


def percentage_bucket(percentage: float) -> int:
    """Index of the 20-point histogram bucket a percentage falls into."""
    if percentage <= 0:
        return 0
    return min(int(percentage // 20), len(HISTOGRAM_BUCKETS) - 1)


@dataclass
class ScoreStatistics:
    """Summary of a set of scores out of a known maximum."""
    count: int
    max_score: float
    mean: Optional[float] = None
    median: Optional[float] = None
    std_dev: Optional[float] = None
    histogram: List[int] = field(default_factory=lambda: [0] * len(HISTOGRAM_BUCKETS))
    needs_reteach: int = 0
    approaching: int = 0
    proficient: int = 0

    @property
    def mean_percentage(self) -> Optional[float]:
        if self.mean is None or self.max_score <= 0:
            return None
        return self.mean * 100 / self.max_score

    def to_dict(self) -> dict:
        return {
            'count': self.count,
            'max_score': self.max_score,
            'mean': self.mean,
            'median': self.median,
            'std_dev': self.std_dev,
            'histogram': dict(zip(HISTOGRAM_BUCKETS, self.histogram)),
            'needs_reteach': self.needs_reteach,
            'approaching': self.approaching,
            'proficient': self.proficient,
        }


def describe(scores: Iterable[float], max_score: float,
             thresholds: MasteryThresholds) -> ScoreStatistics:
    """Compute mean, median, population std-dev, histogram and mastery bands.

    Args:
        scores: Recorded scores (no nulls)
        max_score: Maximum score the percentages are taken against
        thresholds: Mastery cutoffs for the reteach/approaching/proficient bands

    Returns:
        ScoreStatistics; mean, median and std_dev are None for no scores
    """
    values = [float(s) for s in scores]
    result = ScoreStatistics(count=len(values), max_score=max_score)
    if not values:
        return result

    result.mean = stats.fmean(values)
    result.median = stats.median(values)
    result.std_dev = stats.pstdev(values)

    if max_score <= 0:
        LOG.warning(f"Cannot compute percentage bands against maximum {max_score}")
        return result

    for value in values:
        percentage = value * 100 / max_score
        result.histogram[percentage_bucket(percentage)] += 1
        if thresholds.needs_reteach(percentage):
            result.needs_reteach += 1
        if thresholds.is_approaching(percentage):
            result.approaching += 1
        if thresholds.is_proficient(percentage):
            result.proficient += 1
    return result


@dataclass
class ItemAnalysis:
    """Statistics for one assessment plus who needs intervention."""
    assessment_id: str
    statistics: ScoreStatistics
    reteach_students: List[str] = field(default_factory=list)
    approaching_students: List[str] = field(default_factory=list)


def item_analysis(assessment, grades: Iterable[Grade],
                  thresholds: MasteryThresholds) -> ItemAnalysis:
    """Describe the recorded scores of one assessment and flag students by band."""
    recorded = [g for g in grades if g.assessment_id == assessment.id and g.is_recorded]
    summary = describe([g.score for g in recorded], assessment.max_score, thresholds)
    analysis = ItemAnalysis(assessment_id=assessment.id, statistics=summary)
    for grade in sorted(recorded, key=lambda g: g.student_id):
        percentage = grade.score * 100 / assessment.max_score
        if thresholds.needs_reteach(percentage):
            analysis.reteach_students.append(grade.student_id)
        elif thresholds.is_approaching(percentage):
            analysis.approaching_students.append(grade.student_id)
    return analysis


@dataclass
class GroupResult:
    """One class's result on a replicated assessment."""
    class_name: Optional[str]
    assessment_ids: List[str]
    count: int
    mean_percentage: Optional[float] = None
    rank: Optional[int] = None


@dataclass
class ClassComparison:
    ranking: List[GroupResult] = field(default_factory=list)
    no_data: List[GroupResult] = field(default_factory=list)


def _same_assessment(a, b) -> bool:
    return (a.name == b.name and a.domain == b.domain
            and a.grade_level == b.grade_level and a.term == b.term)


def compare_classes(target, assessments: Sequence, grades: Iterable[Grade]) -> ClassComparison:
    """Rank the classes that took the same assessment by mean percentage.

    Matching assessments share name, domain, grade level and term. When no
    other class has a match the comparison is empty. Classes with no recorded
    scores are reported in ``no_data`` with ``count = 0`` and are not ranked.
    """
    matches = [a for a in assessments if _same_assessment(a, target)]
    if not any(a.class_name != target.class_name for a in matches):
        LOG.debug(f"No other class has assessment {target.name!r}")
        return ClassComparison()
    if not any(a.id == target.id for a in matches):
        matches.append(target)

    by_class = defaultdict(list)
    for assessment in matches:
        by_class[assessment.class_name].append(assessment)

    grades = list(grades)
    comparison = ClassComparison()
    groups = []
    for class_name, class_assessments in by_class.items():
        maxima = {a.id: a.max_score for a in class_assessments}
        percentages = [
            g.score * 100 / maxima[g.assessment_id]
            for g in grades
            if g.assessment_id in maxima and g.is_recorded and maxima[g.assessment_id] > 0
        ]
        group = GroupResult(
            class_name=class_name,
            assessment_ids=sorted(maxima),
            count=len(percentages),
        )
        if percentages:
            group.mean_percentage = sum(percentages) / len(percentages)
            groups.append(group)
        else:
            comparison.no_data.append(group)

    groups.sort(key=lambda g: (-g.mean_percentage, str(g.class_name)))
    for rank, group in enumerate(groups, start=1):
        group.rank = rank
    comparison.ranking = groups
    return comparison


@dataclass
class StandardMastery:
    code: str
    domain: Domain
    percentages: List[float]
    average: float
    level: str


def standards_mastery(student_id: str, assessments: Sequence, grades: Iterable[Grade],
                      thresholds: MasteryThresholds) -> List[StandardMastery]:
    """Average percentage per standard code for one student, sorted by code.

    Standards are reporting tags only; each tagged assessment contributes the
    student's percentage to every standard it carries.
    """
    by_id = {a.id: a for a in assessments}
    collected: Dict[str, List[float]] = defaultdict(list)
    domains: Dict[str, Domain] = {}
    for grade in grades:
        if grade.student_id != student_id or not grade.is_recorded:
            continue
        assessment = by_id.get(grade.assessment_id)
        if assessment is None or assessment.max_score <= 0:
            continue
        percentage = grade.score * 100 / assessment.max_score
        for code in assessment.standard_codes:
            collected[code].append(percentage)
            domains.setdefault(code, assessment.domain)

    report = []
    for code in sorted(collected):
        percentages = collected[code]
        average = sum(percentages) / len(percentages)
        report.append(StandardMastery(
            code=code,
            domain=domains[code],
            percentages=percentages,
            average=average,
            level=thresholds.mastery_level(average),
        ))
    return report
