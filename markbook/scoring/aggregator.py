"""Category-weighted and domain-weighted averages over scored assessments.

Within a category every assessment counts equally, whatever its point
total. Categories are then combined with the policy weights for the grade
band, renormalized over the categories actually present, so a student with
only formative data gets an average of what is known rather than being
penalized for missing summative work. Domain rollups average the per-domain
results with equal weight per domain.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .models import Category, Domain, Grade, WeightedItem
from .policy import CategoryWeights, WeightPolicy

LOG = logging.getLogger(__name__)


@dataclass
class AggregateSummary:
    """Weighted average plus the pieces it was built from.

    ``percentage`` is None when there was nothing to aggregate.
    """
    percentage: Optional[float]
    category_averages: Dict[Category, float] = field(default_factory=dict)
    effective_weights: Dict[Category, float] = field(default_factory=dict)
    item_count: int = 0

    @property
    def has_data(self) -> bool:
        return self.percentage is not None


def effective_weights(weights: CategoryWeights, present: Iterable[Category]) -> Dict[Category, float]:
    """Rescale the weights of the present categories so they sum to 1."""
    present = sorted(set(present), key=lambda c: list(Category).index(c))
    if not present:
        return {}
    total = sum(weights.weight(c) for c in present)
    if total <= 0:
        LOG.warning(f"All present categories {[c.value for c in present]} have zero weight; "
                    "weighting them equally")
        return {c: 1 / len(present) for c in present}
    return {c: weights.weight(c) / total for c in present}


def _usable(items: Iterable[WeightedItem]) -> List[WeightedItem]:
    usable = []
    for item in items:
        if item.max_score <= 0:
            LOG.warning(f"Dropping item {item.assessment_id or ''} with non-positive maximum "
                        f"{item.max_score}")
            continue
        usable.append(item)
    return usable


def summarize(items: Iterable[WeightedItem], band: str, policy: WeightPolicy) -> AggregateSummary:
    """Category-weighted average of the items for a grade band.

    Args:
        items: Scored results, already excluding absent and exempt entries
        band: Grade band whose weights apply
        policy: Weight policy to read the band's weights from

    Returns:
        AggregateSummary; ``percentage`` is None when no usable items remain

    Raises:
        UnknownGradeBandError: If there are usable items and the policy has
            no weights for ``band``
    """
    usable = _usable(items)
    if not usable:
        return AggregateSummary(percentage=None)
    weights = policy.weights_for(band)

    by_category = defaultdict(list)
    for item in usable:
        by_category[Category(item.category)].append(item.percentage)

    averages = {c: sum(pcts) / len(pcts) for c, pcts in by_category.items()}
    renormalized = effective_weights(weights, averages)
    percentage = sum(averages[c] * w for c, w in renormalized.items())
    clamped = min(max(percentage, 0.0), 100.0)
    if clamped != percentage:
        LOG.debug(f"Clamped weighted average {percentage:.2f} to {clamped:.2f}")

    return AggregateSummary(
        percentage=clamped,
        category_averages=averages,
        effective_weights=renormalized,
        item_count=len(usable),
    )


def weighted_average(items: Iterable[WeightedItem], band: str, policy: WeightPolicy) -> Optional[float]:
    """Weighted percentage in [0, 100], or None when there is no data."""
    return summarize(items, band, policy).percentage


def domain_averages(items: Iterable[WeightedItem], band: str,
                    policy: WeightPolicy) -> Dict[Domain, float]:
    """Weighted average per domain, for domains that have data."""
    by_domain = defaultdict(list)
    for item in items:
        if item.domain is not None:
            by_domain[Domain(item.domain)].append(item)

    result = {}
    for domain in Domain:
        if domain not in by_domain:
            continue
        percentage = weighted_average(by_domain[domain], band, policy)
        if percentage is not None:
            result[domain] = percentage
    return result


def overall_average(items: Iterable[WeightedItem], band: str, policy: WeightPolicy) -> Optional[float]:
    """Mean of the domain averages, one vote per domain."""
    averages = domain_averages(items, band, policy)
    if not averages:
        return None
    return sum(averages.values()) / len(averages)


def build_weighted_items(assessments: Sequence, grades: Iterable[Grade],
                         student_id: str) -> List[WeightedItem]:
    """Turn one student's stored grades into aggregation items.

    Absent, exempt and unscored grades are skipped, as are grades whose
    assessment is unknown or has a non-positive maximum.
    """
    by_id = {a.id: a for a in assessments}
    items = []
    for grade in grades:
        if grade.student_id != student_id or not grade.is_recorded:
            continue
        assessment = by_id.get(grade.assessment_id)
        if assessment is None or assessment.max_score <= 0:
            continue
        items.append(WeightedItem(
            score=grade.score,
            max_score=assessment.max_score,
            category=assessment.category,
            domain=assessment.domain,
            assessment_id=assessment.id,
        ))
    return items


@dataclass
class StudentReport:
    student_id: str
    domain_averages: Dict[Domain, float]
    overall: Optional[float]


def student_report(student_id: str, assessments: Sequence, grades: Iterable[Grade],
                   band: str, policy: WeightPolicy) -> StudentReport:
    """Per-domain and overall averages for one student."""
    items = build_weighted_items(assessments, grades, student_id)
    averages = domain_averages(items, band, policy)
    overall = sum(averages.values()) / len(averages) if averages else None
    return StudentReport(student_id=student_id, domain_averages=averages, overall=overall)


@dataclass
class ClassPerformance:
    class_name: Optional[str]
    student_count: int
    domain_averages: Dict[Domain, Optional[float]]
    overall_average: Optional[float]


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def class_performance(class_name: Optional[str], student_ids: Sequence[str], assessments: Sequence,
                      grades: Iterable[Grade], band: str, policy: WeightPolicy) -> ClassPerformance:
    """Class averages per domain as the mean of student domain averages.

    Students with no data in a domain don't count toward that domain.
    """
    grades = list(grades)
    per_domain: Dict[Domain, List[float]] = defaultdict(list)
    overall = []
    for student_id in student_ids:
        report = student_report(student_id, assessments, grades, band, policy)
        for domain, percentage in report.domain_averages.items():
            per_domain[domain].append(percentage)
        if report.overall is not None:
            overall.append(report.overall)

    return ClassPerformance(
        class_name=class_name,
        student_count=len(student_ids),
        domain_averages={domain: _mean(per_domain.get(domain, [])) for domain in Domain},
        overall_average=_mean(overall),
    )
