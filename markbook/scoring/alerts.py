"""Student alerts from per-domain averages."""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .models import Domain
from .policy import AlertThresholds

LOG = logging.getLogger(__name__)


@dataclass
class StudentAlert:
    student_id: str
    type: str
    domain: Domain
    current_grade: float
    previous_grade: Optional[float] = None

    @property
    def details(self) -> str:
        if self.type == 'declining':
            return (f"{self.domain.value} dropped from {self.previous_grade:.1f}% "
                    f"to {self.current_grade:.1f}%")
        return f"{self.domain.value} average {self.current_grade:.1f}% is below threshold"


def student_alerts(student_id: str, current: Mapping[Domain, float],
                   thresholds: AlertThresholds,
                   previous: Optional[Mapping[Domain, float]] = None) -> List[StudentAlert]:
    """Flag domains below the warning threshold or declining since last term.

    Args:
        student_id: Student the averages belong to
        current: Domain averages for the current term
        thresholds: Warning and decline thresholds
        previous: Domain averages for the previous term, if known

    Returns:
        Alerts in domain order, below-threshold before declining for a domain
    """
    previous = previous or {}
    alerts = []
    for domain in Domain:
        if domain not in current or current[domain] is None:
            continue
        value = current[domain]
        if value < thresholds.warning_threshold:
            alerts.append(StudentAlert(student_id, 'below_threshold', domain, value))
        before = previous.get(domain)
        if before is not None and before - value >= thresholds.decline_threshold:
            alerts.append(StudentAlert(student_id, 'declining', domain, value, before))
    if alerts:
        LOG.debug(f"{len(alerts)} alerts for student {student_id}")
    return alerts
