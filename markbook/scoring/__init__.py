"""Assessment scoring and aggregation engine."""

from .aggregator import (
    AggregateSummary, build_weighted_items, class_performance, domain_averages,
    overall_average, student_report, summarize, weighted_average
)
from .alerts import StudentAlert, student_alerts
from .batch import (
    BatchResult, WriteResult, apply_rubric, delete_assessment, entry_progress,
    save_class_scores, save_section_scores, upsert_grades
)
from .exceptions import NegativeScoreError, RubricError, ScoringError, UnknownGradeBandError
from .models import (
    Category, Domain, Grade, RubricCriterion, RubricTemplate, Section, SectionedAssessment,
    SimpleAssessment, StandardTag, WeightedItem, assessment_from_record
)
from .policy import (
    AlertThresholds, CategoryWeights, GradingScale, MasteryThresholds, ScoringSettings, WeightPolicy
)
from .rubric import RubricSession, load_rubric_templates, score_rubric, templates_for
from .score_parser import ParsedScore, ParseStatus, parse_score
from .sections import compose, edit_sections
from .standards import normalize_standard
from .statistics import compare_classes, describe, item_analysis, standards_mastery
from .store import GradeStore, InMemoryGradeStore, YamlGradeStore

__all__ = [
    'AggregateSummary', 'build_weighted_items', 'class_performance', 'domain_averages',
    'overall_average', 'student_report', 'summarize', 'weighted_average',
    'StudentAlert', 'student_alerts',
    'BatchResult', 'WriteResult', 'apply_rubric', 'delete_assessment', 'entry_progress',
    'save_class_scores', 'save_section_scores', 'upsert_grades',
    'NegativeScoreError', 'RubricError', 'ScoringError', 'UnknownGradeBandError',
    'Category', 'Domain', 'Grade', 'RubricCriterion', 'RubricTemplate', 'Section',
    'SectionedAssessment', 'SimpleAssessment', 'StandardTag', 'WeightedItem',
    'assessment_from_record',
    'AlertThresholds', 'CategoryWeights', 'GradingScale', 'MasteryThresholds',
    'ScoringSettings', 'WeightPolicy',
    'RubricSession', 'load_rubric_templates', 'score_rubric', 'templates_for',
    'ParsedScore', 'ParseStatus', 'parse_score',
    'compose', 'edit_sections',
    'normalize_standard',
    'compare_classes', 'describe', 'item_analysis', 'standards_mastery',
    'GradeStore', 'InMemoryGradeStore', 'YamlGradeStore',
]
