"""Tests for scoring policy configuration objects."""

import pytest
from pydantic import ValidationError

from markbook.libs.config_loader import load_default_configs
from markbook.scoring.exceptions import UnknownGradeBandError
from markbook.scoring.models import Category
from markbook.scoring.policy import (
    CategoryWeights, GradingScale, MasteryThresholds, ScoringSettings, WeightPolicy
)


@pytest.fixture
def sample_config():
    """Create sample configuration."""
    return {
        'scoring': {
            'weight_policy': {
                'bands': {
                    'lower': {'formative': 0.5, 'summative': 0.3, 'performance_task': 0.2},
                    'upper': {'formative': 0.4, 'summative': 0.4, 'performance_task': 0.2},
                },
                'grade_bands': {1: 'lower', 2: 'lower', 3: 'upper'},
            },
            'mastery': {'pass_percent': 60, 'approaching_percent': 70, 'proficient_percent': 80},
            'alerts': {'warning_threshold': 60, 'decline_threshold': 10},
            'grading_scale': [
                {'letter': 'A', 'min': 90},
                {'letter': 'B', 'min': 80},
                {'letter': 'C', 'min': 70},
                {'letter': 'E', 'min': 0},
            ],
        }
    }


class TestCategoryWeights:

    def test_must_sum_to_one(self):
        with pytest.raises(ValidationError, match="sum to 1.0"):
            CategoryWeights(formative=0.5, summative=0.3, performance_task=0.1)

    def test_weight_lookup(self):
        weights = CategoryWeights(formative=0.5, summative=0.3, performance_task=0.2)
        assert weights.weight(Category.SUMMATIVE) == 0.3
        assert weights.weight("performance_task") == 0.2
        assert sum(weights.as_dict().values()) == pytest.approx(1.0)


class TestWeightPolicy:

    def test_band_lookup(self, sample_config):
        policy = WeightPolicy(**sample_config['scoring']['weight_policy'])
        assert policy.band_for_grade(2) == 'lower'
        assert policy.weights_for('upper').summative == 0.4

    def test_unknown_band(self, sample_config):
        policy = WeightPolicy(**sample_config['scoring']['weight_policy'])
        with pytest.raises(UnknownGradeBandError, match="'middle'"):
            policy.weights_for('middle')

    def test_unmapped_grade_uses_grade_name(self, sample_config):
        policy = WeightPolicy(**sample_config['scoring']['weight_policy'])
        assert policy.band_for_grade(5) == '5'

    def test_grade_band_must_exist(self):
        with pytest.raises(ValidationError, match="undefined bands"):
            WeightPolicy(
                bands={'lower': {'formative': 1, 'summative': 0, 'performance_task': 0}},
                grade_bands={1: 'nowhere'},
            )


class TestMasteryThresholds:

    def test_bands(self):
        t = MasteryThresholds(pass_percent=60, approaching_percent=70, proficient_percent=80)
        assert t.needs_reteach(59.9)
        assert not t.needs_reteach(60)
        assert t.is_approaching(60) and t.is_approaching(70)
        assert not t.is_approaching(71)
        assert t.is_proficient(80)
        assert t.mastery_level(85) == 'mastered'
        assert t.mastery_level(65) == 'approaching'
        assert t.mastery_level(30) == 'below'

    def test_order_enforced(self):
        with pytest.raises(ValidationError):
            MasteryThresholds(pass_percent=80, approaching_percent=70, proficient_percent=60)


def test_grading_scale_letters():
    scale = GradingScale(entries=[{'letter': 'E', 'min': 0}, {'letter': 'A', 'min': 90},
                                  {'letter': 'B', 'min': 80}])
    assert scale.letter_for(95) == 'A'
    assert scale.letter_for(89.5) == 'A'
    assert scale.letter_for(89.4) == 'B'
    assert scale.letter_for(12) == 'E'


def test_settings_from_configs(sample_config):
    settings = ScoringSettings.from_configs(sample_config)
    assert settings.weight_policy.band_for_grade(3) == 'upper'
    assert settings.mastery.proficient_percent == 80
    assert settings.alerts.decline_threshold == 10
    assert settings.grading_scale.letter_for(75) == 'C'
    assert settings.rubric_templates is None


def test_settings_from_default_config():
    settings = ScoringSettings.from_configs(load_default_configs())
    assert set(settings.weight_policy.bands) == {'lower', 'upper'}
    assert settings.grading_scale.letter_for(97) == 'A+'
    assert settings.grading_scale.letter_for(59) == 'E'
    assert settings.rubric_templates == 'config/rubrics.yaml'


def test_settings_load_configured_rubrics():
    settings = ScoringSettings.from_configs(load_default_configs())
    templates = settings.load_rubric_templates()
    assert [t.id for t in templates] == ['g1-opinion', 'g1-narrative', 'g2-opinion', 'g3-reading-response']


def test_settings_without_rubric_file(sample_config):
    settings = ScoringSettings.from_configs(sample_config)
    with pytest.raises(ValueError, match="No rubric template file configured"):
        settings.load_rubric_templates()
