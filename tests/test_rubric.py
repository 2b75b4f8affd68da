"""Tests for rubric scoring and template loading."""

import os
import tempfile
from pathlib import Path

import pytest

from markbook.scoring.exceptions import RubricError
from markbook.scoring.models import Domain, RubricTemplate
from markbook.scoring.rubric import (
    RubricSession, complete_sessions, load_rubric_templates, score_rubric, templates_for
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def template():
    return RubricTemplate(
        id="g1-opinion", name="Opinion Writing", grade=1, domain="writing",
        criteria=[
            {"label": "States opinion", "standard": "W.1.1", "levels": ["1", "2", "3", "4"]},
            {"label": "Gives reasons", "standard": "W.1.1", "levels": ["1", "2", "3", "4"]},
            {"label": "Provides closing", "standard": "W.1.1", "levels": ["1", "2", "3", "4"]},
            {"label": "Uses conventions", "standard": "L.1.2", "levels": ["1", "2", "3", "4"]},
        ],
    )


class TestScoreRubric:

    def test_incomplete_session(self, template):
        """Levels 3, 4, 2 and one unset give 9 of 16, incomplete."""
        result = score_rubric(template, {0: 3, 1: 4, 2: 2})
        assert result.total == 9
        assert result.max_score == 16
        assert not result.is_complete

    def test_zero_and_none_are_unset(self, template):
        result = score_rubric(template, {0: 3, 1: 0, 2: None, 3: 4})
        assert result.total == 7
        assert result.scored == 2

    def test_complete_session(self, template):
        result = score_rubric(template, {0: 4, 1: 4, 2: 3, 3: 1})
        assert result.total == 12
        assert result.is_complete
        assert result.percentage == pytest.approx(75.0)

    def test_invalid_level(self, template):
        with pytest.raises(RubricError):
            score_rubric(template, {0: 5})


class TestRubricSession:

    def test_state_transitions(self, template):
        session = RubricSession(template)
        assert session.unscored == [0, 1, 2, 3]
        for index, level in enumerate([3, 4, 2]):
            session.set_level(index, level)
        assert not session.is_complete
        assert session.score().total == 9

        session.set_level(3, 1)
        assert session.is_complete
        assert session.score().total == 10

        session.set_level(3, None)
        assert session.unscored == [3]

    def test_initial_levels_are_validated(self, template):
        with pytest.raises(RubricError):
            RubricSession(template, {0: 7})

    def test_criterion_out_of_range(self, template):
        session = RubricSession(template)
        with pytest.raises(RubricError, match="out of range"):
            session.set_level(4, 2)

    def test_complete_sessions_filters(self, template):
        sessions = {
            "s1": RubricSession(template, {0: 3, 1: 4, 2: 2}),
            "s2": RubricSession(template, {0: 3, 1: 3, 2: 3, 3: 3}),
        }
        assert list(complete_sessions(sessions)) == ["s2"]


class TestTemplates:

    def test_load_shipped_templates(self):
        templates = load_rubric_templates(PROJECT_ROOT / "config" / "rubrics.yaml")
        assert len(templates) >= 3
        opinion = next(t for t in templates if t.id == "g1-opinion")
        assert opinion.domain == Domain.WRITING
        assert opinion.criteria[0].standard == "W.1.1"
        assert all(len(c.levels) == 4 for t in templates for c in t.criteria)

    def test_templates_for(self):
        templates = load_rubric_templates(PROJECT_ROOT / "config" / "rubrics.yaml")
        grade1 = templates_for(templates, grade=1)
        assert grade1 and all(t.grade == 1 for t in grade1)
        reading = templates_for(templates, domain=Domain.READING)
        assert all(t.domain == Domain.READING for t in reading)
        assert templates_for(templates, grade=1, domain=Domain.READING) == []

    def test_missing_file(self):
        with pytest.raises(ValueError, match="Could not read rubric file"):
            load_rubric_templates(Path("does-not-exist.yaml"))

    def test_file_without_rubrics(self):
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("templates: []\n")
            temp_path = f.name
        try:
            with pytest.raises(ValueError, match="'rubrics' list"):
                load_rubric_templates(temp_path)
        finally:
            os.unlink(temp_path)


def test_level_labels(template):
    assert RubricTemplate.level_label(1) == "Emerging"
    assert template.level_label(4) == "Exceeds Standards"
    with pytest.raises(RubricError):
        template.level_label(5)


def test_session_selections(template):
    session = RubricSession(template, {2: 1, 0: 3})
    assert session.selections() == [
        {'criterion': "States opinion", 'level': 3, 'label': "Meets Standards", 'descriptor': "3"},
        {'criterion': "Provides closing", 'level': 1, 'label': "Emerging", 'descriptor': "1"},
    ]
