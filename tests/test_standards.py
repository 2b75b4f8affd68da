"""Tests for standard code normalization."""

import pytest

from markbook.scoring.standards import normalize_standard


@pytest.mark.parametrize("raw,expected", [
    ("rl21", "RL.2.1"),
    ("rf13a", "RF.1.3a"),
    ("RL.2.1", "RL.2.1"),
    ("ri310", "RI.3.10"),
    ("  sl41 ", "SL.4.1"),
    ("w12", "W.1.2"),
    ("l25b", "L.2.5b"),
    ("wk2", "W.K.2"),
])
def test_normalize_standard(raw, expected):
    assert normalize_standard(raw) == expected


@pytest.mark.parametrize("raw", ["", "hello", "XY21", "rl", "rl2", "12", "rl21ab"])
def test_unmatched_input_passes_through(raw):
    assert normalize_standard(raw) == raw


def test_dotted_input_is_unchanged():
    assert normalize_standard("rf.1.3a") == "rf.1.3a"


@pytest.mark.parametrize("raw", ["rl21", "rf13a", "RL.2.1", "garbage", " w12 ", "", "wk2"])
def test_idempotent(raw):
    once = normalize_standard(raw)
    assert normalize_standard(once) == once
