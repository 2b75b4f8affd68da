"""Parser turning raw teacher input into a validated score."""

import logging
import math
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Optional

LOG = logging.getLogger(__name__)

# Leading decimal number, the way lenient number parsing reads "9." or "9abc".
_LEADING_NUMBER = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


class ParseStatus(str, Enum):
    SCORE = 'score'
    CLEARED = 'cleared'
    INVALID = 'invalid'


@dataclass(frozen=True)
class ParsedScore:
    """Outcome of parsing one raw input.

    ``CLEARED`` means the input was empty and any stored score should be
    removed. ``INVALID`` means the input could not be read; callers leave the
    prior value alone. Only ``SCORE`` carries a value.
    """
    status: ParseStatus
    value: Optional[float] = None
    over_max: bool = False

    @property
    def has_score(self) -> bool:
        return self.status == ParseStatus.SCORE


def round2(value: float) -> float:
    """Round half-up to two decimal places.

    Raises:
        ValueError: If the value is not finite or has too many digits to round
    """
    try:
        return float(Decimal(repr(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))
    except InvalidOperation as e:
        raise ValueError(f"Cannot round {value!r} to two decimal places") from e


def _parse_number(text: str) -> Optional[float]:
    match = _LEADING_NUMBER.match(text.strip())
    if not match:
        return None
    number = float(match.group(0))
    if not math.isfinite(number):
        return None
    return number


def _rounded(value: float) -> Optional[float]:
    if not math.isfinite(value):
        return None
    try:
        return round2(value)
    except ValueError:
        return None


def _parse_fraction(text: str, max_score: float) -> Optional[float]:
    numerator_text, _, denominator_text = text.partition('/')
    numerator = _parse_number(numerator_text)
    denominator = _parse_number(denominator_text)
    if numerator is None or denominator is None or denominator <= 0:
        return None
    return _rounded(numerator / denominator * max_score)


def parse_score(raw: Optional[str], max_score: float) -> ParsedScore:
    """Parse raw score input against an assessment maximum.

    Accepts plain decimals (``"17.5"``) and fraction-of-total shorthand with
    or without a leading ``=`` (``"=9/10"``, ``"9/10"``), which scales the
    fraction to ``max_score``. Never raises; safe to call on every keystroke.

    Args:
        raw: Text typed by the teacher
        max_score: The assessment's maximum score

    Returns:
        ParsedScore describing the outcome
    """
    text = (raw or '').strip()
    if not text:
        return ParsedScore(ParseStatus.CLEARED)

    if text.startswith('=') and '/' in text:
        value = _parse_fraction(text[1:], max_score)
    elif '/' in text:
        value = _parse_fraction(text, max_score)
    else:
        value = _parse_number(text)
        if value is not None:
            value = _rounded(value)

    if value is None or value < 0 or not math.isfinite(value):
        LOG.debug("Could not read score from %r", raw)
        return ParsedScore(ParseStatus.INVALID)

    over_max = value > max_score
    if over_max:
        LOG.warning(f"Score {value} exceeds maximum {max_score}")
    return ParsedScore(ParseStatus.SCORE, value=value, over_max=over_max)


def parse_score_value(raw: Optional[str], max_score: float) -> Optional[float]:
    """Shorthand for ``parse_score(...).value``: a number or None."""
    return parse_score(raw, max_score).value
