"""Normalization of shorthand curricular standard codes."""

import re

# Longer abbreviations first so "RL" wins over "L".
STANDARD_DOMAINS = ('RL', 'RI', 'RF', 'SL', 'W', 'L')

_SHORTHAND = re.compile(
    r'^(?P<domain>' + '|'.join(STANDARD_DOMAINS) + r')'
    r'(?P<grade>[K\d])(?P<standard>\d+)(?P<suffix>[A-Z]?)$'
)


def normalize_standard(raw: str) -> str:
    """Convert a shorthand standard code into its canonical dotted form.

    ``rl21`` becomes ``RL.2.1`` and ``rf13a`` becomes ``RF.1.3a``. Codes that
    already contain a dot, and anything that doesn't look like a shorthand
    code, are returned exactly as given.
    """
    if not isinstance(raw, str):
        return raw
    cleaned = raw.strip().upper()
    if '.' in cleaned:
        return raw
    match = _SHORTHAND.match(cleaned)
    if not match:
        return raw
    return '{}.{}.{}{}'.format(
        match.group('domain'),
        match.group('grade'),
        match.group('standard'),
        match.group('suffix').lower(),
    )
