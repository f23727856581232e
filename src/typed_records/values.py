"""Core value kinds for the schema engine.

This module defines the plain-data type system the engine consumes and
produces: scalars, mappings and sequences as decoded from JSON or YAML.
It also provides the numeric-string recognition used by lenient
coercion.
"""

from re import compile as regexp
from types import SimpleNamespace
from typing import Any

#: Scalars are atomic plain values accepted by primitive descriptors.
type Scalar = str | int | float | bool

#: Plain data as produced by a JSON or YAML decoder.
type PlainValue = Scalar | list['PlainValue'] | dict[str, 'PlainValue'] | None

#: A value received from callers prior to coercion.
type RawValue = Any

MAPPINGS = (dict,)
NAMESPACES = (SimpleNamespace,)
SCALARS = (str, int, float, bool)
SEQUENCES = (list, tuple)

#: Decimal or scientific notation with optional surrounding whitespace.
NUMERIC_PATTERN = regexp(
    r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$',
)


def is_number(value: RawValue) -> bool:
    """Check whether a value is a native number (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: str) -> int | float | None:
    """Parse a numeric string.

    Args:
        value: Candidate string.

    Returns:
        An integer for integral notation, a float for decimal or
        scientific notation, or `None` when the string is not numeric.
    """
    match = NUMERIC_PATTERN.match(value)
    if not match:
        return None

    if match.group(2) is None and match.group(3) is None and '.' not in value:
        return int(value)

    return float(value)
