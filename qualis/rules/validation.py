"""Qualis – Rule parameter validation.

Parameter values are stored as strings; their type descriptor on the rule
parameter decides which strings are acceptable. A descriptor is a type
name optionally followed by comma-separated options:

- ``INTEGER``, ``FLOAT``, ``BOOLEAN``, ``STRING``, ``TEXT``
- ``SINGLE_SELECT_LIST,values="a,b,c"`` (the unquoted form
  ``values=a,b,c`` is also accepted)
- ``multiple=true`` on any type accepts a comma-separated list of values,
  each validated on its own.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


class InvalidParamValueError(ValueError):
    """Raised when a parameter override does not match its declared type."""


_LIST_KIND = "SINGLE_SELECT_LIST"
_BOOLEAN_VALUES = ("true", "false")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_QUOTED_VALUES_RE = re.compile(r'values="([^"]*)"')


def _split_values(value: str) -> List[str]:
    return [v.strip() for v in value.split(",")]


def _parse_options(options: str) -> Dict[str, str]:
    # A token without "=" belongs to the previous option: values=a,b,multiple=true
    parsed: Dict[str, str] = {}
    current: Optional[str] = None
    for token in options.split(","):
        key, sep, value = token.partition("=")
        if sep:
            current = key.strip().lower()
            parsed[current] = value.strip()
        elif current is not None and token.strip():
            parsed[current] = f"{parsed[current]},{token.strip()}"
    return parsed


@dataclass(frozen=True)
class ParamType:
    """Parsed parameter type descriptor."""

    kind: str
    values: Tuple[str, ...] = ()
    multiple: bool = False

    @classmethod
    def parse(cls, descriptor: str) -> "ParamType":
        kind, _, options = descriptor.strip().partition(",")

        values: Tuple[str, ...] = ()
        quoted = _QUOTED_VALUES_RE.search(options)
        if quoted is not None:
            values = tuple(v for v in _split_values(quoted.group(1)) if v)
            options = options.replace(quoted.group(0), "")

        parsed = _parse_options(options)
        if not values and parsed.get("values"):
            values = tuple(v for v in _split_values(parsed["values"]) if v)

        return cls(
            kind=kind.strip().upper(),
            values=values,
            multiple=parsed.get("multiple", "").lower() == "true",
        )


def _check_single(parsed: ParamType, param_type: str, value: str, label: str) -> None:
    if parsed.kind == "INTEGER":
        if not _INTEGER_RE.match(value):
            raise InvalidParamValueError(f"Value '{value}' of {label} must be an integer")
    elif parsed.kind == "FLOAT":
        try:
            number = float(value)
        except ValueError:
            number = math.nan
        if not math.isfinite(number):
            raise InvalidParamValueError(f"Value '{value}' of {label} must be a finite floating point number")
    elif parsed.kind == "BOOLEAN":
        if value.lower() not in _BOOLEAN_VALUES:
            raise InvalidParamValueError(f"Value '{value}' of {label} must be one of: true, false")
    elif parsed.kind == _LIST_KIND:
        if parsed.values and value not in parsed.values:
            raise InvalidParamValueError(f"Value '{value}' of {label} must be one of: {', '.join(parsed.values)}")
    elif parsed.kind not in ("STRING", "TEXT"):
        raise InvalidParamValueError(f"Unsupported type '{param_type}' for {label}")


def validate_param_value(param_type: str, value: str, param_name: str = "") -> str:
    """Check ``value`` against the ``param_type`` descriptor.

    Args:
        param_type: Type descriptor declared by the rule parameter.
        value: Candidate value.
        param_name: Name used in error messages.

    Returns:
        The value, unchanged, when it is valid.

    Raises:
        InvalidParamValueError: If the value does not satisfy the type.
    """

    parsed = ParamType.parse(param_type)
    label = f"'{param_name}'" if param_name else "parameter"

    if parsed.kind in ("STRING", "TEXT"):
        return value

    candidates = _split_values(value) if parsed.multiple else [value.strip()]
    for candidate in candidates:
        _check_single(parsed, param_type, candidate, label)

    return value
