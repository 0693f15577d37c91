"""Metric readings extracted from statsd lines."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class MetricKind(str, Enum):
    TIMER = "timer"
    GAUGE = "gauge"
    GAUGE_DELTA = "gauge_delta"
    SET = "set"
    COUNTER = "counter"


@dataclass(frozen=True)
class Metric:
    """A single reading: one metric becomes one ``put`` line downstream."""

    key: str
    value: float
    kind: MetricKind


_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-zA-Z_\-0-9.]")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_PREFIXED_RE = re.compile(r"^0([xXoObB])([0-9a-fA-F]+)$")
_PREFIX_BASES = {"x": 16, "o": 8, "b": 2}


def sanitize_key(raw: str) -> str:
    """Restrict a metric name to letters, digits, ``_``, ``-`` and ``.``."""

    key = _WHITESPACE_RE.sub("_", raw)
    key = key.replace("/", "-")
    return _DISALLOWED_RE.sub("", key)


def coerce_value(literal: Optional[str], fallback: float) -> float:
    """Parse a statsd value, falling back the way ``Number(x) || fallback`` does.

    Empty, unparseable, non-finite and zero values all collapse to ``fallback``,
    so a counter sent as ``0`` is indistinguishable from one sent without a value.
    """

    if literal is None:
        return float(fallback)
    text = literal.strip()
    prefixed = _PREFIXED_RE.match(text)
    if prefixed:
        # Unsigned hex, octal and binary literals, as JavaScript Number() reads them.
        try:
            value = float(int(prefixed.group(2), _PREFIX_BASES[prefixed.group(1).lower()]))
        except (ValueError, OverflowError):
            return float(fallback)
    elif _NUMBER_RE.match(text):
        value = float(text)
    else:
        return float(fallback)
    if not math.isfinite(value) or value == 0:
        return float(fallback)
    return value


def format_value(value: float) -> str:
    value = float(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)
