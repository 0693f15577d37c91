"""Tolerant parser for statsd datagrams."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Union

from kairos_relay.metrics import Metric, MetricKind, coerce_value, sanitize_key


class IssueReason(str, Enum):
    BAD_LINE = "BAD_LINE"
    GAUGE_ADJUSTMENT = "GAUGE_ADJUSTMENT"
    SET_UNSUPPORTED = "SET_UNSUPPORTED"


@dataclass(frozen=True)
class ParseIssue:
    """A segment that was skipped, with enough context to log it."""

    reason: IssueReason
    line: str
    segment: str

    @property
    def message(self) -> str:
        if self.reason == IssueReason.GAUGE_ADJUSTMENT:
            return "Sending gauges with +/- is not supported yet."
        if self.reason == IssueReason.SET_UNSUPPORTED:
            return "Sets not supported yet."
        return f'Bad line: {self.segment} in msg "{self.line}"'


@dataclass(frozen=True)
class ParsedReading:
    raw_line: str
    metric: Optional[Metric] = None
    issue: Optional[ParseIssue] = None


# Synthesized for lines without a value; routed to the counter path.
_DEFAULT_SEGMENT = ("1", None)


def parse_packet(payload: Union[bytes, str]) -> Iterator[ParsedReading]:
    """Yield one reading per value segment, in packet order.

    Malformed and unsupported segments are yielded as issues instead of raising,
    so one bad segment never hides its siblings or later lines.
    """

    text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else payload
    for line in text.split("\n"):
        if not line:
            continue
        yield from parse_line(line)


def parse_line(line: str) -> Iterator[ParsedReading]:
    bits = line.split(":")
    key = sanitize_key(bits[0])
    segments = [bit for bit in bits[1:] if bit]

    if not segments:
        value, metric_type = _DEFAULT_SEGMENT
        yield _dispatch(line, key, value, metric_type, segment=value)
        return

    for segment in segments:
        fields: List[str] = segment.split("|")
        if len(fields) < 2:
            yield ParsedReading(raw_line=line, issue=ParseIssue(IssueReason.BAD_LINE, line, segment))
            continue
        yield _dispatch(line, key, fields[0], fields[1].strip(), segment=segment)


def _dispatch(line: str, key: str, value: str, metric_type: Optional[str], segment: str) -> ParsedReading:
    if metric_type == "ms":
        return ParsedReading(raw_line=line, metric=Metric(key, coerce_value(value, 0), MetricKind.TIMER))
    if metric_type == "g":
        if value.startswith(("+", "-")):
            return ParsedReading(raw_line=line, issue=ParseIssue(IssueReason.GAUGE_ADJUSTMENT, line, segment))
        return ParsedReading(raw_line=line, metric=Metric(key, coerce_value(value, 0), MetricKind.GAUGE))
    if metric_type == "s":
        return ParsedReading(raw_line=line, issue=ParseIssue(IssueReason.SET_UNSUPPORTED, line, segment))
    return ParsedReading(raw_line=line, metric=Metric(key, coerce_value(value, 1), MetricKind.COUNTER))
