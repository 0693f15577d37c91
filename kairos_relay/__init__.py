"""Relay statsd readings to KairosDB, one ``put`` line per reading."""

from kairos_relay.connection import (  # noqa: F401
    ConnectionManager,
    ConnectionPhase,
    ConnectionState,
    NotConnectedError,
    NotificationGate,
    RelayError,
)
from kairos_relay.forwarder import MetricForwarder, format_put_line  # noqa: F401
from kairos_relay.metrics import Metric, MetricKind, sanitize_key  # noqa: F401
from kairos_relay.parser import IssueReason, ParsedReading, ParseIssue, parse_packet  # noqa: F401
from kairos_relay.relay import Relay  # noqa: F401
