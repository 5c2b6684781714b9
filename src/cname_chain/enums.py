"""
Enumeration types for the CNAME chain resolver.

These enums provide type-safe constants for record types, query statuses,
chain step outcomes, and output/logging options throughout the system.
"""

from enum import Enum


class RecordType(Enum):
    """DNS record types the resolver client is asked for."""

    A = "A"
    AAAA = "AAAA"
    CNAME = "CNAME"
    SOA = "SOA"


class QueryStatus(Enum):
    """Normalized outcome of a single DNS query."""

    NOERROR = "noerror"
    NXDOMAIN = "nxdomain"
    OTHER_FAILURE = "other_failure"
    TIMEOUT = "timeout"


class StepOutcome(Enum):
    """Outcome of one hop in a chain trace."""

    ALIASED = "aliased"
    TERMINAL = "terminal"
    LOOP_DETECTED = "loop_detected"
    NOT_FOUND = "not_found"
    NO_RECORDS = "no_records"
    DEPTH_EXCEEDED = "depth_exceeded"
    QUERY_FAILED = "query_failed"


class OutputFormat(Enum):
    """Per-candidate output format of a bulk scan."""

    SUMMARY = "summary"
    TRACE = "trace"
    JSONL = "jsonl"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class NameValidationErrorCode(Enum):
    """Error codes for name validation failures."""

    FORBIDDEN_CHARS = "forbidden_chars"
    EMPTY_LABEL = "empty_label"
    TOO_LONG = "too_long"
    IDNA_ERROR = "idna_error"
    EMPTY_INPUT = "empty_input"
