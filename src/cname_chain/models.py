"""
Data models for the CNAME chain resolver.

This module defines the structures passed between the resolver client,
the chain walker and the scan driver: DNS answers, query results, chain
steps and traces, and per-scan bookkeeping.
"""

from dataclasses import dataclass, field
from typing import Optional

from .enums import QueryStatus, RecordType, StepOutcome


@dataclass(frozen=True)
class AnswerRecord:
    """A single answer record returned by the resolver."""

    owner: str
    record_type: RecordType
    value: str  # target name without trailing dot, or address literal
    ttl: int = 0

    def to_text(self) -> str:
        """Render as a dig-style answer line."""
        value = self.value
        if self.record_type == RecordType.CNAME:
            value = f"{value}."
        return f"{self.owner}.\t{self.ttl}\tIN\t{self.record_type.value}\t{value}"


@dataclass
class QueryResult:
    """Outcome of asking DNS about one name for one record type."""

    name: str
    record_type: RecordType
    status: QueryStatus
    records: list[AnswerRecord] = field(default_factory=list)
    rcode_text: str = "NOERROR"
    attempts: int = 1
    error: Optional[str] = None

    @property
    def values(self) -> list[str]:
        """Answer values in resolver order."""
        return [record.value for record in self.records]

    @property
    def ok(self) -> bool:
        """True when the query completed with NOERROR."""
        return self.status == QueryStatus.NOERROR


@dataclass(frozen=True)
class ChainStep:
    """One hop of a resolution trace."""

    depth: int
    source: str
    outcome: StepOutcome
    target: Optional[str] = None
    records: tuple[AnswerRecord, ...] = ()
    status: Optional[QueryStatus] = None
    rcode_text: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        """Every outcome except ALIASED ends the walk."""
        return self.outcome != StepOutcome.ALIASED


@dataclass
class ChainTrace:
    """Ordered hops for one start name, ending in exactly one terminal step."""

    start: str
    direct_cnames: list[AnswerRecord] = field(default_factory=list)
    steps: list[ChainStep] = field(default_factory=list)

    @classmethod
    def failed(cls, start: str) -> "ChainTrace":
        """Stand-in trace for a name whose walk raised before it could finish."""
        return cls(start=start, steps=[ChainStep(
            0, start, StepOutcome.QUERY_FAILED,
            status=QueryStatus.OTHER_FAILURE, rcode_text="ERROR",
        )])

    @property
    def terminal(self) -> Optional[ChainStep]:
        """The terminal step, or None while the walk is still running."""
        if self.steps and self.steps[-1].is_terminal:
            return self.steps[-1]
        return None

    @property
    def aliases(self) -> list[ChainStep]:
        """The ALIASED hops in order."""
        return [step for step in self.steps if step.outcome == StepOutcome.ALIASED]

    @property
    def has_alias(self) -> bool:
        return bool(self.aliases)

    @property
    def final_name(self) -> str:
        """Name the walk ended on."""
        if not self.steps:
            return self.start
        last = self.steps[-1]
        return last.target if last.outcome == StepOutcome.ALIASED else last.source

    def outcomes(self) -> list[StepOutcome]:
        return [step.outcome for step in self.steps]

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary."""
        return {
            "start": self.start,
            "direct_cnames": [record.value for record in self.direct_cnames],
            "steps": [
                {
                    "depth": step.depth,
                    "source": step.source,
                    "outcome": step.outcome.value,
                    "target": step.target,
                    "records": [
                        {"type": r.record_type.value, "value": r.value, "ttl": r.ttl}
                        for r in step.records
                    ],
                    "status": step.status.value if step.status else None,
                    "rcode": step.rcode_text,
                }
                for step in self.steps
            ],
        }


@dataclass(frozen=True)
class ScanRequest:
    """One candidate handed to a scan worker."""

    name: str
    index: int


@dataclass
class ScanResult:
    """Completed resolution of one candidate."""

    request: ScanRequest
    trace: Optional[ChainTrace]
    lines: list[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class ScanStats:
    """Counters for a finished scan."""

    scanned: int = 0
    positives: int = 0
    negatives: int = 0
    failures: int = 0
    lines_written: int = 0
    duration_ms: float = 0.0
