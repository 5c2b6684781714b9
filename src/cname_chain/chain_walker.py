"""
CNAME chain walker.

Given a start name, repeatedly queries DNS and follows CNAME records until a
terminal state: address records, a loop, NXDOMAIN, an empty answer, a
failed lookup, or the depth limit. The result is a ``ChainTrace`` whose
steps are strictly ordered by depth.

The walk is a pure function of the query results it sees: given a resolver
that answers deterministically, repeated walks produce identical traces.
"""

from typing import Optional

from .audit_logger import AuditLogger
from .config import DEFAULT_MAX_DEPTH
from .enums import QueryStatus, RecordType, StepOutcome
from .exceptions import ValidationError
from .models import ChainStep, ChainTrace, QueryResult
from .name_validator import canonical_name, strip_root
from .resolver_client import ResolverClient


class ChainWalker:
    """
    Follows CNAME indirection for one name at a time.

    Instances hold no per-walk state, so a single walker can be shared by
    any number of concurrent scan workers.
    """

    COMPONENT = "ChainWalker"

    def __init__(
        self,
        resolver: ResolverClient,
        max_depth: int = DEFAULT_MAX_DEPTH,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the chain walker.

        Args:
            resolver: Client used for every query
            max_depth: Maximum number of CNAME hops followed
            logger: Optional logger for per-hop debug output
        """
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        self._resolver = resolver
        self._max_depth = max_depth
        self._logger = logger

    @property
    def max_depth(self) -> int:
        return self._max_depth

    async def resolve_chain(self, start: str) -> ChainTrace:
        """
        Walk the CNAME chain starting at ``start``.

        Args:
            start: Name to resolve (canonicalized before use)

        Returns:
            ChainTrace ending in exactly one terminal step
        """
        start = canonical_name(start)
        trace = ChainTrace(start=start)

        # Informational pre-check; the first loop round repeats this query
        direct = await self._resolver.query(start, RecordType.CNAME)
        trace.direct_cnames = list(direct.records)

        visited: set[str] = set()
        current = start
        depth = 0

        while depth < self._max_depth:
            if current in visited:
                self._emit(trace, ChainStep(depth, current, StepOutcome.LOOP_DETECTED))
                return trace
            visited.add(current)

            aaaa = await self._resolver.query(current, RecordType.AAAA)
            a = await self._resolver.query(current, RecordType.A)
            cname = await self._resolver.query(current, RecordType.CNAME)

            addresses = self._addresses(aaaa) + self._addresses(a)
            cname_targets = cname.values if cname.ok else []

            if addresses and not cname_targets:
                self._emit(trace, ChainStep(
                    depth, current, StepOutcome.TERMINAL, records=tuple(addresses),
                ))
                return trace

            if cname_targets:
                target = self._normalize_target(cname_targets[0])
                self._emit(trace, ChainStep(depth, current, StepOutcome.ALIASED, target=target))
                current = target
                depth += 1
                continue

            status = await self._resolver.status(current)
            self._emit(trace, self._classify_dead_end(depth, current, status))
            return trace

        self._emit(trace, ChainStep(depth, current, StepOutcome.DEPTH_EXCEEDED))
        return trace

    @staticmethod
    def _addresses(result: QueryResult) -> list:
        """Address records from a NOERROR answer; failures count as no answer."""
        if not result.ok:
            return []
        return [
            record for record in result.records
            if record.record_type in (RecordType.A, RecordType.AAAA)
        ]

    @staticmethod
    def _normalize_target(value: str) -> str:
        target = strip_root(value)
        try:
            return canonical_name(target)
        except ValidationError:
            return target.lower()

    @staticmethod
    def _classify_dead_end(depth: int, name: str, status: QueryResult) -> ChainStep:
        """Terminal step for a name with neither addresses nor a CNAME."""
        if status.status == QueryStatus.NXDOMAIN:
            outcome = StepOutcome.NOT_FOUND
        elif status.status == QueryStatus.NOERROR:
            outcome = StepOutcome.NO_RECORDS
        else:
            outcome = StepOutcome.QUERY_FAILED
        return ChainStep(
            depth, name, outcome, status=status.status, rcode_text=status.rcode_text,
        )

    def _emit(self, trace: ChainTrace, step: ChainStep) -> None:
        trace.steps.append(step)
        if self._logger is not None:
            self._logger.debug(
                self.COMPONENT,
                f"[{step.depth}] {step.source}: {step.outcome.value}",
                {"start": trace.start, "target": step.target},
            )
