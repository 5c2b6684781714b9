"""
DNS resolver clients.

This module provides the query layer the chain walker drives:

- ``DnsResolverClient``: async client on top of dnspython's
  ``dns.asyncresolver``, with a per-attempt timeout and a bounded number of
  tries. Every transport failure is folded into a ``QueryResult`` so callers
  never see resolver exceptions.
- ``SimulatedResolverClient``: deterministic in-memory zone used for dry runs
  and tests.

Status classification is table-driven against dnspython's vocabulary
(rcodes and exception classes) so the mapping onto NOERROR / NXDOMAIN /
OTHER_FAILURE / TIMEOUT lives in one place.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional, Protocol

import dns.asyncresolver
import dns.exception
import dns.rcode
import dns.rdatatype
import dns.resolver

from .audit_logger import AuditLogger
from .config import ResolverConfig, RetryConfig
from .enums import QueryStatus, RecordType
from .exceptions import ConfigurationError, QueryError, ResolverUnavailableError, ValidationError
from .models import AnswerRecord, QueryResult
from .name_validator import canonical_name, strip_root
from .retry_manager import RetryManager


# Response codes with a dedicated status; everything else is OTHER_FAILURE
RCODE_STATUS: dict[int, QueryStatus] = {
    dns.rcode.NOERROR: QueryStatus.NOERROR,
    dns.rcode.NXDOMAIN: QueryStatus.NXDOMAIN,
}

# Ordered: the first matching class wins, so subclasses come first
EXCEPTION_STATUS: tuple[tuple[type, QueryStatus, str], ...] = (
    (dns.resolver.NXDOMAIN, QueryStatus.NXDOMAIN, "NXDOMAIN"),
    (dns.resolver.NoAnswer, QueryStatus.NOERROR, "NOERROR"),
    (dns.resolver.YXDOMAIN, QueryStatus.OTHER_FAILURE, "YXDOMAIN"),
    (dns.resolver.NoNameservers, QueryStatus.OTHER_FAILURE, "SERVFAIL"),
    (dns.resolver.NoMetaqueries, QueryStatus.OTHER_FAILURE, "REFUSED"),
    (dns.exception.Timeout, QueryStatus.TIMEOUT, "TIMEOUT"),
    (asyncio.TimeoutError, QueryStatus.TIMEOUT, "TIMEOUT"),
    (dns.exception.DNSException, QueryStatus.OTHER_FAILURE, "FORMERR"),
    (OSError, QueryStatus.OTHER_FAILURE, "NETWORK_ERROR"),
)

# Extra headroom over the resolver lifetime before the attempt is abandoned
WAIT_MARGIN_SECONDS = 0.5


def classify_rcode(rcode: int) -> tuple[QueryStatus, str]:
    """Map a DNS response code onto a status and its presentation text."""
    return RCODE_STATUS.get(rcode, QueryStatus.OTHER_FAILURE), dns.rcode.to_text(rcode)


def classify_exception(error: BaseException) -> Optional[tuple[QueryStatus, str]]:
    """
    Map a resolver exception onto a status and rcode text.

    Returns:
        (status, rcode_text), or None for exceptions outside the table
    """
    for exc_type, status, rcode_text in EXCEPTION_STATUS:
        if isinstance(error, exc_type):
            if isinstance(error, dns.resolver.NoNameservers):
                rcode_text = _rcode_from_no_nameservers(error) or rcode_text
            return status, rcode_text
    return None


def _rcode_from_no_nameservers(error: dns.resolver.NoNameservers) -> Optional[str]:
    """Pull the server's rcode (SERVFAIL, REFUSED...) out of a NoNameservers error."""
    for entry in error.kwargs.get("errors", []) or []:
        response = entry[-1] if isinstance(entry, tuple) and entry else None
        if response is not None and hasattr(response, "rcode"):
            return dns.rcode.to_text(response.rcode())
    return None


def _record_value(rdata) -> str:
    if hasattr(rdata, "target"):
        return strip_root(rdata.target.to_text()).lower()
    if hasattr(rdata, "address"):
        return str(rdata.address)
    return rdata.to_text()


class ResolverClient(Protocol):
    """Query interface consumed by the chain walker."""

    async def query(self, name: str, record_type: RecordType) -> QueryResult:
        ...

    async def status(self, name: str) -> QueryResult:
        ...


class DnsResolverClient:
    """
    Async DNS client backed by dnspython.

    One query attempt is bounded by ``timeout`` seconds; a query is tried at
    most ``tries`` times, and only timeouts are retried.
    """

    COMPONENT = "DnsResolverClient"

    def __init__(
        self,
        config: ResolverConfig,
        retry_manager: Optional[RetryManager] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the resolver client.

        Args:
            config: Resolver settings (timeout, tries, nameservers, port)
            retry_manager: Optional retry policy; derived from ``tries`` by default
            logger: Optional logger for per-query debug output

        Raises:
            ResolverUnavailableError: If no nameserver can be determined
        """
        self._config = config
        self._logger = logger
        self._retry_manager = retry_manager or RetryManager(RetryConfig.from_tries(config.tries))
        self._resolver = self._build_resolver(config)

    @staticmethod
    def _build_resolver(config: ResolverConfig) -> dns.asyncresolver.Resolver:
        try:
            resolver = dns.asyncresolver.Resolver(configure=not config.nameservers)
        except dns.resolver.NoResolverConfiguration as e:
            raise ResolverUnavailableError(
                code="no_resolver_configuration",
                message="No system resolver configuration found; pass --nameserver",
                details={"error": str(e)},
            ) from e

        try:
            if config.nameservers:
                resolver.nameservers = list(config.nameservers)
        except ValueError as e:
            raise ResolverUnavailableError(
                code="invalid_nameserver",
                message=f"Invalid nameserver address: {e}",
                details={"nameservers": list(config.nameservers)},
            ) from e

        if not resolver.nameservers:
            raise ResolverUnavailableError(
                code="no_nameservers",
                message="Resolver has no nameservers configured",
            )

        resolver.port = config.port
        resolver.timeout = config.timeout
        resolver.lifetime = config.timeout
        return resolver

    @property
    def nameservers(self) -> list[str]:
        return [str(getattr(ns, "address", ns)) for ns in self._resolver.nameservers]

    async def query(self, name: str, record_type: RecordType) -> QueryResult:
        """
        Query one record type for a name.

        Never raises for DNS-level failures; they are reported through the
        result status.
        """
        try:
            result = await self._retry_manager.execute_query_with_retry(
                lambda: self._attempt(name, record_type)
            )
        except QueryError as e:
            if self._logger is not None:
                self._logger.log_error(
                    self.COMPONENT, e.message, error=e.__cause__, name=name,
                    additional_data={"code": e.code, "type": record_type.value},
                )
            return QueryResult(
                name=name,
                record_type=record_type,
                status=QueryStatus.OTHER_FAILURE,
                rcode_text="ERROR",
                error=e.message,
                attempts=1,
            )
        self._log_result(result)
        return result

    async def status(self, name: str) -> QueryResult:
        """Overall status of a name, taken from an A lookup's response code."""
        return await self.query(name, RecordType.A)

    async def _attempt(self, name: str, record_type: RecordType) -> QueryResult:
        try:
            answer = await asyncio.wait_for(
                self._resolver.resolve(
                    name,
                    record_type.value,
                    raise_on_no_answer=False,
                    lifetime=self._config.timeout,
                ),
                timeout=self._config.timeout + WAIT_MARGIN_SECONDS,
            )
        except Exception as e:
            classified = classify_exception(e)
            if classified is None:
                raise QueryError(
                    code="unexpected_resolver_error",
                    message=f"{record_type.value} query for {name} failed: {e}",
                    details={"name": name, "type": record_type.value, "error_type": type(e).__name__},
                ) from e
            status, rcode_text = classified
            return QueryResult(
                name=name,
                record_type=record_type,
                status=status,
                rcode_text=rcode_text,
                error=None if status == QueryStatus.NXDOMAIN else str(e) or type(e).__name__,
            )

        status, rcode_text = classify_rcode(answer.response.rcode())
        records: list[AnswerRecord] = []
        if answer.rrset is not None:
            owner = strip_root(answer.rrset.name.to_text()).lower()
            rtype = RecordType(dns.rdatatype.to_text(answer.rrset.rdtype))
            records = [
                AnswerRecord(
                    owner=owner,
                    record_type=rtype,
                    value=_record_value(rdata),
                    ttl=answer.rrset.ttl,
                )
                for rdata in answer.rrset
            ]

        return QueryResult(
            name=name,
            record_type=record_type,
            status=status,
            records=records,
            rcode_text=rcode_text,
        )

    def _log_result(self, result: QueryResult) -> None:
        if self._logger is None:
            return
        self._logger.debug(
            self.COMPONENT,
            f"{result.record_type.value} {result.name}: {result.rcode_text}",
            {
                "records": result.values,
                "attempts": result.attempts,
                "error": result.error,
            },
        )


class SimulatedResolverClient:
    """
    In-memory resolver over a fixed zone.

    Names absent from ``records`` answer NXDOMAIN; names present with no data
    for a type answer NOERROR with an empty answer; names in ``failures``
    answer with the given rcode (``TIMEOUT`` yields a timeout). Only records
    owned by the queried name are returned; aliases are never chased.
    """

    def __init__(
        self,
        records: Optional[dict[str, dict[str, list[str]]]] = None,
        failures: Optional[dict[str, str]] = None,
        ttl: int = 300,
        latency: float = 0.0,
    ) -> None:
        self._records: dict[str, dict[RecordType, list[str]]] = {}
        for name, rrsets in (records or {}).items():
            self._records[canonical_name(name)] = {
                RecordType(rtype.upper()): [strip_root(v).lower() if rtype.upper() == "CNAME" else v
                                            for v in values]
                for rtype, values in rrsets.items()
            }
        self._failures = {
            canonical_name(name): rcode.upper() for name, rcode in (failures or {}).items()
        }
        self._ttl = ttl
        self._latency = latency
        self.query_log: list[tuple[str, RecordType]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @classmethod
    def from_zone_file(cls, path: Path, **kwargs) -> "SimulatedResolverClient":
        """
        Load a JSON zone: {"records": {name: {type: [values]}}, "failures": {name: rcode}}.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls(
                records=data.get("records", {}),
                failures=data.get("failures", {}),
                **kwargs,
            )
        except (OSError, json.JSONDecodeError, AttributeError, ValueError, ValidationError) as e:
            raise ConfigurationError(
                code="invalid_zone_file",
                message=f"Could not load zone file {path}: {e}",
                details={"path": str(path)},
            ) from e

    async def query(self, name: str, record_type: RecordType) -> QueryResult:
        try:
            name = canonical_name(name)
        except ValidationError as e:
            return QueryResult(
                name=name,
                record_type=record_type,
                status=QueryStatus.OTHER_FAILURE,
                rcode_text="FORMERR",
                error=e.message,
            )
        self.query_log.append((name, record_type))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._latency:
                await asyncio.sleep(self._latency)
            else:
                await asyncio.sleep(0)
            return self._answer(name, record_type)
        finally:
            self.in_flight -= 1

    async def status(self, name: str) -> QueryResult:
        return await self.query(name, RecordType.A)

    def _answer(self, name: str, record_type: RecordType) -> QueryResult:
        failure = self._failures.get(name)
        if failure is not None:
            status = QueryStatus.TIMEOUT if failure == "TIMEOUT" else QueryStatus.OTHER_FAILURE
            return QueryResult(
                name=name,
                record_type=record_type,
                status=status,
                rcode_text=failure,
                error=f"simulated {failure}",
            )

        rrsets = self._records.get(name)
        if rrsets is None:
            return QueryResult(
                name=name,
                record_type=record_type,
                status=QueryStatus.NXDOMAIN,
                rcode_text="NXDOMAIN",
            )

        records = [
            AnswerRecord(owner=name, record_type=record_type, value=value, ttl=self._ttl)
            for value in rrsets.get(record_type, [])
        ]
        return QueryResult(
            name=name,
            record_type=record_type,
            status=QueryStatus.NOERROR,
            records=records,
            rcode_text="NOERROR",
        )

    def queries_for(self, name: str) -> int:
        """Number of queries issued for a name, any type."""
        return sum(1 for queried, _ in self.query_log if queried == name)


def create_resolver_client(
    config: ResolverConfig,
    simulation_zone: Optional[Path] = None,
    logger: Optional[AuditLogger] = None,
):
    """
    Build the resolver client for a run.

    Raises:
        ResolverUnavailableError: If the real resolver cannot be configured
        ConfigurationError: If the simulation zone cannot be loaded
    """
    if simulation_zone is not None:
        return SimulatedResolverClient.from_zone_file(simulation_zone)
    return DnsResolverClient(config, logger=logger)
