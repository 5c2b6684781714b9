"""
Bulk scan driver.

Applies the chain walker to every name of a candidate stream using a fixed
pool of asyncio workers. Workers pull the next candidate from a shared
iterator one at a time, so the stream is never materialized and no
candidate is handed out twice. Results go to an ``OutputSink`` that writes
each candidate's lines as one block.

With ``parallelism == 1`` there is a single worker and candidates are
processed strictly in input order. With more workers, output order across
candidates is unspecified.
"""

import asyncio
import sys
import threading
import time
from typing import Iterable, Iterator, Optional, TextIO

from .audit_logger import AuditLogger
from .chain_walker import ChainWalker
from .enums import OutputFormat
from .models import ChainTrace, ScanRequest, ScanResult, ScanStats
from .report import render


class OutputSink:
    """Serialized line writer shared by all scan workers."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._lock = threading.Lock()
        self._lines_written = 0

    @property
    def lines_written(self) -> int:
        return self._lines_written

    def emit(self, lines: list[str]) -> None:
        """Write lines as one uninterrupted block."""
        if not lines:
            return
        block = "".join(f"{line}\n" for line in lines)
        with self._lock:
            self._stream.write(block)
            self._stream.flush()
            self._lines_written += len(lines)


class ScanDriver:
    """
    Runs chain resolution over a candidate stream with bounded concurrency.

    Exactly ``parallelism`` workers run; each finishes one candidate's full
    walk before pulling the next.
    """

    COMPONENT = "ScanDriver"

    def __init__(
        self,
        walker: ChainWalker,
        sink: OutputSink,
        parallelism: int = 1,
        print_all: bool = False,
        output_format: OutputFormat = OutputFormat.SUMMARY,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the scan driver.

        Args:
            walker: Chain walker shared by all workers
            sink: Destination for rendered lines
            parallelism: Number of concurrent workers (>= 1)
            print_all: Also report candidates without any alias
            output_format: How each trace is rendered
            logger: Optional logger for progress and per-candidate failures
        """
        if parallelism < 1:
            raise ValueError(f"parallelism must be >= 1, got {parallelism}")
        self._walker = walker
        self._sink = sink
        self._parallelism = parallelism
        self._print_all = print_all
        self._output_format = output_format
        self._logger = logger

    @property
    def parallelism(self) -> int:
        return self._parallelism

    async def scan(self, candidates: Iterable[str]) -> ScanStats:
        """
        Resolve every candidate and forward the rendered output to the sink.

        Args:
            candidates: Lazy sequence of names

        Returns:
            ScanStats for the finished scan
        """
        start_time = time.perf_counter()
        stats = ScanStats()
        source = enumerate(iter(candidates))
        pull_lock = asyncio.Lock()
        lines_before = self._sink.lines_written

        self._log_info(
            f"Starting scan with {self._parallelism} worker(s)",
            {"parallelism": self._parallelism, "print_all": self._print_all,
             "format": self._output_format.value},
        )

        workers = [
            asyncio.create_task(self._worker(source, pull_lock, stats))
            for _ in range(self._parallelism)
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for task in workers:
                task.cancel()
            raise

        stats.lines_written = self._sink.lines_written - lines_before
        stats.duration_ms = (time.perf_counter() - start_time) * 1000

        self._log_info(
            f"Scan finished: {stats.scanned} scanned, {stats.positives} with aliases",
            {
                "scanned": stats.scanned,
                "positives": stats.positives,
                "negatives": stats.negatives,
                "failures": stats.failures,
                "lines_written": stats.lines_written,
                "duration_ms": stats.duration_ms,
            },
        )
        return stats

    async def _worker(
        self,
        source: Iterator[tuple[int, str]],
        pull_lock: asyncio.Lock,
        stats: ScanStats,
    ) -> None:
        while True:
            async with pull_lock:
                item = next(source, None)
            if item is None:
                return

            index, name = item
            result = await self.resolve_one(ScanRequest(name=name, index=index))

            stats.scanned += 1
            if result.error is not None:
                stats.failures += 1
            elif result.trace is not None and result.trace.has_alias:
                stats.positives += 1
            else:
                stats.negatives += 1

            self._sink.emit(result.lines)

    async def resolve_one(self, request: ScanRequest) -> ScanResult:
        """
        Resolve and render a single candidate.

        Unexpected errors are logged and turned into a negative result so
        that one candidate can never abort the scan. With ``print_all`` the
        failed candidate is still reported, like any other negative.
        """
        error = None
        try:
            trace = await self._walker.resolve_chain(request.name)
        except Exception as e:
            if self._logger:
                self._logger.log_error(
                    self.COMPONENT,
                    f"Resolution failed for {request.name}",
                    error=e,
                    name=request.name,
                    additional_data={"index": request.index},
                )
            trace = ChainTrace.failed(request.name)
            error = str(e)

        lines = render(
            trace,
            self._output_format,
            print_all=self._print_all,
            max_depth=self._walker.max_depth,
        )
        return ScanResult(request=request, trace=trace, lines=lines, error=error)

    def _log_info(self, message: str, data: dict) -> None:
        if self._logger:
            self._logger.info(self.COMPONENT, message, data)
