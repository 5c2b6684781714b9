"""
Rendering of chain traces into output lines.

Three shapes are produced:

- the full human-readable trace used by ``chain`` (and ``scan --format trace``),
- the one-line-per-hop scan summary (``<name> -> <target>``),
- one JSON object per trace for machine consumption.
"""

import json

from .enums import OutputFormat, RecordType, StepOutcome
from .models import ChainTrace


NO_CNAME_MARKER = "(no CNAME)"


def format_trace(trace: ChainTrace, max_depth: int) -> list[str]:
    """
    Render a trace the way the interactive chain command prints it.

    Args:
        trace: Completed chain trace
        max_depth: Depth limit the walker ran with (shown when it is hit)

    Returns:
        Output lines, ending with an empty separator line
    """
    lines = [f"=== {trace.start} ==="]

    if trace.direct_cnames:
        lines.append("Direct CNAME(s):")
        lines.extend(record.to_text() for record in trace.direct_cnames)
    else:
        lines.append("Direct CNAME(s): none")

    for step in trace.steps:
        if step.outcome == StepOutcome.ALIASED:
            lines.append(f"[{step.depth + 1}] {step.source}  ->CNAME->  {step.target}")
        elif step.outcome == StepOutcome.TERMINAL:
            lines.append(f"Terminal records for {step.source}:")
            # AAAA before A
            lines.extend(r.to_text() for r in step.records if r.record_type == RecordType.AAAA)
            lines.extend(r.to_text() for r in step.records if r.record_type == RecordType.A)
        elif step.outcome == StepOutcome.LOOP_DETECTED:
            lines.append(f"Loop detected at: {step.source}  (chain already visited)")
        elif step.outcome == StepOutcome.NO_RECORDS:
            lines.append(f"No A/AAAA found for {step.source} (but DNS said NOERROR).")
        elif step.outcome == StepOutcome.NOT_FOUND:
            lines.append(f"NXDOMAIN for {step.source}")
        elif step.outcome == StepOutcome.QUERY_FAILED:
            lines.append(f"Non-success DNS status for {step.source}: {step.rcode_text}")
        elif step.outcome == StepOutcome.DEPTH_EXCEEDED:
            lines.append(f"Max depth ({max_depth}) reached; stopping to avoid infinite loop.")

    lines.append("")
    return lines


def format_summary(trace: ChainTrace, print_all: bool = False) -> list[str]:
    """
    Render the scan summary: one ``<source> -> <target>`` line per alias hop.

    Candidates without any alias produce nothing, or a single
    ``<name> -> (no CNAME)`` line when ``print_all`` is set.
    """
    lines = [f"{step.source} -> {step.target}" for step in trace.aliases]
    if not lines and print_all:
        lines.append(f"{trace.start} -> {NO_CNAME_MARKER}")
    return lines


def format_jsonl(trace: ChainTrace) -> list[str]:
    """Render one JSON object for the trace."""
    data = trace.to_dict()
    terminal = trace.terminal
    data["outcome"] = terminal.outcome.value if terminal else None
    data["final_name"] = trace.final_name
    return [json.dumps(data, ensure_ascii=False, sort_keys=True)]


def render(
    trace: ChainTrace,
    output_format: OutputFormat,
    print_all: bool = False,
    max_depth: int = 25,
) -> list[str]:
    """
    Render a scanned candidate's trace in the requested format.

    Non-summary formats also honor ``print_all``: candidates without an
    alias are dropped unless it is set.
    """
    if output_format == OutputFormat.SUMMARY:
        return format_summary(trace, print_all)

    if not trace.has_alias and not print_all:
        return []

    if output_format == OutputFormat.TRACE:
        return format_trace(trace, max_depth)
    return format_jsonl(trace)
