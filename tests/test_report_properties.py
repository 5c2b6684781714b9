"""
Tests for trace rendering: the interactive trace, the scan summary and
JSON lines.
"""

import json

from hypothesis import given, settings
from hypothesis import strategies as st

from cname_chain.enums import OutputFormat, QueryStatus, RecordType, StepOutcome
from cname_chain.models import AnswerRecord, ChainStep, ChainTrace
from cname_chain.report import format_jsonl, format_summary, format_trace, render


def _alias_chain(length: int) -> ChainTrace:
    trace = ChainTrace(start="h0.example.com")
    for i in range(length):
        trace.steps.append(ChainStep(
            i, f"h{i}.example.com", StepOutcome.ALIASED, target=f"h{i + 1}.example.com",
        ))
    trace.steps.append(ChainStep(
        length,
        f"h{length}.example.com",
        StepOutcome.TERMINAL,
        records=(
            AnswerRecord(f"h{length}.example.com", RecordType.AAAA, "2001:db8::1", 60),
            AnswerRecord(f"h{length}.example.com", RecordType.A, "192.0.2.1", 60),
        ),
    ))
    return trace


class TestTraceFormat:
    """Full human-readable trace."""

    def test_alias_chain_trace(self) -> None:
        trace = _alias_chain(2)
        trace.direct_cnames = [AnswerRecord("h0.example.com", RecordType.CNAME, "h1.example.com", 300)]

        lines = format_trace(trace, 25)

        assert lines == [
            "=== h0.example.com ===",
            "Direct CNAME(s):",
            "h0.example.com.\t300\tIN\tCNAME\th1.example.com.",
            "[1] h0.example.com  ->CNAME->  h1.example.com",
            "[2] h1.example.com  ->CNAME->  h2.example.com",
            "Terminal records for h2.example.com:",
            "h2.example.com.\t60\tIN\tAAAA\t2001:db8::1",
            "h2.example.com.\t60\tIN\tA\t192.0.2.1",
            "",
        ]

    def test_terminal_records_list_aaaa_before_a(self) -> None:
        trace = ChainTrace(start="www.example.com", steps=[ChainStep(
            0, "www.example.com", StepOutcome.TERMINAL, records=(
                AnswerRecord("www.example.com", RecordType.A, "192.0.2.1"),
                AnswerRecord("www.example.com", RecordType.AAAA, "2001:db8::1"),
            ),
        )])

        lines = format_trace(trace, 25)

        assert "AAAA" in lines[3]
        assert "\tA\t" in lines[4]

    def test_negative_markers(self) -> None:
        cases = {
            StepOutcome.LOOP_DETECTED: "Loop detected at: x.example.com  (chain already visited)",
            StepOutcome.NO_RECORDS: "No A/AAAA found for x.example.com (but DNS said NOERROR).",
            StepOutcome.NOT_FOUND: "NXDOMAIN for x.example.com",
            StepOutcome.DEPTH_EXCEEDED: "Max depth (7) reached; stopping to avoid infinite loop.",
        }
        for outcome, expected in cases.items():
            trace = ChainTrace(start="x.example.com", steps=[ChainStep(0, "x.example.com", outcome)])

            lines = format_trace(trace, 7)

            assert lines[1] == "Direct CNAME(s): none"
            assert lines[2] == expected
            assert lines[-1] == ""

    def test_query_failed_shows_rcode(self) -> None:
        trace = ChainTrace(start="x.example.com", steps=[ChainStep(
            0, "x.example.com", StepOutcome.QUERY_FAILED,
            status=QueryStatus.OTHER_FAILURE, rcode_text="SERVFAIL",
        )])

        assert format_trace(trace, 25)[2] == "Non-success DNS status for x.example.com: SERVFAIL"


class TestSummaryFormatProperty:
    """Scan summary lines."""

    @given(length=st.integers(min_value=1, max_value=25), print_all=st.booleans())
    @settings(max_examples=50)
    def test_one_line_per_alias_hop(self, length: int, print_all: bool) -> None:
        """
        *For any* chain with aliases, the summary SHALL hold exactly one
        ``source -> target`` line per hop, whatever print_all says.
        """
        lines = format_summary(_alias_chain(length), print_all)

        assert len(lines) == length
        assert lines[0] == "h0.example.com -> h1.example.com"
        assert lines[-1] == f"h{length - 1}.example.com -> h{length}.example.com"

    def test_negative_without_print_all_is_silent(self) -> None:
        trace = ChainTrace(start="nope.example.com", steps=[
            ChainStep(0, "nope.example.com", StepOutcome.NOT_FOUND),
        ])

        assert format_summary(trace, print_all=False) == []
        assert format_summary(trace, print_all=True) == ["nope.example.com -> (no CNAME)"]


class TestJsonlFormat:
    """Machine-readable output."""

    def test_jsonl_carries_outcome_and_final_name(self) -> None:
        lines = format_jsonl(_alias_chain(1))

        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["start"] == "h0.example.com"
        assert data["outcome"] == "terminal"
        assert data["final_name"] == "h1.example.com"
        assert [step["outcome"] for step in data["steps"]] == ["aliased", "terminal"]

    def test_render_filters_negatives_in_every_format(self) -> None:
        trace = ChainTrace(start="nope.example.com", steps=[
            ChainStep(0, "nope.example.com", StepOutcome.NOT_FOUND),
        ])

        for output_format in OutputFormat:
            assert render(trace, output_format, print_all=False) == []
            assert render(trace, output_format, print_all=True) != []
