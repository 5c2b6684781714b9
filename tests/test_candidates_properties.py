"""
Property-based tests for candidate streams.

Covers wordlist line parsing, label expansion, lazy iteration, and the
startup check for unreadable wordlists.
"""

import io
import string
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from cname_chain.audit_logger import AuditLogger
from cname_chain.candidates import (
    COMMON_SUBDOMAINS,
    SCAN_LABELS,
    CandidateStream,
    join_label,
    parse_candidate_line,
)
from cname_chain.enums import LogLevel
from cname_chain.exceptions import CandidateSourceError


label_strategy = st.text(alphabet=string.ascii_lowercase + string.digits, min_size=1, max_size=12)


class TestLineParsingProperty:
    """Property-based tests for wordlist line parsing."""

    @given(label=label_strategy, padding=st.sampled_from(["", " ", "\t", "\r", " \r"]))
    @settings(max_examples=100)
    def test_bare_labels_get_the_base_domain(self, label: str, padding: str) -> None:
        """
        *For any* dotless line, the candidate SHALL be the label joined to the
        base domain, regardless of surrounding whitespace or carriage returns.
        """
        assert parse_candidate_line(f"{padding}{label}{padding}\n", "example.com") == (
            f"{label}.example.com"
        )

    @given(labels=st.lists(label_strategy, min_size=2, max_size=4))
    @settings(max_examples=100)
    def test_dotted_lines_pass_through(self, labels: list[str]) -> None:
        """*For any* line containing a dot, the line SHALL be used unchanged."""
        fqdn = ".".join(labels)
        assert parse_candidate_line(f"{fqdn}\r\n", "example.com") == fqdn

    @given(comment=st.text(max_size=20))
    @settings(max_examples=50)
    def test_comments_are_skipped(self, comment: str) -> None:
        """*For any* line starting with '#', no candidate SHALL be produced."""
        assert parse_candidate_line(f"  #{comment}", "example.com") is None

    @pytest.mark.parametrize("line", ["", "\n", "   \r\n", "\t"])
    def test_blank_lines_are_skipped(self, line: str) -> None:
        assert parse_candidate_line(line, "example.com") is None

    def test_empty_label_is_the_apex(self) -> None:
        assert join_label("", "example.com") == "example.com"
        assert join_label("www", "example.com") == "www.example.com"


class TestCandidateStreamProperty:
    """Tests for CandidateStream iteration."""

    def test_builtin_list_when_no_wordlist(self) -> None:
        names = list(CandidateStream("Example.COM."))

        assert names[0] == "example.com"
        assert names == [join_label(label, "example.com") for label in SCAN_LABELS]

    def test_explicit_labels_replace_builtin_list(self) -> None:
        stream = CandidateStream("example.com", labels=["", *COMMON_SUBDOMAINS])
        names = list(stream)

        assert names[0] == "example.com"
        assert "_sip._tls.example.com" in names
        assert len(names) == len(COMMON_SUBDOMAINS) + 1

    @given(lines=st.lists(label_strategy, min_size=0, max_size=30))
    @settings(max_examples=50)
    def test_wordlist_order_and_duplicates_are_preserved(self, lines: list[str], tmp_path_factory) -> None:
        """
        *For any* wordlist, candidates SHALL come out in file order with
        duplicates kept.
        """
        path = tmp_path_factory.mktemp("wordlist") / "words.txt"
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")

        names = list(CandidateStream("example.com", wordlist=path))

        assert names == [f"{line}.example.com" for line in lines]

    def test_stream_is_restartable(self, tmp_path: Path) -> None:
        path = tmp_path / "words.txt"
        path.write_text("www\n# comment\n\napi\nhost.other.org\n", encoding="utf-8")
        stream = CandidateStream("example.com", wordlist=path)

        first = list(stream)
        second = list(stream)

        assert first == ["www.example.com", "api.example.com", "host.other.org"]
        assert first == second

    def test_stream_is_lazy(self, tmp_path: Path) -> None:
        path = tmp_path / "words.txt"
        path.write_text("".join(f"host{i}\n" for i in range(10000)), encoding="utf-8")

        iterator = iter(CandidateStream("example.com", wordlist=path))

        assert next(iterator) == "host0.example.com"
        assert next(iterator) == "host1.example.com"

    def test_labels_come_before_wordlist(self, tmp_path: Path) -> None:
        path = tmp_path / "words.txt"
        path.write_text("mail\n", encoding="utf-8")

        names = list(CandidateStream("example.com", wordlist=path, labels=[""]))

        assert names == ["example.com", "mail.example.com"]

    def test_malformed_candidates_are_skipped_and_logged(self, tmp_path: Path) -> None:
        path = tmp_path / "words.txt"
        path.write_text("www\nbad label\na..b.com\napi\n", encoding="utf-8")
        logger = AuditLogger(level=LogLevel.DEBUG, keep_entries=True, output_stream=io.StringIO())
        stream = CandidateStream("example.com", wordlist=path, logger=logger)

        names = list(stream)

        assert names == ["www.example.com", "api.example.com"]
        assert stream.skipped == 2
        assert [entry.level for entry in logger.entries] == [LogLevel.WARN, LogLevel.WARN]


class TestWordlistCheck:
    """Startup checks for the wordlist source."""

    def test_missing_wordlist_is_fatal(self, tmp_path: Path) -> None:
        stream = CandidateStream("example.com", wordlist=tmp_path / "missing.txt")

        with pytest.raises(CandidateSourceError) as excinfo:
            stream.check()

        assert excinfo.value.code == "wordlist_not_found"

    def test_directory_is_not_a_wordlist(self, tmp_path: Path) -> None:
        with pytest.raises(CandidateSourceError):
            CandidateStream("example.com", wordlist=tmp_path).check()

    def test_no_wordlist_passes_check(self) -> None:
        CandidateStream("example.com").check()

