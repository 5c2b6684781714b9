"""
Candidate name streams for bulk scans.

Wordlists may hold millions of entries, so candidates are produced lazily,
one line at a time, and never deduplicated or sorted. Iterating a
``CandidateStream`` again reopens the source and starts from the top.
"""

from pathlib import Path
from typing import Iterable, Iterator, Optional

from .audit_logger import AuditLogger
from .exceptions import CandidateSourceError, ValidationError
from .name_validator import canonical_name


# Builtin list for scans without a wordlist; "" is the apex itself
SCAN_LABELS: tuple[str, ...] = (
    "", "www", "mail", "ftp", "api", "dev", "test", "staging", "cdn", "m",
    "mx", "blog", "shop", "portal", "vpn", "owa", "autodiscover",
)

# Builtin list for chain mode with --common
COMMON_SUBDOMAINS: tuple[str, ...] = (
    "www", "mail", "ftp", "api", "dev", "test", "staging", "m", "mx", "cdn",
    "blog", "shop", "portal", "vpn", "owa", "autodiscover",
    "_sip._tls", "_sipfederationtls._tcp",
)


def join_label(label: str, base_domain: str) -> str:
    """Combine a label with the base domain; the empty label is the apex."""
    return f"{label}.{base_domain}" if label else base_domain


def parse_candidate_line(line: str, base_domain: str) -> Optional[str]:
    """
    Turn one wordlist line into a candidate name.

    Blank lines and ``#`` comments yield None. A line containing a dot is
    taken as a fully qualified name; anything else is a label under
    ``base_domain``. The result is not canonicalized.
    """
    line = line.replace("\r", "").strip()
    if not line or line.startswith("#"):
        return None
    if "." in line:
        return line
    return join_label(line, base_domain)


class CandidateStream:
    """
    Lazy, restartable sequence of candidate names.

    Sources, in order: explicit ``labels`` (joined to the base domain), then
    the ``wordlist`` file. With neither, the builtin scan list is used.
    """

    COMPONENT = "CandidateStream"

    def __init__(
        self,
        base_domain: str,
        wordlist: Optional[Path] = None,
        labels: Optional[Iterable[str]] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        self._base_domain = canonical_name(base_domain)
        self._wordlist = Path(wordlist) if wordlist is not None else None
        self._labels = tuple(labels) if labels is not None else None
        self._logger = logger
        self.skipped = 0

    @property
    def base_domain(self) -> str:
        return self._base_domain

    def check(self) -> None:
        """
        Verify the wordlist can be opened before a scan starts.

        Raises:
            CandidateSourceError: If the wordlist is missing or unreadable
        """
        if self._wordlist is None:
            return
        if not self._wordlist.is_file():
            raise CandidateSourceError(
                code="wordlist_not_found",
                message=f"wordlist '{self._wordlist}' not found",
                details={"path": str(self._wordlist)},
            )
        try:
            with open(self._wordlist, "r", encoding="utf-8", errors="replace"):
                pass
        except OSError as e:
            raise CandidateSourceError(
                code="wordlist_unreadable",
                message=f"wordlist '{self._wordlist}' cannot be read: {e}",
                details={"path": str(self._wordlist)},
            ) from e

    def __iter__(self) -> Iterator[str]:
        labels = self._labels
        if labels is None and self._wordlist is None:
            labels = SCAN_LABELS

        if labels is not None:
            for label in labels:
                name = self._canonical_or_none(join_label(label, self._base_domain), label)
                if name is not None:
                    yield name

        if self._wordlist is not None:
            yield from self._iter_wordlist()

    def _iter_wordlist(self) -> Iterator[str]:
        try:
            with open(self._wordlist, "r", encoding="utf-8", errors="replace") as f:
                for line in f:
                    candidate = parse_candidate_line(line, self._base_domain)
                    if candidate is None:
                        continue
                    name = self._canonical_or_none(candidate, line)
                    if name is not None:
                        yield name
        except OSError as e:
            raise CandidateSourceError(
                code="wordlist_unreadable",
                message=f"wordlist '{self._wordlist}' cannot be read: {e}",
                details={"path": str(self._wordlist)},
            ) from e

    def _canonical_or_none(self, candidate: str, raw: str) -> Optional[str]:
        try:
            return canonical_name(candidate)
        except ValidationError as e:
            self.skipped += 1
            if self._logger is not None:
                self._logger.warn(
                    self.COMPONENT,
                    f"Skipping malformed candidate: {e.message}",
                    {"raw": raw.rstrip("\r\n")},
                )
            return None
