"""
DNS name validation and canonicalization module.

Every name that enters the resolver (start names, wordlist candidates, CNAME
targets) is brought into one canonical form: lowercase, IDNA A-labels for
international names, and no trailing root dot. Equality and loop detection
rely on this form.
"""

import re
from dataclasses import dataclass
from typing import Optional

import idna

from cname_chain.enums import NameValidationErrorCode
from cname_chain.exceptions import ValidationError


# Forbidden characters in DNS names (control chars, whitespace, special symbols).
# Underscore stays allowed for service labels such as _sip._tls.
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'           # Control characters
    r'\s'                        # Whitespace
    r'!@#$%^&*()+=\[\]{}|\\:;"\'<>,?/`~]'  # Special symbols not allowed
)

MAX_NAME_LENGTH = 253
MAX_LABEL_LENGTH = 63


@dataclass
class NameValidationError:
    """Structured error information for name validation failures."""

    code: NameValidationErrorCode
    message: str
    details: dict


@dataclass
class NameValidationResult:
    """Result of name validation operation."""

    valid: bool
    canonical_name: Optional[str]
    error: Optional[NameValidationError]


class NameValidator:
    """
    Validates and canonicalizes DNS names.

    Handles:
    - Conversion to lowercase
    - IDNA encoding for international characters
    - Removal of the trailing root terminator
    - Rejection of forbidden characters, empty labels and oversize names
    """

    def validate(self, raw_name: str) -> NameValidationResult:
        """
        Validate and canonicalize a name.

        Args:
            raw_name: The raw name string

        Returns:
            NameValidationResult with the canonical form or an error
        """
        try:
            canonical = self.canonicalize(raw_name)
        except ValidationError as e:
            return NameValidationResult(
                valid=False,
                canonical_name=None,
                error=NameValidationError(
                    code=NameValidationErrorCode(e.code),
                    message=e.message,
                    details=e.details,
                ),
            )

        return NameValidationResult(valid=True, canonical_name=canonical, error=None)

    def canonicalize(self, raw_name: str) -> str:
        """
        Convert a name to canonical form.

        Raises:
            ValidationError: If the name cannot be canonicalized
        """
        if raw_name is None or not raw_name.strip():
            raise ValidationError(
                code=NameValidationErrorCode.EMPTY_INPUT.value,
                message="Name input is empty",
                details={"raw_input": raw_name},
            )

        name = raw_name.strip()

        if FORBIDDEN_CHARS_PATTERN.search(name):
            raise ValidationError(
                code=NameValidationErrorCode.FORBIDDEN_CHARS.value,
                message="Name contains forbidden characters",
                details={
                    "raw_input": raw_name,
                    "forbidden_chars": FORBIDDEN_CHARS_PATTERN.findall(name),
                },
            )

        # A single trailing dot is the root terminator
        if name.endswith("."):
            name = name[:-1]

        name = self._to_ascii(name.lower(), raw_name)

        labels = name.split(".")
        if any(not label for label in labels):
            raise ValidationError(
                code=NameValidationErrorCode.EMPTY_LABEL.value,
                message="Name contains an empty label",
                details={"raw_input": raw_name},
            )

        if len(name) > MAX_NAME_LENGTH or any(len(label) > MAX_LABEL_LENGTH for label in labels):
            raise ValidationError(
                code=NameValidationErrorCode.TOO_LONG.value,
                message="Name or label exceeds the DNS length limit",
                details={"raw_input": raw_name, "length": len(name)},
            )

        return name

    def _to_ascii(self, name: str, raw_name: str) -> str:
        """IDNA-encode each non-ASCII label, leaving ASCII labels untouched."""
        if all(ord(c) < 128 for c in name):
            return name

        labels = []
        for label in name.split("."):
            if all(ord(c) < 128 for c in label):
                labels.append(label)
                continue
            try:
                labels.append(idna.encode(label, uts46=True).decode("ascii"))
            except idna.IDNAError as e:
                raise ValidationError(
                    code=NameValidationErrorCode.IDNA_ERROR.value,
                    message=f"IDNA encoding failed: {e}",
                    details={"raw_input": raw_name, "idna_error": str(e)},
                )
        return ".".join(labels)


_default_validator = NameValidator()


def canonical_name(raw_name: str) -> str:
    """Canonicalize a name with the default validator (raises ValidationError)."""
    return _default_validator.canonicalize(raw_name)


def strip_root(name: str) -> str:
    """Drop the trailing root dot of a presentation-format name."""
    return name[:-1] if name.endswith(".") else name
