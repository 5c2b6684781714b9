"""
Exception classes for the CNAME chain resolver.

All exceptions inherit from CnameChainError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class CnameChainError(Exception):
    """Base exception for all cname-chain errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(CnameChainError):
    """Raised when a DNS name cannot be canonicalized."""

    pass


class ConfigurationError(CnameChainError):
    """Raised when configuration values are missing or out of range."""

    pass


class CandidateSourceError(CnameChainError):
    """Raised when the candidate wordlist cannot be read."""

    pass


class ResolverUnavailableError(CnameChainError):
    """Raised when no usable DNS resolver configuration exists."""

    pass


class QueryError(CnameChainError):
    """Raised when a query fails in a way no resolver status describes."""

    pass
