"""
CNAME Chain - DNS alias chain walker and bulk subdomain scanner.

This package follows CNAME indirection from a starting name to its terminal
A/AAAA records (or to an error condition), and sweeps large candidate lists
with bounded concurrency to find which subdomains exist and what they alias to.
"""

__version__ = "0.1.0"
__author__ = "CNAME Chain Team"

from cname_chain.exceptions import (
    CnameChainError,
    ValidationError,
    ConfigurationError,
    CandidateSourceError,
    ResolverUnavailableError,
    QueryError,
)
from cname_chain.enums import (
    LogLevel,
    NameValidationErrorCode,
    OutputFormat,
    QueryStatus,
    RecordType,
    StepOutcome,
)
from cname_chain.name_validator import (
    NameValidator,
    NameValidationResult,
    NameValidationError,
    canonical_name,
)
from cname_chain.config import (
    RetryConfig,
    ResolverConfig,
    ScanConfig,
    LoggingConfig,
    SystemConfig,
    load_config_from_file,
    save_config_to_file,
    apply_env_overrides,
)
from cname_chain.models import (
    AnswerRecord,
    QueryResult,
    ChainStep,
    ChainTrace,
    ScanRequest,
    ScanResult,
    ScanStats,
)
from cname_chain.retry_manager import RetryManager
from cname_chain.audit_logger import AuditLogger, LogEntry, create_logger
from cname_chain.resolver_client import (
    ResolverClient,
    DnsResolverClient,
    SimulatedResolverClient,
    create_resolver_client,
)
from cname_chain.candidates import CandidateStream, COMMON_SUBDOMAINS, SCAN_LABELS
from cname_chain.chain_walker import ChainWalker
from cname_chain.report import format_jsonl, format_summary, format_trace
from cname_chain.scan_driver import OutputSink, ScanDriver
from cname_chain.self_test import (
    SelfTest,
    SelfTestResult,
    NameserverTestResult,
    ConfigValidationResult,
    run_self_test,
)
from cname_chain.cli import main as cli_main, create_parser

__all__ = [
    "__version__",
    # Exceptions
    "CnameChainError",
    "ValidationError",
    "ConfigurationError",
    "CandidateSourceError",
    "ResolverUnavailableError",
    "QueryError",
    # Enums
    "LogLevel",
    "NameValidationErrorCode",
    "OutputFormat",
    "QueryStatus",
    "RecordType",
    "StepOutcome",
    # Name Validator
    "NameValidator",
    "NameValidationResult",
    "NameValidationError",
    "canonical_name",
    # Config
    "RetryConfig",
    "ResolverConfig",
    "ScanConfig",
    "LoggingConfig",
    "SystemConfig",
    "load_config_from_file",
    "save_config_to_file",
    "apply_env_overrides",
    # Models
    "AnswerRecord",
    "QueryResult",
    "ChainStep",
    "ChainTrace",
    "ScanRequest",
    "ScanResult",
    "ScanStats",
    # Retry Manager
    "RetryManager",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    "create_logger",
    # Resolver Clients
    "ResolverClient",
    "DnsResolverClient",
    "SimulatedResolverClient",
    "create_resolver_client",
    # Candidates
    "CandidateStream",
    "COMMON_SUBDOMAINS",
    "SCAN_LABELS",
    # Chain Walker
    "ChainWalker",
    # Report
    "format_trace",
    "format_summary",
    "format_jsonl",
    # Scan Driver
    "OutputSink",
    "ScanDriver",
    # Self-Test
    "SelfTest",
    "SelfTestResult",
    "NameserverTestResult",
    "ConfigValidationResult",
    "run_self_test",
    # CLI
    "cli_main",
    "create_parser",
]
