"""
Configuration dataclasses for the CNAME chain resolver.

This module defines the configuration structures used throughout the system
(resolver, retry, scan and logging settings) together with loading from a
JSON file, environment overrides read through python-dotenv, and validation.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .enums import LogLevel, OutputFormat
from .exceptions import ConfigurationError


DEFAULT_CONFIG_PATH = Path.home() / ".cname_chain" / "config.json"

# Hard cap on CNAME hops followed for a single name
DEFAULT_MAX_DEPTH = 25

ENV_PREFIX = "CNAME_CHAIN_"


@dataclass
class RetryConfig:
    """Retry behavior for a single DNS query."""

    max_retries: int = 0
    base_delay_seconds: float = 0.0
    max_delay_seconds: float = 5.0
    retryable_statuses: list[str] = field(default_factory=lambda: ["timeout"])

    @classmethod
    def from_tries(cls, tries: int) -> "RetryConfig":
        """Build a retry policy from a dig-style total attempt count."""
        return cls(max_retries=max(0, tries - 1))


@dataclass
class ResolverConfig:
    """DNS resolver client configuration."""

    timeout: float = 2.0
    tries: int = 1
    nameservers: list[str] = field(default_factory=list)
    port: int = 53


@dataclass
class ScanConfig:
    """Bulk scan and chain walking configuration."""

    parallelism: int = 1
    print_all: bool = False
    output_format: str = OutputFormat.SUMMARY.value
    wordlist: Optional[Path] = None
    check_common_subdomains: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH


@dataclass
class LoggingConfig:
    """Logging and audit configuration."""

    level: str = LogLevel.WARN.value
    output_format: str = "text"  # 'json', 'text', 'both'
    audit_mode: bool = False
    audit_signing_key: Optional[str] = None


@dataclass
class SystemConfig:
    """Main configuration combining all sub-configurations."""

    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    simulation_mode: bool = False
    zone_file: Optional[Path] = None

    @property
    def retry(self) -> RetryConfig:
        """Retry policy derived from the resolver's try count."""
        return RetryConfig.from_tries(self.resolver.tries)


def validate_config(config: SystemConfig) -> list[str]:
    """
    Validate a configuration.

    Args:
        config: Configuration to check

    Returns:
        List of error messages (empty when the configuration is valid)
    """
    errors: list[str] = []

    if config.resolver.timeout <= 0:
        errors.append(f"timeout must be > 0, got {config.resolver.timeout}")
    if config.resolver.tries < 1:
        errors.append(f"tries must be >= 1, got {config.resolver.tries}")
    if not 0 < config.resolver.port < 65536:
        errors.append(f"port out of range: {config.resolver.port}")
    if config.scan.parallelism < 1:
        errors.append(f"parallelism must be >= 1, got {config.scan.parallelism}")
    if config.scan.max_depth < 1:
        errors.append(f"max_depth must be >= 1, got {config.scan.max_depth}")

    valid_formats = {fmt.value for fmt in OutputFormat}
    if config.scan.output_format not in valid_formats:
        errors.append(f"Unknown output format: {config.scan.output_format}")

    valid_levels = {level.value for level in LogLevel}
    if config.logging.level not in valid_levels:
        errors.append(f"Unknown log level: {config.logging.level}")
    if config.logging.output_format not in ("json", "text", "both"):
        errors.append(f"Unknown log format: {config.logging.output_format}")
    if config.logging.audit_mode and not config.logging.audit_signing_key:
        errors.append("Audit mode enabled but no signing key configured")

    if config.simulation_mode and config.zone_file is None:
        errors.append("Simulation mode requires a zone file")

    return errors


def ensure_valid(config: SystemConfig) -> SystemConfig:
    """Raise ConfigurationError if the configuration is invalid."""
    errors = validate_config(config)
    if errors:
        raise ConfigurationError(
            code="invalid_config",
            message="; ".join(errors),
            details={"errors": errors},
        )
    return config


def config_from_dict(data: dict) -> SystemConfig:
    """
    Build a SystemConfig from a parsed JSON document.

    Missing sections and keys fall back to defaults.
    """
    resolver_data = data.get("resolver", {})
    resolver = ResolverConfig(
        timeout=float(resolver_data.get("timeout", 2.0)),
        tries=int(resolver_data.get("tries", 1)),
        nameservers=list(resolver_data.get("nameservers", [])),
        port=int(resolver_data.get("port", 53)),
    )

    scan_data = data.get("scan", {})
    wordlist = scan_data.get("wordlist")
    scan = ScanConfig(
        parallelism=int(scan_data.get("parallelism", 1)),
        print_all=bool(scan_data.get("print_all", False)),
        output_format=scan_data.get("output_format", OutputFormat.SUMMARY.value),
        wordlist=Path(wordlist) if wordlist else None,
        check_common_subdomains=bool(scan_data.get("check_common_subdomains", False)),
        max_depth=int(scan_data.get("max_depth", DEFAULT_MAX_DEPTH)),
    )

    logging_data = data.get("logging", {})
    logging_config = LoggingConfig(
        level=logging_data.get("level", LogLevel.WARN.value),
        output_format=logging_data.get("output_format", "text"),
        audit_mode=bool(logging_data.get("audit_mode", False)),
        audit_signing_key=logging_data.get("audit_signing_key"),
    )

    zone_file = data.get("zone_file")
    return SystemConfig(
        resolver=resolver,
        scan=scan,
        logging=logging_config,
        simulation_mode=bool(data.get("simulation_mode", False)),
        zone_file=Path(zone_file) if zone_file else None,
    )


def config_to_dict(config: SystemConfig) -> dict:
    """Serialize a SystemConfig into a JSON-compatible dict."""
    return {
        "resolver": {
            "timeout": config.resolver.timeout,
            "tries": config.resolver.tries,
            "nameservers": list(config.resolver.nameservers),
            "port": config.resolver.port,
        },
        "scan": {
            "parallelism": config.scan.parallelism,
            "print_all": config.scan.print_all,
            "output_format": config.scan.output_format,
            "wordlist": str(config.scan.wordlist) if config.scan.wordlist else None,
            "check_common_subdomains": config.scan.check_common_subdomains,
            "max_depth": config.scan.max_depth,
        },
        "logging": {
            "level": config.logging.level,
            "output_format": config.logging.output_format,
            "audit_mode": config.logging.audit_mode,
            "audit_signing_key": config.logging.audit_signing_key,
        },
        "simulation_mode": config.simulation_mode,
        "zone_file": str(config.zone_file) if config.zone_file else None,
    }


def load_config_from_file(config_path: Path) -> SystemConfig:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        SystemConfig parsed from the file

    Raises:
        ConfigurationError: If the file is missing, unreadable or malformed
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            code="config_not_found",
            message=f"Configuration file not found: {config_path}",
            details={"path": str(config_path)},
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            code="config_unreadable",
            message=f"Could not read configuration from {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            code="config_malformed",
            message=f"Configuration root must be an object: {config_path}",
            details={"path": str(config_path)},
        )

    try:
        return config_from_dict(data)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            code="config_malformed",
            message=f"Invalid configuration value in {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e


def save_config_to_file(config: SystemConfig, config_path: Path) -> None:
    """
    Save configuration to a JSON file, creating parent directories.

    Raises:
        ConfigurationError: If the file cannot be written
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(config_to_dict(config), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ConfigurationError(
            code="config_unwritable",
            message=f"Could not write configuration to {config_path}: {e}",
            details={"path": str(config_path)},
        ) from e


def apply_env_overrides(
    config: SystemConfig,
    env_file: Optional[Path] = None,
    environ: Optional[dict] = None,
) -> SystemConfig:
    """
    Apply CNAME_CHAIN_* environment variables on top of a configuration.

    A .env file (or the one given) is loaded first; variables already set in
    the process environment win over the file.

    Args:
        config: Configuration to update in place
        env_file: Optional explicit .env path
        environ: Mapping to read instead of os.environ (for tests)

    Returns:
        The updated configuration
    """
    if environ is None:
        load_dotenv(dotenv_path=env_file)
        environ = dict(os.environ)

    def _get(name: str) -> Optional[str]:
        value = environ.get(ENV_PREFIX + name)
        if value is None or not value.strip():
            return None
        return value.strip()

    timeout = _get("TIMEOUT")
    tries = _get("TRIES")
    nameservers = _get("NAMESERVERS")
    parallelism = _get("PARALLELISM")
    log_level = _get("LOG_LEVEL")

    try:
        if timeout is not None:
            config.resolver.timeout = float(timeout)
        if tries is not None:
            config.resolver.tries = int(tries)
        if parallelism is not None:
            config.scan.parallelism = int(parallelism)
    except ValueError as e:
        raise ConfigurationError(
            code="invalid_env",
            message=f"Invalid environment override: {e}",
        ) from e

    if nameservers is not None:
        config.resolver.nameservers = [
            ns for chunk in nameservers.replace(";", ",").split(",")
            for ns in chunk.split() if ns
        ]
    if log_level is not None:
        config.logging.level = log_level.lower()

    return config
