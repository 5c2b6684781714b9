"""
Command-line interface for the CNAME chain resolver.

This module provides the main CLI entry point with commands for:
- chain: Print the full resolution trace for a name (and optional subdomains)
- scan: Bulk subdomain sweep reporting the aliases found
- self-test: Verify configuration and nameserver reachability
- config: Configuration management

Settings are layered: built-in defaults, then the JSON config file, then
CNAME_CHAIN_* environment variables (a .env file is honored), then
command-line flags.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger, create_logger
from .candidates import COMMON_SUBDOMAINS, CandidateStream
from .chain_walker import ChainWalker
from .config import (
    DEFAULT_CONFIG_PATH,
    SystemConfig,
    apply_env_overrides,
    ensure_valid,
    load_config_from_file,
    save_config_to_file,
    validate_config,
)
from .enums import LogLevel, OutputFormat
from .exceptions import CnameChainError
from .models import ChainTrace
from .name_validator import canonical_name
from .report import format_trace
from .resolver_client import create_resolver_client
from .scan_driver import OutputSink, ScanDriver
from .self_test import run_self_test


# Printed between the apex trace and the subdomain traces
SUBDOMAIN_BANNER = "Scanning subdomains for CNAME chains…"


def build_config(args: argparse.Namespace) -> SystemConfig:
    """
    Assemble the effective configuration for a command.

    Raises:
        ConfigurationError: If a source is unreadable or the result is invalid
    """
    if args.config:
        config = load_config_from_file(Path(args.config))
    elif DEFAULT_CONFIG_PATH.is_file():
        config = load_config_from_file(DEFAULT_CONFIG_PATH)
    else:
        config = SystemConfig()

    env_file = Path(args.env_file) if args.env_file else None
    apply_env_overrides(config, env_file=env_file)

    if args.timeout is not None:
        config.resolver.timeout = args.timeout
    if args.tries is not None:
        config.resolver.tries = args.tries
    if args.nameserver:
        config.resolver.nameservers = list(args.nameserver)
    if args.max_depth is not None:
        config.scan.max_depth = args.max_depth
    if args.verbose:
        config.logging.level = (LogLevel.DEBUG if args.verbose > 1 else LogLevel.INFO).value
    if args.log_format:
        config.logging.output_format = args.log_format
    if args.audit_key:
        config.logging.audit_mode = True
        config.logging.audit_signing_key = args.audit_key
    if args.dry_run:
        config.simulation_mode = True
    if args.zone_file:
        config.zone_file = Path(args.zone_file)

    wordlist = getattr(args, "wordlist", None)
    if wordlist:
        config.scan.wordlist = Path(wordlist)
    if getattr(args, "common", False):
        config.scan.check_common_subdomains = True
    parallelism = getattr(args, "parallelism", None)
    if parallelism is not None:
        config.scan.parallelism = parallelism
    if getattr(args, "all", False):
        config.scan.print_all = True
    output_format = getattr(args, "format", None)
    if output_format:
        config.scan.output_format = output_format

    return ensure_valid(config)


def build_logger(config: SystemConfig) -> AuditLogger:
    """Create the stderr logger described by the logging configuration."""
    return create_logger(
        level=config.logging.level,
        output_format=config.logging.output_format,
        audit_signing_key=config.logging.audit_signing_key if config.logging.audit_mode else None,
    )


def build_walker(config: SystemConfig, logger: Optional[AuditLogger]) -> ChainWalker:
    """
    Create a chain walker over the configured resolver.

    Raises:
        ResolverUnavailableError: If no usable resolver exists
        ConfigurationError: If the simulation zone cannot be loaded
    """
    zone = config.zone_file if config.simulation_mode else None
    resolver = create_resolver_client(config.resolver, simulation_zone=zone, logger=logger)
    return ChainWalker(resolver, max_depth=config.scan.max_depth, logger=logger)


async def _startup_self_test(config: SystemConfig, logger: AuditLogger) -> bool:
    result = await run_self_test(config, print_output=False, logger=logger)
    if not result.success:
        problems = result.config_validation.errors + [
            f"{r.nameserver}: {r.error}" for r in result.failed_nameservers
        ]
        print(f"Error: self-test failed: {'; '.join(problems)}", file=sys.stderr)
    return result.success


async def run_chain(domain: str, config: SystemConfig, self_test: bool = False) -> int:
    """
    Print the full trace for a domain, then for the requested subdomains.

    A name whose walk raises is logged and printed as a failed trace; the
    remaining names are still resolved.

    Args:
        domain: Apex name to resolve
        config: Effective configuration
        self_test: Run the startup self-test first

    Returns:
        Exit code
    """
    logger = build_logger(config)
    base = canonical_name(domain)

    labels = [""]
    if config.scan.check_common_subdomains:
        labels.extend(COMMON_SUBDOMAINS)
    candidates = CandidateStream(base, wordlist=config.scan.wordlist, labels=labels, logger=logger)
    candidates.check()

    if self_test and not await _startup_self_test(config, logger):
        return 1

    walker = build_walker(config, logger)
    sink = OutputSink()
    for index, name in enumerate(candidates):
        if index == 1:
            sink.emit([SUBDOMAIN_BANNER])
        try:
            trace = await walker.resolve_chain(name)
        except Exception as e:
            logger.log_error("ChainCommand", f"Resolution failed for {name}", error=e, name=name)
            trace = ChainTrace.failed(name)
        sink.emit(format_trace(trace, walker.max_depth))
    return 0


async def run_scan(domain: str, config: SystemConfig, self_test: bool = False) -> int:
    """
    Sweep the candidate list for a base domain and report aliases.

    Returns:
        Exit code
    """
    logger = build_logger(config)
    candidates = CandidateStream(domain, wordlist=config.scan.wordlist, logger=logger)
    candidates.check()

    if self_test and not await _startup_self_test(config, logger):
        return 1

    walker = build_walker(config, logger)
    driver = ScanDriver(
        walker=walker,
        sink=OutputSink(),
        parallelism=config.scan.parallelism,
        print_all=config.scan.print_all,
        output_format=OutputFormat(config.scan.output_format),
        logger=logger,
    )
    await driver.scan(candidates)

    if candidates.skipped:
        logger.warn(
            "CandidateStream",
            f"Skipped {candidates.skipped} malformed candidate(s)",
            {"skipped": candidates.skipped},
        )
    return 0


def cmd_chain(args: argparse.Namespace) -> int:
    """Handle the 'chain' command."""
    config = build_config(args)
    return asyncio.run(run_chain(args.domain, config, self_test=args.self_test))


def cmd_scan(args: argparse.Namespace) -> int:
    """Handle the 'scan' command."""
    config = build_config(args)
    return asyncio.run(run_scan(args.domain, config, self_test=args.self_test))


def cmd_self_test(args: argparse.Namespace) -> int:
    """Handle the 'self-test' command."""
    config = build_config(args)
    result = asyncio.run(run_self_test(config, print_output=True, logger=build_logger(config)))
    return 0 if result.success else 1


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        if not config_path.is_file():
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        config = load_config_from_file(config_path)
        print(f"Configuration from: {config_path}")
        print(f"  Timeout: {config.resolver.timeout}s")
        print(f"  Tries: {config.resolver.tries}")
        print(f"  Nameservers: {', '.join(config.resolver.nameservers) or '(system)'}")
        print(f"  Max depth: {config.scan.max_depth}")
        print(f"  Parallelism: {config.scan.parallelism}")
        print(f"  Output format: {config.scan.output_format}")
        print(f"  Wordlist: {config.scan.wordlist or '(builtin)'}")
        print(f"  Simulation mode: {config.simulation_mode}")
        print(f"  Log level: {config.logging.level}")
        print(f"  Audit mode: {config.logging.audit_mode}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        save_config_to_file(SystemConfig(), config_path)
        print(f"Configuration created at: {config_path}")
        return 0

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        errors = validate_config(config)
        if errors:
            for error in errors:
                print(f"  - {error}", file=sys.stderr)
            print(f"Error: configuration at {config_path} is invalid", file=sys.stderr)
            return 1
        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def _common_options() -> argparse.ArgumentParser:
    """Options shared by every command that resolves names."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--timeout", "-t",
        type=float,
        help="Per-query timeout in seconds (default: 2)",
    )
    common.add_argument(
        "--tries", "-r",
        type=int,
        help="Attempts per query; only timeouts are retried (default: 1)",
    )
    common.add_argument(
        "--nameserver",
        action="append",
        metavar="ADDR",
        help="Nameserver to query (repeatable; default: system resolver)",
    )
    common.add_argument(
        "--max-depth",
        type=int,
        help="Maximum CNAME hops followed per name (default: 25)",
    )
    common.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    common.add_argument(
        "--env-file",
        help="Path to a .env file with CNAME_CHAIN_* overrides",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulation mode - answer from --zone-file, no network requests",
    )
    common.add_argument(
        "--zone-file",
        help="JSON zone used in simulation mode",
    )
    common.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for per-query debug output)",
    )
    common.add_argument(
        "--log-format",
        choices=["text", "json", "both"],
        help="Log output format (default: text)",
    )
    common.add_argument(
        "--audit-key",
        help="Sign every log entry with HMAC-SHA256 using this key",
    )
    return common


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cname-chain",
        description="Follow DNS CNAME chains and sweep subdomains for aliases",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    common = _common_options()
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'chain' command
    chain_parser = subparsers.add_parser(
        "chain",
        parents=[common],
        help="Print the CNAME chain of a domain",
    )
    chain_parser.add_argument(
        "domain",
        help="Domain to resolve (e.g., example.com)",
    )
    chain_parser.add_argument(
        "--common", "-s",
        action="store_true",
        help="Also resolve a builtin list of common subdomains",
    )
    chain_parser.add_argument(
        "--wordlist", "-w",
        help="Also resolve subdomains listed in this file",
    )
    chain_parser.add_argument(
        "--self-test",
        action="store_true",
        help="Run the self-test before resolving",
    )
    chain_parser.set_defaults(func=cmd_chain)

    # 'scan' command
    scan_parser = subparsers.add_parser(
        "scan",
        parents=[common],
        help="Sweep subdomains of a domain for CNAME aliases",
    )
    scan_parser.add_argument(
        "domain",
        help="Base domain to scan",
    )
    scan_parser.add_argument(
        "--wordlist", "-w",
        help="Candidate file, one label or FQDN per line (default: builtin list)",
    )
    scan_parser.add_argument(
        "--parallelism", "-P",
        type=int,
        help="Number of concurrent workers (default: 1)",
    )
    scan_parser.add_argument(
        "--all", "-a",
        action="store_true",
        help="Also print candidates without a CNAME",
    )
    scan_parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        help="Output format (default: summary)",
    )
    scan_parser.add_argument(
        "--self-test",
        action="store_true",
        help="Run the self-test before scanning",
    )
    scan_parser.set_defaults(func=cmd_scan)

    # 'self-test' command
    self_test_parser = subparsers.add_parser(
        "self-test",
        parents=[common],
        help="Verify configuration and nameserver reachability",
    )
    self_test_parser.set_defaults(func=cmd_self_test)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except CnameChainError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
