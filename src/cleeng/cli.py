"""
Command-line interface for the Cleeng client.

Provides commands for calling the Cleeng API from a shell.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from cleeng import __version__
from cleeng.client import CleengApi
from cleeng.config import CleengConfig, set_config
from cleeng.core.errors import CleengError
from cleeng.transport.interface import Transport


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cleeng",
        description="Command-line client for the Cleeng JSON-RPC API",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--endpoint",
        help="Custom JSON-RPC endpoint URL",
    )
    parser.add_argument(
        "--sandbox",
        action="store_true",
        default=None,
        help="Use the Cleeng sandbox platform",
    )
    parser.add_argument(
        "--publisher-token",
        help="Publisher's token",
    )
    parser.add_argument(
        "--distributor-token",
        help="Distributor's token",
    )
    parser.add_argument(
        "--customer-token",
        help="Customer's access token",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: CLEENG_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Call command
    call_parser = subparsers.add_parser("call", help="Call a single API method")
    call_parser.add_argument(
        "method",
        help="JSON-RPC method name, e.g. getSingleOffer",
    )
    call_parser.add_argument(
        "--params",
        default="{}",
        help="Method parameters as a JSON object (default: {})",
    )

    # Batch command
    batch_parser = subparsers.add_parser(
        "batch",
        help="Send several calls from a JSON file in one request",
    )
    batch_parser.add_argument(
        "file",
        type=Path,
        help='JSON file with a list of {"method": ..., "params": {...}} objects',
    )

    # Access command
    access_parser = subparsers.add_parser(
        "access",
        help="Check whether the customer has access to an offer",
    )
    access_parser.add_argument(
        "offer_id",
        help="Offer ID",
    )
    access_parser.add_argument(
        "--ip",
        default="",
        help="Customer's IP address",
    )

    return parser


def build_config(args: argparse.Namespace) -> CleengConfig:
    """Create configuration from command-line overrides."""
    overrides = {
        "endpoint": args.endpoint,
        "sandbox": args.sandbox,
        "publisher_token": args.publisher_token,
        "distributor_token": args.distributor_token,
        "customer_token": args.customer_token,
        "log_level": args.log_level,
        "log_json": args.log_json,
    }
    return CleengConfig(**{k: v for k, v in overrides.items() if v is not None})


def _load_json(text: str, what: str):
    try:
        return json.loads(text)
    except ValueError as e:
        raise CleengError(f"Invalid JSON in {what}: {e}") from e


def run_call(api: CleengApi, args: argparse.Namespace) -> object:
    """Call one method and return its populated result."""
    params = _load_json(args.params, "--params")
    return api.call(args.method, params).to_dict()


def run_batch(api: CleengApi, args: argparse.Namespace) -> object:
    """Send every call listed in a file as one batch."""
    calls = _load_json(args.file.read_text(encoding="utf-8"), str(args.file))
    if not isinstance(calls, list):
        raise CleengError(f"{args.file} must contain a JSON list of calls")
    for index, item in enumerate(calls):
        if not isinstance(item, dict) or "method" not in item:
            raise CleengError(
                f"Call #{index} in {args.file} must be an object with a 'method' key"
            )

    with api.batch():
        entities = [api.call(item["method"], item.get("params")) for item in calls]

    return [entity.to_dict() for entity in entities]


def run_access(api: CleengApi, args: argparse.Namespace) -> object:
    """Check access status for an offer."""
    return api.get_access_status(args.offer_id, args.ip).to_dict()


COMMANDS = {
    "call": run_call,
    "batch": run_batch,
    "access": run_access,
}


def main(argv: Optional[List[str]] = None, transport: Optional[Transport] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    config = build_config(args)
    set_config(config)

    setup_logging(config.log_level, config.log_json)
    logger = structlog.get_logger(__name__)

    with CleengApi(config, transport=transport) as api:
        try:
            result = COMMANDS[args.command](api, args)
        except (CleengError, KeyError, OSError) as e:
            logger.error("command_failed", command=args.command, error=str(e))
            print(f"Error: {e}", file=sys.stderr)
            return 1

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
