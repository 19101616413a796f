#!/usr/bin/env python3
"""jwskit command-line tool.

Signs and verifies JWS documents in Compact, General JSON and Flattened JSON
serialization. Keys are JWKs stored as JSON or YAML files.

Usage:
    jwskit sign --key hmac.jwk --alg HS256 --kid k1 payload.txt
    jwskit sign --key rsa.jwk --alg RS256 --format general --detached payload.txt
    jwskit verify --key rsa-public.jwk --alg RS256 signed.jws
    jwskit verify --key hmac.jwk --alg HS256 --payload payload.txt detached.jws
    jwskit inspect signed.json
    jwskit algorithms

Exit Codes:
    0 - Success / signature verified
    1 - Signature verification failed
    2 - Malformed input, key or algorithm error
    3 - Invalid arguments
"""

import argparse
import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from jwskit.config import get_settings
from jwskit.core.algorithms import ALGORITHM_SPECS, default_provider_table
from jwskit.core.compact import JwsCompactConsumer, JwsCompactProducer
from jwskit.core.errors import JOSEError
from jwskit.core.json_serialization import JwsJsonConsumer, JwsJsonProducer
from jwskit.core.keys import jwk_to_key

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VERIFY_FAILED = 1
EXIT_ERROR = 2
EXIT_USAGE = 3


class OutputFormat(str, Enum):
    """JWS serializations."""

    COMPACT = "compact"
    GENERAL = "general"
    FLATTENED = "flattened"

    def __str__(self) -> str:
        return self.value


class CliError(Exception):
    """Bad file or argument."""

    pass


# =============================================================================
# Input helpers
# =============================================================================


def read_bytes(path: str | None) -> bytes:
    """Read a file, or stdin for None / '-'."""
    if path in (None, "-"):
        return sys.stdin.buffer.read()
    file_path = Path(path)
    if not file_path.exists():
        raise CliError(f"File not found: {path}")
    return file_path.read_bytes()


def load_mapping(path: str) -> dict[str, Any]:
    """Load a JSON or YAML object from a file."""
    try:
        data = yaml.safe_load(read_bytes(path))
    except yaml.YAMLError as e:
        raise CliError(f"Invalid YAML/JSON in {path}: {e}")
    if not isinstance(data, dict):
        raise CliError(f"{path} must contain an object")
    return data


def load_key(path: str, index: int = 0) -> Any:
    """Load a JWK, or one key of a JWK Set."""
    data = load_mapping(path)
    if "keys" in data:
        keys = data["keys"]
        if not isinstance(keys, list) or not 0 <= index < len(keys):
            raise CliError(f"No key at index {index} in {path}")
        data = keys[index]
    return jwk_to_key(data)


def parse_document(text: str, detached_payload: bytes | None):
    """Consumer for compact or JSON input."""
    text = text.strip()
    if text.startswith("{"):
        return JwsJsonConsumer(text, detached_payload=detached_payload)
    return JwsCompactConsumer(text, detached_payload=detached_payload)


# =============================================================================
# Commands
# =============================================================================


def cmd_sign(args: argparse.Namespace) -> int:
    """Sign a payload."""
    key = load_key(args.key, args.key_index)
    payload = read_bytes(args.payload)
    protected = load_mapping(args.header) if args.header else {}
    unprotected = load_mapping(args.unprotected) if args.unprotected else None
    if "alg" not in protected and "alg" not in (unprotected or {}):
        # alg leads the protected header
        protected = {"alg": args.alg, **protected}
    if args.kid:
        target = unprotected if unprotected is not None else protected
        target["kid"] = args.kid

    if args.format == OutputFormat.COMPACT:
        if unprotected:
            raise CliError("Compact serialization has no unprotected header")
        producer = JwsCompactProducer(payload, protected)
        producer.sign_with(key, args.alg)
        print(producer.signed_encoded_jws(detached=args.detached))
    else:
        producer = JwsJsonProducer(payload, flattened=args.format == OutputFormat.FLATTENED)
        producer.sign_with(key, args.alg, protected=protected or None, unprotected=unprotected)
        print(producer.signed_document(detached=args.detached))
    return EXIT_OK


def cmd_verify(args: argparse.Namespace) -> int:
    """Verify a JWS with one key."""
    key = load_key(args.key, args.key_index)
    detached_payload = read_bytes(args.payload) if args.payload else None
    consumer = parse_document(read_bytes(args.jws).decode("utf-8"), detached_payload)

    if consumer.verify_signature_with(key, args.alg):
        print("Signature verified")
        return EXIT_OK
    print("Signature verification failed", file=sys.stderr)
    return EXIT_VERIFY_FAILED


def cmd_inspect(args: argparse.Namespace) -> int:
    """Print decoded headers of every signature entry."""
    detached_payload = read_bytes(args.payload) if args.payload else None
    consumer = parse_document(read_bytes(args.jws).decode("utf-8"), detached_payload)

    entries = []
    for index, entry in enumerate(consumer.signature_entries):
        item: dict[str, Any] = {"index": index}
        if entry.is_malformed:
            item["error"] = entry.error
        else:
            item["protected"] = entry.protected.as_dict() if entry.protected else None
            item["header"] = entry.unprotected.as_dict() if entry.unprotected else None
            item["signature_bytes"] = len(entry.signature)
        entries.append(item)

    report = {
        "detached": consumer.is_detached,
        "payload_bytes": len(consumer.payload),
        "signatures": entries,
    }
    print(json.dumps(report, indent=2, ensure_ascii=False))
    return EXIT_OK


def cmd_algorithms(args: argparse.Namespace) -> int:
    """List algorithms enabled by the current settings."""
    for algorithm in default_provider_table():
        spec = ALGORITHM_SPECS[algorithm]
        print(f"{algorithm.value:<8}{spec.family.value:<20}{spec.hash_algorithm.name.upper()}")
    return EXIT_OK


# =============================================================================
# Main Entry Point
# =============================================================================


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="jwskit",
        description="JSON Web Signature tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # HMAC compact JWS
  jwskit sign --key hmac.jwk --alg HS256 --kid k1 payload.txt

  # Detached General JSON JWS
  jwskit sign --key rsa.jwk --alg PS256 --format general --detached payload.txt

  # Verify a detached JWS
  jwskit verify --key hmac.jwk --alg HS256 --payload payload.txt detached.jws
        """,
    )
    parser.add_argument("--log-level", help="Logging level (default: settings.log_level)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # sign command
    sign_parser = subparsers.add_parser("sign", help="Sign a payload")
    sign_parser.add_argument("payload", nargs="?", help="Payload file (default: stdin)")
    sign_parser.add_argument("-k", "--key", required=True, help="JWK or JWK Set file")
    sign_parser.add_argument("--key-index", type=int, default=0, help="Key index in a JWK Set")
    sign_parser.add_argument("-a", "--alg", required=True, help="JWS algorithm")
    sign_parser.add_argument("--kid", help="Key ID header")
    sign_parser.add_argument("--header", help="Protected header parameters file")
    sign_parser.add_argument("--unprotected", help="Unprotected header parameters file (JSON only)")
    sign_parser.add_argument(
        "-f",
        "--format",
        type=OutputFormat,
        choices=list(OutputFormat),
        default=OutputFormat.COMPACT,
        help="Serialization (default: compact)",
    )
    sign_parser.add_argument("--detached", action="store_true", help="Leave the payload out")

    # verify command
    verify_parser = subparsers.add_parser("verify", help="Verify a JWS")
    verify_parser.add_argument("jws", help="JWS file, compact or JSON ('-' for stdin)")
    verify_parser.add_argument("-k", "--key", required=True, help="JWK or JWK Set file")
    verify_parser.add_argument("--key-index", type=int, default=0, help="Key index in a JWK Set")
    verify_parser.add_argument("-a", "--alg", required=True, help="JWS algorithm")
    verify_parser.add_argument("--payload", help="Detached payload file")

    # inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Show decoded headers")
    inspect_parser.add_argument("jws", help="JWS file, compact or JSON ('-' for stdin)")
    inspect_parser.add_argument("--payload", help="Detached payload file")

    # algorithms command
    subparsers.add_parser("algorithms", help="List supported algorithms")

    return parser


COMMANDS = {
    "sign": cmd_sign,
    "verify": cmd_verify,
    "inspect": cmd_inspect,
    "algorithms": cmd_algorithms,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=(args.log_level or get_settings().log_level).upper())

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    try:
        return COMMANDS[args.command](args)
    except CliError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE
    except JOSEError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
