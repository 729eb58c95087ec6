"""
SDC Command Line Utilities

Small subset of the CloudAPI CLI commands. Results and errors are printed
to stdout as JSON; logs go to stderr.

Usage:
    sdc list-machines
    sdc get-machine 5e42cd1e-34bb-402f-8796-bf5a2cae47db
    sdc stop-machine 5e42cd1e-... --account bert --key-id laptop

Configuration comes from SDC_URL, SDC_ACCOUNT, SDC_USER, SDC_KEY_ID and
SDC_KEY (a .env file is loaded first); command line flags override them.
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from sdc_client.api_client import SDCClient
from sdc_client.config import resolve_config
from sdc_client.errors import SDCClientError, SDCError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, quiet: bool = False):
    """Configure logging based on verbosity."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_to_jsonable(item) for item in data]
    return data


def output(data: Any) -> None:
    print(json.dumps(_to_jsonable(data), indent=2))


def output_error(error: SDCClientError) -> None:
    """Print a domain error as-is, anything else as an 'Unknown' error."""
    if isinstance(error, SDCError):
        output(error.to_dict())
    else:
        output(SDCError("Unknown", str(error)).to_dict())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdc",
        description="Joyent SmartDataCenter CloudAPI command line utilities",
    )
    parser.add_argument("--url", help="CloudAPI endpoint (env: SDC_URL)")
    parser.add_argument("--account", help="Account login (env: SDC_ACCOUNT)")
    parser.add_argument("--user", help="Acting RBAC user (env: SDC_USER, default: account)")
    parser.add_argument("--key-id", help="Key name or fingerprint (env: SDC_KEY_ID)")
    parser.add_argument("--key", help="Private key path (env: SDC_KEY, default: ~/.ssh/id_rsa)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only log warnings and errors")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list-machines", help="List machines")
    for name, help_text in (
        ("get-machine", "Show one machine"),
        ("delete-machine", "Delete a stopped machine"),
        ("start-machine", "Start a machine"),
        ("stop-machine", "Stop a machine"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("machine_id", help="Machine UUID")

    return parser


def run_command(client: SDCClient, args: argparse.Namespace) -> Any:
    if args.command == "list-machines":
        return client.list_machines()
    if args.command == "get-machine":
        return client.get_machine(args.machine_id)
    if args.command == "delete-machine":
        client.delete_machine(args.machine_id)
    elif args.command == "start-machine":
        client.start_machine(args.machine_id)
    elif args.command == "stop-machine":
        client.stop_machine(args.machine_id)
    return {"id": args.machine_id, "command": args.command, "ok": True}


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet)

    config = resolve_config(
        url=args.url,
        account=args.account,
        user=args.user,
        key_id=args.key_id,
        key_path=args.key,
    )

    try:
        with SDCClient(config) as client:
            result = run_command(client, args)
    except SDCClientError as e:
        logger.debug(f"{args.command} failed: {e!r}")
        output_error(e)
        return 1

    output(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
