"""Command-line interface for decoding Counterparty transactions.

Each subcommand prints the decoded message(s) as JSON and exits with status 1
when nothing was found, so the tool composes with shell pipelines.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Sequence

from .addresses import NetworkParams
from .config import ConfigurationError, load_network_params
from .decoder import parse_transaction
from .envelope import parse_reveal_tx
from .op_return import parse_op_return

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid."""


def _parse_hex(raw: str, *, what: str) -> bytes:
    cleaned = raw.strip()
    if cleaned.lower().startswith("0x"):
        cleaned = cleaned[2:]
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise CLIError(f"invalid hex for {what}: {raw}") from exc


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    return str(value)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=_json_default))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="counterparty-decode", description="Decode Counterparty messages from Bitcoin data"
    )
    parser.add_argument(
        "--network",
        default=None,
        help="Network whose address format to use (mainnet, testnet, regtest or a configured name)",
    )
    parser.add_argument("--config", default=None, help="Path to a YAML config file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    op_return_parser = subparsers.add_parser(
        "op-return", help="decode an OP_RETURN output script"
    )
    op_return_parser.add_argument("--script", required=True, help="Output script hex (starting 6a)")
    op_return_parser.add_argument(
        "--txid", required=True, help="Txid of the transaction's first input (hex)"
    )

    reveal_parser = subparsers.add_parser(
        "reveal", help="decode the witness envelope of a Taproot reveal transaction"
    )
    reveal_parser.add_argument("--tx", required=True, help="Raw transaction hex")

    tx_parser = subparsers.add_parser(
        "tx", help="decode every OP_RETURN output and envelope of a raw transaction"
    )
    tx_parser.add_argument("--tx", required=True, help="Raw transaction hex")
    return parser


def cmd_op_return(args: argparse.Namespace, network: NetworkParams) -> int:
    script = _parse_hex(args.script, what="--script")
    txid = _parse_hex(args.txid, what="--txid").hex()
    message = parse_op_return(script, txid, network)
    if message is None:
        logger.info("No Counterparty message in OP_RETURN script")
        return 1
    _print_json(message.to_dict())
    return 0


def cmd_reveal(args: argparse.Namespace, network: NetworkParams) -> int:
    raw = _parse_hex(args.tx, what="--tx")
    message = parse_reveal_tx(raw.hex(), network)
    if message is None:
        logger.info("No Counterparty envelope in transaction")
        return 1
    _print_json(message.to_dict())
    return 0


def cmd_tx(args: argparse.Namespace, network: NetworkParams) -> int:
    raw = _parse_hex(args.tx, what="--tx")
    messages = parse_transaction(raw.hex(), network)
    if not messages:
        logger.info("No Counterparty messages in transaction")
        return 1
    _print_json([message.to_dict() for message in messages])
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        network = load_network_params(network=args.network, config_path=args.config)
        if args.command == "op-return":
            return cmd_op_return(args, network)
        if args.command == "reveal":
            return cmd_reveal(args, network)
        if args.command == "tx":
            return cmd_tx(args, network)
        raise CLIError(f"Unknown command: {args.command}")  # pragma: no cover - argparse enforces choices
    except (CLIError, ConfigurationError) as exc:
        parser.exit(1, f"error: {exc}\n")
    return 1  # pragma: no cover


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
