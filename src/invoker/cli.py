"""Invoker CLI — sign, encode, simulate and submit relay calls.

Usage:
    python -m invoker.cli selectors
    python -m invoker.cli digest --chain-id 1 --invoker 0x... --commit 0x...
    python -m invoker.cli sign --key 0x... --chain-id 1 --invoker 0x... --commit 0x...
    python -m invoker.cli encode --signature 0x... --data 0x... --commit 0x... --to 0x...
    python -m invoker.cli decode 0x...
    python -m invoker.cli simulate --invoker 0x... --signature 0x... --data 0x... --commit 0x... --to 0x...
    python -m invoker.cli submit --signature 0x... --data 0x... --commit 0x... --to 0x...
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from eth_utils import decode_hex

from invoker.codec import RELAY_SELECTOR, RELAY_SIGNATURE, decode_relay, encode_relay
from invoker.config import InvokerConfig
from invoker.crypto.message import auth_digest, auth_message
from invoker.crypto.signer import sign_commit, signer_address
from invoker.engine.dispatcher import Invoker
from invoker.errors import DECLARED_ERRORS, RelayError, decode_revert
from invoker.logging_config import configure_logging
from invoker.models.request import RelayRequest
from invoker.persistence.state_store import StateStore
from invoker.runtime.host import Frame, InMemoryHost


def _hex(value: str) -> bytes:
    return decode_hex(value) if value else b""


def _request_from_args(args: argparse.Namespace) -> RelayRequest:
    return RelayRequest(
        signature=_hex(args.signature),
        data=_hex(args.data),
        commit=_hex(args.commit),
        to=args.to,
    )


def _echo_sender(frame: Frame, data: bytes) -> bytes:
    """Stand-in target for simulations: returns the sender, left-padded."""
    return decode_hex(frame.caller).rjust(32, b"\x00")


def cmd_selectors(args: argparse.Namespace) -> int:
    selectors = {RELAY_SIGNATURE: "0x" + RELAY_SELECTOR.hex()}
    for error in DECLARED_ERRORS:
        selectors[f"{error.__name__}()"] = "0x" + error.selector().hex()
    print(json.dumps(selectors, indent=2))
    return 0


def cmd_digest(args: argparse.Namespace) -> int:
    commit = _hex(args.commit)
    print(json.dumps({
        "message": "0x" + auth_message(args.chain_id, args.invoker, commit).hex(),
        "digest": "0x" + auth_digest(args.chain_id, args.invoker, commit).hex(),
    }, indent=2))
    return 0


def cmd_sign(args: argparse.Namespace) -> int:
    signature = sign_commit(args.key, args.chain_id, args.invoker, _hex(args.commit))
    print(json.dumps({
        "signer": signer_address(args.key),
        "signature": "0x" + signature.hex(),
    }, indent=2))
    return 0


def cmd_encode(args: argparse.Namespace) -> int:
    print("0x" + encode_relay(_request_from_args(args)).hex())
    return 0


def cmd_decode(args: argparse.Namespace) -> int:
    try:
        request = decode_relay(_hex(args.calldata))
    except RelayError as exc:
        print(f"Failed: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    print(json.dumps({
        "signature": "0x" + request.signature.hex(),
        "data": "0x" + request.data.hex(),
        "commit": "0x" + request.commit.hex(),
        "to": request.to,
    }, indent=2))
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    """Run one relay against an in-memory host, persisting used commits."""
    config = InvokerConfig.from_env(args.env_file)
    state_path = args.state or config.state_path
    if state_path:
        state_path.parent.mkdir(parents=True, exist_ok=True)

    host = InMemoryHost(chain_id=args.chain_id, state=StateStore(storage_path=state_path))
    host.deploy(args.invoker, Invoker())
    if args.signer:
        host.register_authority(args.signer)
    request = _request_from_args(args)
    host.deploy(request.to, _echo_sender)

    result = host.execute(args.invoker, encode_relay(request), sender=args.sender)
    error = None if result.success else decode_revert(result.output)
    print(json.dumps({
        "success": result.success,
        "output": "0x" + result.output.hex(),
        "error": error.__name__ if error else None,
    }, indent=2))
    return 0 if result.success else 1


def cmd_submit(args: argparse.Namespace) -> int:
    from invoker.submit import submit_relay

    config = InvokerConfig.from_env(args.env_file)
    try:
        config.require_chain()
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    receipt = submit_relay(
        _request_from_args(args),
        invoker_address=config.invoker_address,
        rpc_url=config.rpc_url,
        private_key=config.private_key,
        chain_id=config.chain_id,
        value=args.value,
        gas=config.gas,
        gas_price_gwei=config.gas_price_gwei,
    )
    print(json.dumps({
        "tx_hash": receipt.tx_hash,
        "block_number": receipt.block_number,
        "status": receipt.status,
        "chain_id": receipt.chain_id,
    }, indent=2))
    return 0 if receipt.succeeded else 1


def _add_request_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--signature", required=True, help="65-byte signature (hex)")
    parser.add_argument("--data", default="", help="Call data for the target (hex)")
    parser.add_argument("--commit", required=True, help="32-byte commit (hex)")
    parser.add_argument("--to", required=True, help="Target address")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="invoker",
        description="Relay invoker — single-use signed call forwarding",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Log level (default: INVOKER_LOG_LEVEL, else INFO)",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit JSON log records")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--env-file", type=Path, default=None, help="Path to a .env file")
    sub = parser.add_subparsers(dest="command")

    # selectors
    sub.add_parser("selectors", help="Show the operation and error selectors")

    # digest
    p_digest = sub.add_parser("digest", help="Show the canonical message and digest")
    p_digest.add_argument("--chain-id", type=int, required=True, help="Chain id")
    p_digest.add_argument("--invoker", required=True, help="Invoker address")
    p_digest.add_argument("--commit", required=True, help="32-byte commit (hex)")

    # sign
    p_sign = sub.add_parser("sign", help="Sign a commit off-band")
    p_sign.add_argument("--key", required=True, help="Signer's private key (hex)")
    p_sign.add_argument("--chain-id", type=int, required=True, help="Chain id")
    p_sign.add_argument("--invoker", required=True, help="Invoker address")
    p_sign.add_argument("--commit", required=True, help="32-byte commit (hex)")

    # encode
    p_encode = sub.add_parser("encode", help="Encode relay call data")
    _add_request_args(p_encode)

    # decode
    p_decode = sub.add_parser("decode", help="Decode relay call data")
    p_decode.add_argument("calldata", help="Call data (hex)")

    # simulate
    p_sim = sub.add_parser("simulate", help="Run a relay on an in-memory host")
    _add_request_args(p_sim)
    p_sim.add_argument("--invoker", required=True, help="Invoker address")
    p_sim.add_argument("--chain-id", type=int, default=1, help="Chain id (default: 1)")
    p_sim.add_argument(
        "--sender", default="0x" + "00" * 19 + "5b",
        help="Submitting account",
    )
    p_sim.add_argument("--signer", help="Only authorize this signer")
    p_sim.add_argument("--state", type=Path, default=None, help="JSONL state file")

    # submit
    p_submit = sub.add_parser("submit", help="Send a relay transaction to a live chain")
    _add_request_args(p_submit)
    p_submit.add_argument("--value", type=int, default=0, help="Wei to forward (default: 0)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = InvokerConfig.from_env(args.env_file)
        configure_logging(
            args.log_level or config.log_level,
            json_format=args.log_json,
            log_file=args.log_file,
        )
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    commands = {
        "selectors": cmd_selectors,
        "digest": cmd_digest,
        "sign": cmd_sign,
        "encode": cmd_encode,
        "decode": cmd_decode,
        "simulate": cmd_simulate,
        "submit": cmd_submit,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
