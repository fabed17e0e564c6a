# whisper_vault/cli.py
"""
WhisperVault command line.

Examples:
    whisper-vault address
    whisper-vault count --user 0x...
    whisper-vault store --message "Hello World"
    whisper-vault store --message "Hello World" --password hunter22
    whisper-vault metadata --user 0x... --index 0
    whisper-vault read --user 0x... --password hunter22
    whisper-vault clear

Connection settings default to WHISPER_* environment variables
(see whisper_vault.config).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Any, List, Optional

from .config import VaultConfig
from .crypto import CodecError, decrypt, encrypt
from .client.deployments import get_contract_address, loader_for
from .vault import VaultContract, VaultError

logger = logging.getLogger("whisper-vault")


# =============================================================================
# Helpers
# =============================================================================

def resolve_address(args: argparse.Namespace, config: VaultConfig) -> Optional[str]:
    """--address if given, otherwise the deployments entry for the chain."""
    if args.address:
        return args.address
    return asyncio.run(get_contract_address(config.chain_id, loader_for(config.deployments)))


def open_contract(address: str, config: VaultConfig, write: bool = False) -> Any:
    """Contract handle. Writes without a private key use the node's first account."""
    contract = VaultContract(
        contract_address=address,
        rpc_url=config.rpc_url,
        private_key=config.private_key,
        chain_id=config.chain_id,
    )
    if write and not config.private_key:
        contract.use_node_account(0)
    return contract


def _format_timestamp(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


# =============================================================================
# Commands
# =============================================================================

def cmd_address(args, config, contract) -> int:
    print(f"WhisperVault address is {args.address}")
    return 0


def cmd_count(args, config, contract) -> int:
    count = contract.get_message_count(args.user)
    print(f"Message count for {args.user}: {count}")
    return 0


def cmd_store(args, config, contract) -> int:
    if args.password:
        payload = encrypt(args.message, args.password)
    else:
        payload = args.message.encode("utf-8")

    print("Storing message...")
    index = contract.store_message(payload)
    count = contract.get_message_count(contract.account_address)
    print(f"Message stored at index {index}! Total messages: {count}")
    return 0


def cmd_clear(args, config, contract) -> int:
    print("Clearing messages...")
    contract.clear_messages()
    print("All messages cleared!")
    return 0


def cmd_metadata(args, config, contract) -> int:
    sender, timestamp, is_response = contract.get_message_metadata(args.user, args.index)
    print(f"Message #{args.index} metadata:")
    print(f"  Sender: {sender}")
    print(f"  Timestamp: {_format_timestamp(timestamp)}")
    print(f"  Is Response: {is_response}")
    return 0


def cmd_read(args, config, contract) -> int:
    messages = contract.get_all_messages(args.user)
    if not messages:
        print(f"No messages for {args.user}")
        return 0

    for index, msg in enumerate(messages):
        try:
            text = decrypt(msg.encrypted_content, args.password)
        except CodecError:
            text = "[Decryption failed]"
        role = "response" if msg.is_response else "user"
        print(f"[{index}] {_format_timestamp(msg.timestamp)} {role} {msg.sender}: {text}")
    return 0


COMMANDS = {
    "address": cmd_address,
    "count": cmd_count,
    "store": cmd_store,
    "clear": cmd_clear,
    "metadata": cmd_metadata,
    "read": cmd_read,
}

WRITE_COMMANDS = {"store", "clear"}


# =============================================================================
# Parser
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whisper-vault",
        description="Interact with a WhisperVault deployment",
    )
    parser.add_argument("--address", help="WhisperVault contract address (skips deployments lookup)")
    parser.add_argument("--deployments", help="Path or URL of deployments.json")
    parser.add_argument("--rpc-url", help="RPC endpoint")
    parser.add_argument("--private-key", help="Signing key for writes")
    parser.add_argument("--chain-id", type=int, help="Chain ID")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("address", help="Print the WhisperVault address")

    p = sub.add_parser("count", help="Message count for a user")
    p.add_argument("--user", required=True)

    p = sub.add_parser("store", help="Store a message")
    p.add_argument("--message", required=True)
    p.add_argument("--password", help="Encrypt with this password before storing")

    sub.add_parser("clear", help="Clear the caller's messages")

    p = sub.add_parser("metadata", help="Metadata of one message")
    p.add_argument("--user", required=True)
    p.add_argument("--index", type=int, required=True)

    p = sub.add_parser("read", help="Decrypt and print a user's messages")
    p.add_argument("--user", required=True)
    p.add_argument("--password", required=True)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config = VaultConfig.from_env()
    if args.deployments:
        config.deployments = args.deployments
    if args.rpc_url:
        config.rpc_url = args.rpc_url
    if args.private_key:
        config.private_key = args.private_key
    if args.chain_id is not None:
        config.chain_id = args.chain_id

    address = resolve_address(args, config)
    if not address:
        print(f"No WhisperVault deployment for chain {config.chain_id}", file=sys.stderr)
        return 1
    args.address = address

    try:
        if args.command == "address":
            contract = None
        else:
            contract = open_contract(
                address, config, write=args.command in WRITE_COMMANDS
            )
        return COMMANDS[args.command](args, config, contract)
    except VaultError as e:
        logger.error(f"[WhisperVault] {args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
