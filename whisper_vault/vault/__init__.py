# whisper_vault/vault/__init__.py
"""
WhisperVault Message Store Layer

Per-user, append-only store of encrypted message records.

Components:
    MessageVault: In-memory vault (contract semantics, no chain)
    VaultSession: MessageVault bound to one caller
    VaultContract: web3 interface to a deployed WhisperVault

Usage:
    from whisper_vault.vault import MessageVault, VaultContract

    # Local
    session = MessageVault().connect("0x...")
    session.store_message(payload)

    # On-chain
    contract = VaultContract("0x...", rpc_url="http://127.0.0.1:8545",
                             private_key="0x...")
    contract.store_message(payload)
"""

from .types import (
    MAX_MESSAGE_SIZE,
    ZERO_ADDRESS,
    REVERT_EMPTY_MESSAGE,
    REVERT_MESSAGE_TOO_LARGE,
    REVERT_INDEX_OUT_OF_BOUNDS,
    StoredMessage,
    VaultEvent,
    MessageStored,
    MessagesCleared,
    DecryptionRequested,
    VaultError,
    VaultRevertError,
    EmptyMessageError,
    MessageTooLargeError,
    IndexOutOfBoundsError,
    ContractUnavailableError,
    TransactionFailedError,
    SignerRequiredError,
    Web3NotAvailableError,
    revert_error_from_reason,
)

from .store import (
    MessageVault,
    VaultSession,
)

from .contract import (
    VaultContract,
    CONTRACT_ABI,
    WEB3_AVAILABLE,
)

__all__ = [
    # Types
    "MAX_MESSAGE_SIZE",
    "ZERO_ADDRESS",
    "REVERT_EMPTY_MESSAGE",
    "REVERT_MESSAGE_TOO_LARGE",
    "REVERT_INDEX_OUT_OF_BOUNDS",
    "StoredMessage",
    "VaultEvent",
    "MessageStored",
    "MessagesCleared",
    "DecryptionRequested",
    # Errors
    "VaultError",
    "VaultRevertError",
    "EmptyMessageError",
    "MessageTooLargeError",
    "IndexOutOfBoundsError",
    "ContractUnavailableError",
    "TransactionFailedError",
    "SignerRequiredError",
    "Web3NotAvailableError",
    "revert_error_from_reason",
    # Store
    "MessageVault",
    "VaultSession",
    # Contract
    "VaultContract",
    "CONTRACT_ABI",
    "WEB3_AVAILABLE",
]
