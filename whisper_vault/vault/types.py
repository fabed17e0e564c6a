# whisper_vault/vault/types.py
"""
WhisperVault Types

Records, events, and errors shared by the in-memory vault and the
web3 contract adapter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


# =============================================================================
# Constants
# =============================================================================

MAX_MESSAGE_SIZE = 16 * 1024  # 16 KiB

ZERO_ADDRESS = "0x" + "0" * 40

# Revert reasons (must match WhisperVault.sol)
REVERT_EMPTY_MESSAGE = "Empty message"
REVERT_MESSAGE_TOO_LARGE = "Message too large"
REVERT_INDEX_OUT_OF_BOUNDS = "Message index out of bounds"


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class StoredMessage:
    """
    One stored chat entry.

    Attributes:
        sender: User address, or the vault address for auto-responses
        encrypted_content: Opaque payload (salt || iv || ciphertext)
        timestamp: Unix seconds (block timestamp)
        is_response: True for system auto-responses
    """
    sender: str
    encrypted_content: bytes
    timestamp: int
    is_response: bool

    @property
    def metadata(self) -> Tuple[str, int, bool]:
        return (self.sender, self.timestamp, self.is_response)

    def as_tuple(self) -> Tuple[str, bytes, int, bool]:
        return (self.sender, self.encrypted_content, self.timestamp, self.is_response)

    @classmethod
    def from_contract_tuple(cls, data: Tuple) -> StoredMessage:
        """Create from a getMessage / getAllMessages return tuple."""
        sender, content, timestamp, is_response = data[-4:]
        return cls(
            sender=sender,
            encrypted_content=bytes(content),
            timestamp=int(timestamp),
            is_response=bool(is_response),
        )


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class VaultEvent:
    """Base event."""
    user: str

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class MessageStored(VaultEvent):
    message_index: int
    timestamp: int
    is_response: bool


@dataclass(frozen=True)
class MessagesCleared(VaultEvent):
    pass


@dataclass(frozen=True)
class DecryptionRequested(VaultEvent):
    timestamp: int


# =============================================================================
# Exceptions
# =============================================================================

class VaultError(Exception):
    """Base vault error."""
    pass


class VaultRevertError(VaultError):
    """Call reverted."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class EmptyMessageError(VaultRevertError):
    def __init__(self):
        super().__init__(REVERT_EMPTY_MESSAGE)


class MessageTooLargeError(VaultRevertError):
    def __init__(self, size: Optional[int] = None):
        self.size = size
        super().__init__(REVERT_MESSAGE_TOO_LARGE)


class IndexOutOfBoundsError(VaultRevertError):
    def __init__(self, user: Optional[str] = None, index: Optional[int] = None):
        self.user = user
        self.index = index
        super().__init__(REVERT_INDEX_OUT_OF_BOUNDS)


class ContractUnavailableError(VaultError):
    """No contract code at the address, or the node is unreachable."""
    pass


class TransactionFailedError(VaultError):
    """Transaction mined with a non-success status."""
    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction failed: {tx_hash}")


class SignerRequiredError(VaultError):
    """Write attempted without an account."""
    def __init__(self):
        super().__init__("Private key or unlocked account required for write operations")


class Web3NotAvailableError(VaultError):
    """web3.py not installed."""
    def __init__(self):
        super().__init__("web3.py not available. Install with: pip install web3")


_REVERT_ERRORS = {
    REVERT_EMPTY_MESSAGE: EmptyMessageError,
    REVERT_MESSAGE_TOO_LARGE: MessageTooLargeError,
    REVERT_INDEX_OUT_OF_BOUNDS: IndexOutOfBoundsError,
}


def revert_error_from_reason(reason: str) -> VaultRevertError:
    """Map a revert reason string onto the matching error class."""
    for known, error_cls in _REVERT_ERRORS.items():
        if known in reason:
            return error_cls()
    return VaultRevertError(reason)
