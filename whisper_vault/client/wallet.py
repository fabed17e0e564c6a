# whisper_vault/client/wallet.py
"""
WhisperVault Client: Wallet Adapters

Minimal wallet abstraction: an address, a chain, and personal_sign.

Adapters:
    LocalAccountWallet: Private-key wallet backed by eth_account
    MockWalletAdapter: Fake signatures, for tests
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import to_checksum_address


# =============================================================================
# Types
# =============================================================================

class WalletState(Enum):
    """Wallet connection state."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass
class WalletInfo:
    """Connected wallet information."""
    name: str
    address: str
    chain_id: int


@dataclass
class SignResult:
    """Signature result."""
    signature: bytes
    message: bytes
    address: str

    @property
    def signature_hex(self) -> str:
        return "0x" + self.signature.hex()


# =============================================================================
# Exceptions
# =============================================================================

class WalletAdapterError(Exception):
    """Base wallet adapter error."""
    pass


class NotConnectedError(WalletAdapterError):
    """Wallet not connected."""
    def __init__(self, message: str = "Not connected"):
        super().__init__(message)


class SignatureRejectedError(WalletAdapterError):
    """User rejected the signature request."""
    pass


# =============================================================================
# Abstract Adapter
# =============================================================================

class WalletAdapter(ABC):
    """Abstract wallet adapter."""

    def __init__(self, chain_id: int = 31337):
        self._chain_id = chain_id
        self._state = WalletState.DISCONNECTED
        self._info: Optional[WalletInfo] = None

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    def state(self) -> WalletState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == WalletState.CONNECTED

    @property
    def address(self) -> Optional[str]:
        return self._info.address if self._info else None

    @property
    def chain_id(self) -> int:
        return self._chain_id

    @property
    def private_key(self) -> Optional[str]:
        """Key for signing transactions, if the adapter holds one."""
        return None

    @property
    def rpc_url(self) -> Optional[str]:
        return None

    @abstractmethod
    async def connect(self) -> WalletInfo:
        pass

    async def disconnect(self) -> None:
        self._state = WalletState.DISCONNECTED
        self._info = None

    async def switch_chain(self, chain_id: int) -> None:
        self._chain_id = chain_id
        if self._info:
            self._info.chain_id = chain_id

    @abstractmethod
    async def sign_message(self, message: bytes) -> SignResult:
        """EIP-191 personal_sign."""
        pass

    def _require_connected(self) -> None:
        if not self.is_connected:
            raise NotConnectedError()


# =============================================================================
# Local Account Wallet
# =============================================================================

class LocalAccountWallet(WalletAdapter):
    """Wallet backed by a raw private key."""

    def __init__(
        self,
        private_key: str,
        chain_id: int = 31337,
        rpc_url: Optional[str] = None,
    ):
        super().__init__(chain_id)
        self._account = Account.from_key(private_key)
        self._private_key = private_key
        self._rpc_url = rpc_url

    @property
    def name(self) -> str:
        return "LocalAccount"

    @property
    def private_key(self) -> Optional[str]:
        return self._private_key

    @property
    def rpc_url(self) -> Optional[str]:
        return self._rpc_url

    async def connect(self) -> WalletInfo:
        self._info = WalletInfo(
            name=self.name,
            address=self._account.address,
            chain_id=self._chain_id,
        )
        self._state = WalletState.CONNECTED
        return self._info

    async def sign_message(self, message: bytes) -> SignResult:
        self._require_connected()
        signed = self._account.sign_message(encode_defunct(primitive=message))
        return SignResult(
            signature=bytes(signed.signature),
            message=message,
            address=self._account.address,
        )


# =============================================================================
# Mock Adapter (for testing)
# =============================================================================

class MockWalletAdapter(WalletAdapter):
    """
    Mock wallet adapter for testing.

    Signatures are not cryptographically valid.
    """

    def __init__(
        self,
        chain_id: int = 31337,
        address: str = "0x" + "1" * 40,
        auto_approve: bool = True,
    ):
        super().__init__(chain_id)
        self._mock_address = to_checksum_address(address)
        self._auto_approve = auto_approve
        self.signed_messages = []

    @property
    def name(self) -> str:
        return "MockWallet"

    async def connect(self) -> WalletInfo:
        self._info = WalletInfo(
            name=self.name,
            address=self._mock_address,
            chain_id=self._chain_id,
        )
        self._state = WalletState.CONNECTED
        return self._info

    async def sign_message(self, message: bytes) -> SignResult:
        self._require_connected()

        if not self._auto_approve:
            raise SignatureRejectedError("User rejected")

        sig_hash = hashlib.sha256(
            b"mock_sign" + message + self._mock_address.encode()
        ).digest()
        # 65-byte signature: r(32) + s(32) + v(1)
        signature = sig_hash + sig_hash + b"\x1b"

        self.signed_messages.append(message)
        return SignResult(
            signature=signature,
            message=message,
            address=self._mock_address,
        )
