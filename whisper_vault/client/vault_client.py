# whisper_vault/client/vault_client.py
"""
WhisperVault Client

Drives a WhisperVault for one connected wallet: encrypts outgoing text,
stores it (with an auto-response) on-chain, loads and decrypts history.

When the active chain has no deployment the client runs in local mode
and keeps history in LocalStorage instead.

Usage:
    wallet = LocalAccountWallet(private_key, chain_id=31337,
                                rpc_url="http://127.0.0.1:8545")
    await wallet.connect()

    client = WhisperVaultClient(
        wallet=wallet,
        deployments=FileDeploymentLoader("deployments.json"),
        storage=LocalStorage("~/.whisper_vault"),
    )

    await client.send_message("Hello", "hunter22")
    await client.decrypt_all_messages("hunter22")
    for msg in client.messages:
        print(msg.decrypted_text)
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from typing import Any, Callable, List, Optional, Tuple

from ..crypto import CodecError, decrypt_text, encrypt_text
from ..vault import ContractUnavailableError, VaultContract, VaultError
from .deployments import DeploymentLoader, get_contract_address
from .local_store import ChatMessage, LocalStorage
from .responses import generate_auto_response
from .wallet import NotConnectedError, SignResult, WalletAdapter

logger = logging.getLogger("whisper-vault")

DECRYPTION_FAILED = "[Decryption failed]"
CONTRACT_UNAVAILABLE = "Contract not available on this network. Please check your connection."
MIN_PASSWORD_LENGTH = 6

# Backend: VaultContract or VaultSession
ContractFactory = Callable[[str, WalletAdapter], Any]


# =============================================================================
# Exceptions
# =============================================================================

class VaultClientError(Exception):
    """Base client error."""
    pass


class AuthenticationError(VaultClientError):
    """Password rejected or signature not obtained."""
    pass


# =============================================================================
# Helpers
# =============================================================================

def auth_message(address: str, timestamp_ms: int) -> str:
    """Message the wallet signs to open a session."""
    return (
        "WhisperLink Authentication\n\n"
        "I am signing in to WhisperLink with my encryption key.\n\n"
        f"Timestamp: {timestamp_ms}\n"
        f"Address: {address}"
    )


def _to_chat_message(index: int, stored) -> ChatMessage:
    return ChatMessage(
        id=index,
        sender=stored.sender,
        encrypted_content="0x" + stored.encrypted_content.hex(),
        timestamp=stored.timestamp,
        is_response=stored.is_response,
    )


# =============================================================================
# WhisperVaultClient
# =============================================================================

class WhisperVaultClient:
    """
    Client-side state for one wallet.

    Every action is a single sequential await chain. Overlapping calls are
    not serialized; a second send while one is pending submits its own
    transactions.
    """

    def __init__(
        self,
        wallet: WalletAdapter,
        deployments: DeploymentLoader,
        storage: Optional[LocalStorage] = None,
        rpc_url: Optional[str] = None,
        contract_factory: Optional[ContractFactory] = None,
    ):
        """
        Args:
            wallet: Connected wallet (address + chain)
            deployments: Source of the chainId -> address map
            storage: Local fallback storage (memory-only if None)
            rpc_url: RPC endpoint for the default contract factory
            contract_factory: Builds a backend for (address, wallet)
        """
        self._wallet = wallet
        self._deployments = deployments
        self._storage = storage or LocalStorage()
        self._rpc_url = rpc_url
        self._contract_factory = contract_factory or self._default_contract_factory
        self._backend: Optional[Tuple[Tuple[str, str], Any]] = None
        self._password: Optional[str] = None

        self.messages: List[ChatMessage] = []
        self.loading = False
        self.error: Optional[str] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_connected(self) -> bool:
        return self._wallet.is_connected

    @property
    def address(self) -> Optional[str]:
        return self._wallet.address

    @property
    def chain_id(self) -> int:
        return self._wallet.chain_id

    @property
    def storage(self) -> LocalStorage:
        return self._storage

    @property
    def is_authenticated(self) -> bool:
        return self._password is not None

    # =========================================================================
    # Contract
    # =========================================================================

    def _default_contract_factory(self, address: str, wallet: WalletAdapter) -> VaultContract:
        return VaultContract(
            contract_address=address,
            rpc_url=self._rpc_url or wallet.rpc_url,
            private_key=wallet.private_key,
            from_address=None if wallet.private_key else wallet.address,
            chain_id=wallet.chain_id,
        )

    async def get_contract(self) -> Optional[Any]:
        """Backend for the active chain, or None in local mode."""
        if not self._wallet.is_connected or not self.chain_id:
            return None

        contract_address = await get_contract_address(self.chain_id, self._deployments)
        if not contract_address:
            logger.warning(
                f"No contract deployed on chain {self.chain_id}. "
                "Using demo mode with local storage."
            )
            return None

        cache_key = (contract_address, self.address)
        if self._backend is None or self._backend[0] != cache_key:
            logger.info(
                f"[WhisperVault] Using contract at {contract_address} on chain {self.chain_id}"
            )
            self._backend = (cache_key, self._contract_factory(contract_address, self._wallet))
        return self._backend[1]

    # =========================================================================
    # Authentication
    # =========================================================================

    async def authenticate(self, password: str) -> SignResult:
        """
        Open a session: check the password and have the wallet sign an
        authentication message.
        """
        if not password or not password.strip():
            raise AuthenticationError("Please enter a password")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthenticationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if not self.address:
            raise NotConnectedError()

        message = auth_message(self.address, int(time.time() * 1000))
        result = await self._wallet.sign_message(message.encode("utf-8"))
        self._password = password
        return result

    def logout(self) -> None:
        self._password = None
        self.messages = []
        self.error = None

    def _resolve_password(self, password: Optional[str]) -> str:
        password = password if password is not None else self._password
        if not password:
            raise AuthenticationError("Please enter password")
        return password

    # =========================================================================
    # Load
    # =========================================================================

    async def load_messages(self) -> None:
        """Refresh messages from the contract, or local storage."""
        address = self.address
        if not address:
            return

        self.loading = True
        self.error = None
        try:
            contract = await self.get_contract()
            if contract is None:
                self.messages = self._storage.load_messages(address)
                return

            stored = await asyncio.to_thread(contract.get_all_messages, address)
            self.messages = [_to_chat_message(i, m) for i, m in enumerate(stored)]
        except VaultError as e:
            logger.error(f"Failed to load messages: {e}")
            if isinstance(e, ContractUnavailableError):
                self.error = CONTRACT_UNAVAILABLE
            else:
                self.error = f"Failed to load messages: {e}"
            self.messages = self._storage.load_messages(address)
        finally:
            self.loading = False

    # =========================================================================
    # Send
    # =========================================================================

    async def send_message(self, message_text: str, password: Optional[str] = None) -> None:
        """
        Encrypt and store a message plus its auto-response.

        Raises:
            NotConnectedError: No wallet address
            VaultError: Contract call failed
        """
        address = self.address
        if not address:
            raise NotConnectedError()

        self.loading = True
        self.error = None
        try:
            password = self._resolve_password(password)

            encrypted_message = await asyncio.to_thread(encrypt_text, message_text, password)
            response_text = generate_auto_response(message_text)
            encrypted_response = await asyncio.to_thread(encrypt_text, response_text, password)

            now = int(time.time())

            contract = await self.get_contract()
            if contract is not None:
                await asyncio.to_thread(contract.store_message, bytes.fromhex(encrypted_message))
                await asyncio.to_thread(contract.store_response, bytes.fromhex(encrypted_response))
                await self.load_messages()
                return

            next_id = len(self.messages)
            self.messages = self.messages + [
                ChatMessage(
                    id=next_id,
                    sender=address,
                    encrypted_content=encrypted_message,
                    timestamp=now,
                    is_response=False,
                ),
                ChatMessage(
                    id=next_id + 1,
                    sender="system",
                    encrypted_content=encrypted_response,
                    timestamp=now + 1,
                    is_response=True,
                ),
            ]
            self._storage.save_messages(address, self.messages)
        except Exception as e:
            logger.error(f"Failed to send message: {e}")
            self.error = str(e) or "Failed to send"
            raise
        finally:
            self.loading = False

    # =========================================================================
    # Decrypt
    # =========================================================================

    async def _decrypt_one(self, msg: ChatMessage, password: str) -> ChatMessage:
        try:
            text = await asyncio.to_thread(decrypt_text, msg.encrypted_content, password)
            logger.debug(f"[Decrypt] Message {msg.id} decrypted")
            return dataclasses.replace(msg, decrypted_text=text)
        except CodecError as e:
            logger.error(f"[Decrypt] Message {msg.id} failed: {e}")
            return dataclasses.replace(msg, decrypted_text=DECRYPTION_FAILED)

    async def decrypt_all_messages(self, password: Optional[str] = None) -> None:
        """
        Decrypt every loaded message.

        A DecryptionRequested event is emitted first when a contract is
        available; failure there does not stop local decryption. Messages
        that fail to decrypt are marked "[Decryption failed]".
        """
        self.loading = True
        self.error = None
        try:
            password = self._resolve_password(password)
            if not self.messages:
                raise VaultClientError("No messages to decrypt")

            contract = await self.get_contract()
            if contract is not None:
                logger.info("[Decrypt] Sending on-chain decryption request...")
                try:
                    await asyncio.to_thread(contract.request_decryption)
                    logger.info("[Decrypt] Decryption request confirmed on-chain")
                except VaultError as e:
                    logger.warning(
                        f"[Decrypt] On-chain request failed, continuing with local decryption: {e}"
                    )
            else:
                logger.info("[Decrypt] No contract available, using local decryption only")

            self.messages = list(await asyncio.gather(
                *(self._decrypt_one(msg, password) for msg in self.messages)
            ))
        except Exception as e:
            logger.error(f"Failed to decrypt: {e}")
            self.error = str(e) or "Decryption failed"
            raise
        finally:
            self.loading = False

    # =========================================================================
    # Clear
    # =========================================================================

    async def clear_messages(self) -> None:
        """Clear history on-chain (if deployed) and locally."""
        address = self.address
        if not address:
            return

        self.loading = True
        try:
            contract = await self.get_contract()
            if contract is not None:
                await asyncio.to_thread(contract.clear_messages)

            self.messages = []
            self._storage.clear_messages(address)
        except VaultError as e:
            logger.error(f"Failed to clear messages: {e}")
            self.error = str(e) or "Failed to clear"
        finally:
            self.loading = False
