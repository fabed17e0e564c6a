# whisper_vault/vault/store.py
"""
WhisperVault: In-Memory Message Vault

Python rendition of the WhisperVault contract. Holds, per user address,
an append-only list of encrypted message records.

No blockchain required - state lives in memory, block timestamps come
from a clock callable, and msg.sender is supplied by the caller (or bound
via connect()).

Usage:
    vault = MessageVault()
    alice = vault.connect("0x...")

    index = alice.store_message(payload)
    alice.store_response(response_payload)
    count = alice.get_message_count(alice.caller)   # 2
    alice.clear_messages()
"""

from __future__ import annotations

import secrets
import time
from typing import Callable, Dict, List, Optional, Tuple, Type

from eth_utils import to_checksum_address

from .types import (
    MAX_MESSAGE_SIZE,
    StoredMessage,
    VaultEvent,
    MessageStored,
    MessagesCleared,
    DecryptionRequested,
    EmptyMessageError,
    MessageTooLargeError,
    IndexOutOfBoundsError,
)


class MessageVault:
    """
    In-memory WhisperVault.

    Every user can read every other user's records; only clear_messages
    is scoped to the caller.
    """

    def __init__(
        self,
        address: Optional[str] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Args:
            address: Vault's own address (sender of auto-responses)
            clock: Returns unix seconds (default: wall clock)
        """
        self.address = to_checksum_address(address or "0x" + secrets.token_hex(20))
        self._clock = clock or (lambda: int(time.time()))
        self._messages: Dict[str, List[StoredMessage]] = {}
        self.events: List[VaultEvent] = []

    def connect(self, caller: str) -> VaultSession:
        """Bind msg.sender for subsequent calls."""
        return VaultSession(self, caller)

    # =========================================================================
    # Writes
    # =========================================================================

    def store_message(self, caller: str, encrypted_content: bytes) -> int:
        """Append a user message. Returns its index."""
        caller = to_checksum_address(caller)
        return self._append(caller, caller, encrypted_content, is_response=False)

    def store_response(self, caller: str, encrypted_content: bytes) -> int:
        """Append an auto-response to the caller's list, sent by the vault."""
        caller = to_checksum_address(caller)
        return self._append(caller, self.address, encrypted_content, is_response=True)

    def clear_messages(self, caller: str) -> None:
        """Delete the caller's whole list."""
        caller = to_checksum_address(caller)
        self._messages.pop(caller, None)
        self.events.append(MessagesCleared(user=caller))

    def request_decryption(self, caller: str) -> int:
        """Emit DecryptionRequested. No state change. Returns the timestamp."""
        caller = to_checksum_address(caller)
        now = self._clock()
        self.events.append(DecryptionRequested(user=caller, timestamp=now))
        return now

    def _append(
        self,
        user: str,
        sender: str,
        encrypted_content: bytes,
        is_response: bool,
    ) -> int:
        content = bytes(encrypted_content)
        if len(content) == 0:
            raise EmptyMessageError()
        if len(content) > MAX_MESSAGE_SIZE:
            raise MessageTooLargeError(len(content))

        now = self._clock()
        records = self._messages.setdefault(user, [])
        records.append(StoredMessage(
            sender=sender,
            encrypted_content=content,
            timestamp=now,
            is_response=is_response,
        ))
        index = len(records) - 1
        self.events.append(MessageStored(
            user=user,
            message_index=index,
            timestamp=now,
            is_response=is_response,
        ))
        return index

    # =========================================================================
    # Reads
    # =========================================================================

    def get_message_count(self, user: str) -> int:
        return len(self._messages.get(to_checksum_address(user), []))

    def get_message_metadata(self, user: str, index: int) -> Tuple[str, int, bool]:
        return self._get(user, index).metadata

    def get_encrypted_content(self, user: str, index: int) -> bytes:
        return self._get(user, index).encrypted_content

    def get_message(self, user: str, index: int) -> Tuple[str, bytes, int, bool]:
        return self._get(user, index).as_tuple()

    def get_all_messages(self, user: str) -> List[StoredMessage]:
        return list(self._messages.get(to_checksum_address(user), []))

    def _get(self, user: str, index: int) -> StoredMessage:
        user = to_checksum_address(user)
        records = self._messages.get(user, [])
        if index < 0 or index >= len(records):
            raise IndexOutOfBoundsError(user, index)
        return records[index]

    # =========================================================================
    # Events
    # =========================================================================

    def events_for(self, event_type: Type[VaultEvent]) -> List[VaultEvent]:
        """Filter the event log by event class."""
        return [e for e in self.events if isinstance(e, event_type)]


class VaultSession:
    """
    MessageVault bound to one caller.

    Exposes the same method surface as VaultContract, so client code can
    run against either.
    """

    def __init__(self, vault: MessageVault, caller: str):
        self._vault = vault
        self.caller = to_checksum_address(caller)

    @property
    def vault(self) -> MessageVault:
        return self._vault

    @property
    def contract_address(self) -> str:
        return self._vault.address

    @property
    def account_address(self) -> str:
        return self.caller

    def store_message(self, encrypted_content: bytes) -> int:
        return self._vault.store_message(self.caller, encrypted_content)

    def store_response(self, encrypted_content: bytes) -> int:
        return self._vault.store_response(self.caller, encrypted_content)

    def clear_messages(self) -> None:
        self._vault.clear_messages(self.caller)

    def request_decryption(self) -> int:
        return self._vault.request_decryption(self.caller)

    def get_message_count(self, user: str) -> int:
        return self._vault.get_message_count(user)

    def get_message_metadata(self, user: str, index: int) -> Tuple[str, int, bool]:
        return self._vault.get_message_metadata(user, index)

    def get_encrypted_content(self, user: str, index: int) -> bytes:
        return self._vault.get_encrypted_content(user, index)

    def get_message(self, user: str, index: int) -> Tuple[str, bytes, int, bool]:
        return self._vault.get_message(user, index)

    def get_all_messages(self, user: str) -> List[StoredMessage]:
        return self._vault.get_all_messages(user)
