# whisper_vault/client/local_store.py
"""
WhisperVault Client: Local Fallback Storage

localStorage-style key/value store used when no contract is deployed
on the active chain. Each key is one file under a directory; without a
directory the store is memory-only.

Chat history for a wallet lives under "whisperlink-<address>" as one JSON
array of message records.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger("whisper-vault")

KEY_PREFIX = "whisperlink-"

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def storage_key(address: str) -> str:
    """Namespaced key for a wallet's chat history."""
    return f"{KEY_PREFIX}{address}"


# =============================================================================
# Message Record
# =============================================================================

@dataclass
class ChatMessage:
    """
    One message as the client sees it.

    encrypted_content is the hex payload. decrypted_text is filled in by
    decrypt_all_messages().
    """
    id: int
    sender: str
    encrypted_content: str
    timestamp: int
    is_response: bool
    decrypted_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "sender": self.sender,
            "encryptedContent": self.encrypted_content,
            "timestamp": self.timestamp,
            "isResponse": self.is_response,
        }
        if self.decrypted_text is not None:
            data["decryptedText"] = self.decrypted_text
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ChatMessage:
        return cls(
            id=int(data["id"]),
            sender=str(data["sender"]),
            encrypted_content=str(data["encryptedContent"]),
            timestamp=int(data["timestamp"]),
            is_response=bool(data["isResponse"]),
            decrypted_text=data.get("decryptedText"),
        )


# =============================================================================
# LocalStorage
# =============================================================================

class LocalStorage:
    """String key/value store persisted one file per key."""

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self._dir = Path(directory).expanduser() if directory else None
        self._memory: Dict[str, str] = {}
        if self._dir is not None:
            self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Optional[Path]:
        return self._dir

    def _path(self, key: str) -> Path:
        return self._dir / (_UNSAFE_KEY_CHARS.sub("_", key) + ".json")

    def get_item(self, key: str) -> Optional[str]:
        if self._dir is None:
            return self._memory.get(key)
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        if self._dir is None:
            self._memory[key] = value
            return
        self._path(key).write_text(value, encoding="utf-8")

    def remove_item(self, key: str) -> None:
        if self._dir is None:
            self._memory.pop(key, None)
            return
        self._path(key).unlink(missing_ok=True)

    # =========================================================================
    # Chat History
    # =========================================================================

    def load_messages(self, address: str) -> List[ChatMessage]:
        """
        Chat history for an address. Malformed data is dropped and the
        key removed.
        """
        key = storage_key(address)
        stored = self.get_item(key)
        if not stored:
            return []
        try:
            return [ChatMessage.from_dict(item) for item in json.loads(stored)]
        except (ValueError, TypeError, KeyError) as e:
            logger.error(f"Failed to parse stored messages: {e}")
            self.remove_item(key)
            return []

    def save_messages(self, address: str, messages: List[ChatMessage]) -> None:
        self.set_item(
            storage_key(address),
            json.dumps([m.to_dict() for m in messages]),
        )

    def clear_messages(self, address: str) -> None:
        self.remove_item(storage_key(address))
