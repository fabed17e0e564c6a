# whisper_vault/__init__.py
"""
WhisperVault: Encrypted On-Chain Chat

Messages are encrypted client-side with a password-derived key and
stored as opaque byte blobs in a per-user, append-only contract.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │  whisper_vault                                          │
    │  ├── crypto/           # Password codec                 │
    │  │   └── codec.py      # PBKDF2 + AES-256-GCM           │
    │  │                                                      │
    │  ├── vault/            # Message store                  │
    │  │   ├── types.py      # Records, events, errors        │
    │  │   ├── store.py      # MessageVault (in-memory)       │
    │  │   └── contract.py   # VaultContract (web3)           │
    │  │                                                      │
    │  ├── client/           # Wallet-side adapter            │
    │  │   ├── deployments.py # chainId -> address map        │
    │  │   ├── local_store.py # Local fallback storage        │
    │  │   ├── wallet.py      # Wallet adapters               │
    │  │   └── vault_client.py # WhisperVaultClient           │
    │  │                                                      │
    │  ├── config.py         # Environment configuration      │
    │  └── cli.py            # whisper-vault command          │
    └─────────────────────────────────────────────────────────┘

Payload:
    salt (16B) || iv (12B) || AES-GCM ciphertext || tag (16B)
"""

__version__ = "0.1.0"

from .crypto import (
    encrypt,
    decrypt,
    encrypt_text,
    decrypt_text,
    derive_key,
    CodecError,
    DecryptionError,
)

from .vault import (
    MAX_MESSAGE_SIZE,
    StoredMessage,
    MessageVault,
    VaultSession,
    VaultContract,
    VaultError,
    VaultRevertError,
    EmptyMessageError,
    MessageTooLargeError,
    IndexOutOfBoundsError,
    ContractUnavailableError,
    WEB3_AVAILABLE,
)

from .client import (
    WhisperVaultClient,
    ChatMessage,
    LocalStorage,
    LocalAccountWallet,
    MockWalletAdapter,
    FileDeploymentLoader,
    HTTPDeploymentLoader,
    StaticDeploymentLoader,
    fetch_deployments,
    clear_deployment_cache,
    get_contract_address,
    VaultClientError,
    AuthenticationError,
)

from .config import VaultConfig

__all__ = [
    "__version__",
    # Crypto
    "encrypt",
    "decrypt",
    "encrypt_text",
    "decrypt_text",
    "derive_key",
    "CodecError",
    "DecryptionError",
    # Vault
    "MAX_MESSAGE_SIZE",
    "StoredMessage",
    "MessageVault",
    "VaultSession",
    "VaultContract",
    "VaultError",
    "VaultRevertError",
    "EmptyMessageError",
    "MessageTooLargeError",
    "IndexOutOfBoundsError",
    "ContractUnavailableError",
    # Client
    "WhisperVaultClient",
    "ChatMessage",
    "LocalStorage",
    "LocalAccountWallet",
    "MockWalletAdapter",
    "FileDeploymentLoader",
    "HTTPDeploymentLoader",
    "StaticDeploymentLoader",
    "fetch_deployments",
    "clear_deployment_cache",
    "get_contract_address",
    "VaultClientError",
    "AuthenticationError",
    # Config
    "VaultConfig",
]


def status() -> dict:
    """
    Get availability status of optional components.

    Example:
        >>> import whisper_vault
        >>> whisper_vault.status()
        {'version': '0.1.0', 'core': True, 'web3': True}
    """
    return {
        'version': __version__,
        'core': True,
        'web3': WEB3_AVAILABLE,
    }
