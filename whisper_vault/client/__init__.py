# whisper_vault/client/__init__.py
"""
WhisperVault Client Layer

Wallet-side adapter: deployment lookup, contract/local-mode selection,
encrypted send, batch decrypt.

Components:
    WhisperVaultClient: Send / load / decrypt / clear for one wallet
    fetch_deployments: Cached chainId -> deployment map
    LocalStorage: Fallback persistence when no contract is deployed
    WalletAdapter: Address, chain, personal_sign
"""

from .deployments import (
    CONTRACT_NAME,
    DeploymentLoader,
    FileDeploymentLoader,
    HTTPDeploymentLoader,
    StaticDeploymentLoader,
    loader_for,
    fetch_deployments,
    clear_deployment_cache,
    get_contract_address,
)

from .local_store import (
    KEY_PREFIX,
    ChatMessage,
    LocalStorage,
    storage_key,
)

from .wallet import (
    WalletAdapter,
    LocalAccountWallet,
    MockWalletAdapter,
    WalletState,
    WalletInfo,
    SignResult,
    WalletAdapterError,
    NotConnectedError,
    SignatureRejectedError,
)

from .responses import (
    RESPONSES,
    generate_auto_response,
)

from .vault_client import (
    WhisperVaultClient,
    VaultClientError,
    AuthenticationError,
    DECRYPTION_FAILED,
    CONTRACT_UNAVAILABLE,
    MIN_PASSWORD_LENGTH,
    auth_message,
)

__all__ = [
    # Deployments
    "CONTRACT_NAME",
    "DeploymentLoader",
    "FileDeploymentLoader",
    "HTTPDeploymentLoader",
    "StaticDeploymentLoader",
    "loader_for",
    "fetch_deployments",
    "clear_deployment_cache",
    "get_contract_address",
    # Local storage
    "KEY_PREFIX",
    "ChatMessage",
    "LocalStorage",
    "storage_key",
    # Wallet
    "WalletAdapter",
    "LocalAccountWallet",
    "MockWalletAdapter",
    "WalletState",
    "WalletInfo",
    "SignResult",
    "WalletAdapterError",
    "NotConnectedError",
    "SignatureRejectedError",
    # Responses
    "RESPONSES",
    "generate_auto_response",
    # Client
    "WhisperVaultClient",
    "VaultClientError",
    "AuthenticationError",
    "DECRYPTION_FAILED",
    "CONTRACT_UNAVAILABLE",
    "MIN_PASSWORD_LENGTH",
    "auth_message",
]
