# whisper_vault/config.py
"""
WhisperVault configuration.

Values come from the environment (and a .env file, if present):

    WHISPER_RPC_URL       RPC endpoint (default: local Hardhat node)
    WHISPER_PRIVATE_KEY   Signing key for writes
    WHISPER_CHAIN_ID      Active chain (default: 31337)
    WHISPER_DEPLOYMENTS   Path or URL of deployments.json
    WHISPER_STORAGE_DIR   Local fallback storage directory
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_CHAIN_ID = 31337  # Hardhat
DEFAULT_DEPLOYMENTS = "deployments.json"
DEFAULT_STORAGE_DIR = "~/.whisper_vault"


@dataclass
class VaultConfig:
    rpc_url: str = DEFAULT_RPC_URL
    private_key: Optional[str] = None
    chain_id: int = DEFAULT_CHAIN_ID
    deployments: str = DEFAULT_DEPLOYMENTS
    storage_dir: str = DEFAULT_STORAGE_DIR

    @classmethod
    def from_env(cls, dotenv: bool = True) -> VaultConfig:
        if dotenv:
            load_dotenv()
        return cls(
            rpc_url=os.environ.get("WHISPER_RPC_URL", DEFAULT_RPC_URL),
            private_key=os.environ.get("WHISPER_PRIVATE_KEY") or None,
            chain_id=int(os.environ.get("WHISPER_CHAIN_ID", DEFAULT_CHAIN_ID)),
            deployments=os.environ.get("WHISPER_DEPLOYMENTS", DEFAULT_DEPLOYMENTS),
            storage_dir=os.environ.get("WHISPER_STORAGE_DIR", DEFAULT_STORAGE_DIR),
        )
