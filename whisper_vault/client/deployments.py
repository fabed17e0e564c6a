# whisper_vault/client/deployments.py
"""
WhisperVault Client: Deployment Map

Resolves the WhisperVault address for a chain from a static
deployments file:

    {
      "WhisperVault": {
        "31337": {"address": "0x...", "chainId": 31337, "chainName": "hardhat"},
        "11155111": {"address": "0x...", "chainId": 11155111, "chainName": "sepolia"}
      }
    }

The map is fetched once per process. Concurrent fetches share a single
in-flight load; clear_deployment_cache() forces a reload.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

import requests

from ..vault.types import ZERO_ADDRESS

logger = logging.getLogger("whisper-vault")

CONTRACT_NAME = "WhisperVault"

DeploymentMap = Dict[str, Dict[str, Any]]


# =============================================================================
# Loaders
# =============================================================================

class DeploymentLoader(ABC):
    """Source of the raw deployments document."""

    @abstractmethod
    async def load(self) -> Dict[str, Any]:
        """Return the parsed deployments document."""
        pass


class FileDeploymentLoader(DeploymentLoader):
    """Reads deployments.json from disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def load(self) -> Dict[str, Any]:
        text = await asyncio.to_thread(self.path.read_text, encoding="utf-8")
        return json.loads(text)


class HTTPDeploymentLoader(DeploymentLoader):
    """Fetches deployments.json over HTTP."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def _get(self) -> Dict[str, Any]:
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def load(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._get)


class StaticDeploymentLoader(DeploymentLoader):
    """In-memory deployments document."""

    def __init__(self, document: Dict[str, Any]):
        self.document = document
        self.load_count = 0

    async def load(self) -> Dict[str, Any]:
        self.load_count += 1
        # Yield so concurrent callers overlap
        await asyncio.sleep(0)
        return self.document


def loader_for(source: Union[str, Path, DeploymentLoader]) -> DeploymentLoader:
    """Pick a loader for a path, URL, or ready-made loader."""
    if isinstance(source, DeploymentLoader):
        return source
    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        return HTTPDeploymentLoader(source_str)
    return FileDeploymentLoader(source)


# =============================================================================
# Cache
# =============================================================================

_deployment_cache: Optional[DeploymentMap] = None
_deployment_fetch: Optional[asyncio.Future] = None


async def _fetch(loader: DeploymentLoader) -> DeploymentMap:
    global _deployment_cache, _deployment_fetch
    try:
        document = await loader.load()
        _deployment_cache = document.get(CONTRACT_NAME) or {}
        return _deployment_cache
    except Exception as e:
        logger.error(f"[WhisperVault] Failed to fetch deployments: {e}")
        return {}
    finally:
        _deployment_fetch = None


async def fetch_deployments(loader: DeploymentLoader) -> DeploymentMap:
    """
    Fetch the chainId -> deployment map.

    Returns the cached map when present, joins an in-flight fetch when one
    is running, and returns {} (uncached) when loading fails.
    """
    global _deployment_fetch
    if _deployment_cache is not None:
        return _deployment_cache

    if _deployment_fetch is None:
        _deployment_fetch = asyncio.ensure_future(_fetch(loader))
    return await asyncio.shield(_deployment_fetch)


def clear_deployment_cache() -> None:
    """Drop the cached map so the next fetch reloads it."""
    global _deployment_cache, _deployment_fetch
    _deployment_cache = None
    _deployment_fetch = None


async def get_contract_address(
    chain_id: Optional[int],
    loader: DeploymentLoader,
) -> Optional[str]:
    """
    WhisperVault address for a chain, or None when there is no usable
    deployment (unknown chain, missing address, zero address).
    """
    if not chain_id:
        return None

    deployments = await fetch_deployments(loader)
    entry = deployments.get(str(chain_id))
    if not entry:
        return None

    address = entry.get("address")
    if not address or address.lower() == ZERO_ADDRESS:
        return None
    return address
