# whisper_vault/vault/contract.py
"""
WhisperVault: Contract Interface

Python interface to a deployed WhisperVault contract.
Same method surface as VaultSession, so the client can swap between
the on-chain vault and the in-memory one.

Requirements:
    pip install web3

Usage:
    contract = VaultContract(
        contract_address="0x...",
        rpc_url="http://127.0.0.1:8545",
        private_key="0x...",  # Optional, for write ops
    )

    index = contract.store_message(payload)
    count = contract.get_message_count(contract.account_address)
    messages = contract.get_all_messages(contract.account_address)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

try:
    from web3 import Web3
    from web3.exceptions import (
        BadFunctionCallOutput,
        ContractLogicError,
        TimeExhausted,
        Web3Exception,
    )
    from web3.middleware import ExtraDataToPOAMiddleware
    from eth_account import Account
    WEB3_AVAILABLE = True
except ImportError:
    WEB3_AVAILABLE = False
    Web3 = None

from .types import (
    StoredMessage,
    VaultError,
    ContractUnavailableError,
    IndexOutOfBoundsError,
    TransactionFailedError,
    SignerRequiredError,
    Web3NotAvailableError,
    revert_error_from_reason,
)

logger = logging.getLogger("whisper-vault")


# =============================================================================
# ABI
# =============================================================================

ABI_PATH = Path(__file__).parent / "abi" / "WhisperVault.json"


def _load_abi() -> List[Dict]:
    """Load contract ABI from JSON file."""
    with open(ABI_PATH) as f:
        data = json.load(f)
    return data.get("abi", data)


CONTRACT_ABI = _load_abi()


# =============================================================================
# VaultContract
# =============================================================================

class VaultContract:
    """
    WhisperVault contract interface.

    Writes wait for one confirmation before returning. Reverts surface
    as VaultRevertError subclasses, missing contracts as
    ContractUnavailableError.
    """

    def __init__(
        self,
        contract_address: str,
        rpc_url: Optional[str] = None,
        private_key: Optional[str] = None,
        from_address: Optional[str] = None,
        chain_id: Optional[int] = None,
        w3: Optional[Any] = None,
        gas_limit: Optional[int] = None,
    ):
        """
        Initialize VaultContract.

        Args:
            contract_address: Deployed WhisperVault address
            rpc_url: RPC endpoint URL (ignored when w3 is given)
            private_key: Signs transactions locally (optional)
            from_address: Unlocked node account, used when no private key
            chain_id: Chain ID (queried from the node if not provided)
            w3: Pre-built Web3 instance
            gas_limit: Fixed gas limit (estimated if None)
        """
        if not WEB3_AVAILABLE:
            raise Web3NotAvailableError()
        if w3 is None and rpc_url is None:
            raise ValueError("rpc_url or w3 required")

        self.contract_address = Web3.to_checksum_address(contract_address)
        self.rpc_url = rpc_url
        self._chain_id = chain_id
        self._gas_limit = gas_limit

        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(rpc_url))
            # PoA chains put extra bytes in the header
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self._w3 = w3

        self._contract = self._w3.eth.contract(
            address=self.contract_address,
            abi=CONTRACT_ABI,
        )

        self._account = Account.from_key(private_key) if private_key else None
        self._from_address = (
            Web3.to_checksum_address(from_address) if from_address else None
        )

    @property
    def account_address(self) -> Optional[str]:
        """Address used as msg.sender for writes."""
        if self._account:
            return self._account.address
        return self._from_address

    def use_node_account(self, index: int = 0) -> str:
        """Send writes from one of the node's unlocked accounts."""
        try:
            accounts = self._w3.eth.accounts
        except OSError as e:
            raise ContractUnavailableError(f"RPC unreachable ({self.rpc_url}): {e}")
        except Web3Exception as e:
            raise VaultError(f"Could not list node accounts: {e}")
        if index >= len(accounts):
            raise SignerRequiredError()
        self._from_address = Web3.to_checksum_address(accounts[index])
        return self._from_address

    @property
    def chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = self._w3.eth.chain_id
        return self._chain_id

    # =========================================================================
    # Error Mapping
    # =========================================================================

    def _call(self, fn_name: str, *args) -> Any:
        """Run a view function, mapping web3 failures to vault errors."""
        try:
            return getattr(self._contract.functions, fn_name)(*args).call()
        except ContractLogicError as e:
            raise revert_error_from_reason(_revert_reason(e))
        except BadFunctionCallOutput as e:
            raise ContractUnavailableError(
                f"No WhisperVault at {self.contract_address}: {e}"
            )
        except OSError as e:
            raise ContractUnavailableError(f"RPC unreachable ({self.rpc_url}): {e}")
        except Web3Exception as e:
            raise VaultError(f"{fn_name} call failed: {e}")

    def _transact(self, fn_name: str, *args) -> Dict[str, Any]:
        """Send a transaction and wait for one confirmation."""
        fn = getattr(self._contract.functions, fn_name)(*args)

        try:
            if self._account:
                params = {
                    "from": self._account.address,
                    "chainId": self.chain_id,
                    "nonce": self._w3.eth.get_transaction_count(self._account.address),
                }
                if self._gas_limit:
                    params["gas"] = self._gas_limit
                tx = fn.build_transaction(params)
                signed = self._account.sign_transaction(tx)
                tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
            elif self._from_address:
                params = {"from": self._from_address}
                if self._gas_limit:
                    params["gas"] = self._gas_limit
                tx_hash = fn.transact(params)
            else:
                raise SignerRequiredError()

            logger.debug(f"[WhisperVault] {fn_name} tx: {Web3.to_hex(tx_hash)}")
            receipt = self._w3.eth.wait_for_transaction_receipt(tx_hash)
        except VaultError:
            raise
        except ContractLogicError as e:
            raise revert_error_from_reason(_revert_reason(e))
        except BadFunctionCallOutput as e:
            raise ContractUnavailableError(
                f"No WhisperVault at {self.contract_address}: {e}"
            )
        except OSError as e:
            raise ContractUnavailableError(f"RPC unreachable ({self.rpc_url}): {e}")
        except TimeExhausted as e:
            raise VaultError(f"{fn_name} not confirmed: {e}")
        except Web3Exception as e:
            # Node-side rejections: insufficient funds, nonce too low, ...
            raise VaultError(f"{fn_name} rejected: {e}")

        if receipt["status"] != 1:
            raise TransactionFailedError(Web3.to_hex(tx_hash))

        return receipt

    # =========================================================================
    # Write Operations
    # =========================================================================

    def store_message(self, encrypted_content: bytes) -> int:
        """Store a user message. Returns its index."""
        receipt = self._transact("storeMessage", bytes(encrypted_content))
        return self._stored_index(receipt)

    def store_response(self, encrypted_content: bytes) -> int:
        """Store an auto-response. Returns its index."""
        receipt = self._transact("storeResponse", bytes(encrypted_content))
        return self._stored_index(receipt)

    def clear_messages(self) -> str:
        """Clear the caller's messages. Returns the tx hash."""
        receipt = self._transact("clearMessages")
        return Web3.to_hex(receipt["transactionHash"])

    def request_decryption(self) -> str:
        """Emit DecryptionRequested. Returns the tx hash."""
        receipt = self._transact("requestDecryption")
        return Web3.to_hex(receipt["transactionHash"])

    def _stored_index(self, receipt: Dict[str, Any]) -> int:
        logs = self._contract.events.MessageStored().process_receipt(receipt)
        if not logs:
            raise VaultError("MessageStored event missing from receipt")
        return int(logs[0]["args"]["messageIndex"])

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_message_count(self, user: str) -> int:
        return int(self._call("getMessageCount", Web3.to_checksum_address(user)))

    def get_message_metadata(self, user: str, index: int) -> Tuple[str, int, bool]:
        sender, timestamp, is_response = self._call_indexed(
            "getMessageMetadata", user, index
        )
        return (sender, int(timestamp), bool(is_response))

    def get_encrypted_content(self, user: str, index: int) -> bytes:
        return bytes(self._call_indexed("getEncryptedContent", user, index))

    def get_message(self, user: str, index: int) -> Tuple[str, bytes, int, bool]:
        data = self._call_indexed("getMessage", user, index)
        return StoredMessage.from_contract_tuple(data).as_tuple()

    def _call_indexed(self, fn_name: str, user: str, index: int) -> Any:
        # uint256 argument: the ABI encoder rejects negatives before the node sees them
        if index < 0:
            raise IndexOutOfBoundsError(user, index)
        return self._call(fn_name, Web3.to_checksum_address(user), index)

    def get_all_messages(self, user: str) -> List[StoredMessage]:
        data = self._call("getAllMessages", Web3.to_checksum_address(user))
        return [StoredMessage.from_contract_tuple(d) for d in data]


def _revert_reason(error: Exception) -> str:
    message = getattr(error, "message", None)
    return message if isinstance(message, str) and message else str(error)
