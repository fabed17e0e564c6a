# tests/test_client.py
"""
WhisperVaultClient: local mode, on-chain mode (in-memory vault),
fallbacks, and per-message decryption failures.
"""

import asyncio
from unittest.mock import MagicMock

import pytest
from web3.exceptions import TimeExhausted, Web3RPCError

from whisper_vault.client import (
    CONTRACT_UNAVAILABLE,
    DECRYPTION_FAILED,
    AuthenticationError,
    ChatMessage,
    LocalStorage,
    MockWalletAdapter,
    NotConnectedError,
    StaticDeploymentLoader,
    VaultClientError,
    WhisperVaultClient,
    generate_auto_response,
    storage_key,
)
from whisper_vault.crypto import encrypt_text
from whisper_vault.vault import (
    ContractUnavailableError,
    DecryptionRequested,
    MessageVault,
    VaultContract,
    VaultRevertError,
)

from conftest import ALICE, BOB, CHAIN_ID

PASSWORD = "hunter22"


def connected_wallet(address=ALICE, chain_id=CHAIN_ID):
    wallet = MockWalletAdapter(chain_id=chain_id, address=address)
    asyncio.run(wallet.connect())
    return wallet


def deployments_for(vault):
    return StaticDeploymentLoader({
        "WhisperVault": {
            str(CHAIN_ID): {"address": vault.address, "chainId": CHAIN_ID, "chainName": "hardhat"},
        }
    })


def onchain_client(vault, address=ALICE, storage=None):
    return WhisperVaultClient(
        wallet=connected_wallet(address),
        deployments=deployments_for(vault),
        storage=storage or LocalStorage(),
        contract_factory=lambda contract_address, wallet: vault.connect(wallet.address),
    )


def local_client(storage=None, address=ALICE):
    return WhisperVaultClient(
        wallet=connected_wallet(address),
        deployments=StaticDeploymentLoader({"WhisperVault": {}}),
        storage=storage or LocalStorage(),
    )


class BrokenBackend:
    """Backend whose every call fails."""

    def __init__(self, error):
        self.error = error

    def get_all_messages(self, user):
        raise self.error

    def clear_messages(self):
        raise self.error


class FlakyDecryptionBackend:
    """Delegates to a session but fails requestDecryption."""

    def __init__(self, session):
        self._session = session
        self.requests = 0

    def __getattr__(self, name):
        return getattr(self._session, name)

    def request_decryption(self):
        self.requests += 1
        raise VaultRevertError("user rejected")


# =============================================================================
# Local mode
# =============================================================================

def test_local_send_stores_message_and_response():
    storage = LocalStorage()
    client = local_client(storage)

    assert asyncio.run(client.get_contract()) is None
    asyncio.run(client.send_message("Hello local", PASSWORD))

    assert [m.id for m in client.messages] == [0, 1]
    user_msg, response = client.messages
    assert user_msg.sender == ALICE and not user_msg.is_response
    assert response.sender == "system" and response.is_response
    assert response.timestamp == user_msg.timestamp + 1
    assert storage.load_messages(ALICE) == client.messages
    assert client.loading is False
    assert client.error is None


def test_local_history_reloads_and_decrypts():
    storage = LocalStorage()
    asyncio.run(local_client(storage).send_message("Persist me", PASSWORD))

    client = local_client(storage)
    asyncio.run(client.load_messages())
    asyncio.run(client.decrypt_all_messages(PASSWORD))

    assert [m.decrypted_text for m in client.messages] == [
        "Persist me",
        generate_auto_response("Persist me"),
    ]


def test_local_malformed_history_loads_empty():
    storage = LocalStorage()
    storage.set_item(storage_key(ALICE), "{broken")

    client = local_client(storage)
    asyncio.run(client.load_messages())
    assert client.messages == []
    assert storage.get_item(storage_key(ALICE)) is None


def test_local_clear():
    storage = LocalStorage()
    client = local_client(storage)
    asyncio.run(client.send_message("bye", PASSWORD))
    asyncio.run(client.clear_messages())

    assert client.messages == []
    assert storage.load_messages(ALICE) == []


# =============================================================================
# On-chain mode
# =============================================================================

def test_onchain_send_round_trip(clock):
    vault = MessageVault(clock=clock)
    client = onchain_client(vault)

    asyncio.run(client.send_message("Hello chain", PASSWORD))

    assert vault.get_message_count(ALICE) == 2
    assert [m.id for m in client.messages] == [0, 1]
    assert client.messages[0].sender == ALICE
    assert client.messages[1].sender == vault.address
    assert client.messages[1].is_response
    assert client.messages[0].encrypted_content.startswith("0x")

    asyncio.run(client.decrypt_all_messages(PASSWORD))
    assert [m.decrypted_text for m in client.messages] == [
        "Hello chain",
        generate_auto_response("Hello chain"),
    ]
    assert vault.events_for(DecryptionRequested) == [
        DecryptionRequested(user=ALICE, timestamp=clock.now)
    ]


def test_onchain_wrong_password_marks_each_message():
    vault = MessageVault()
    client = onchain_client(vault)
    asyncio.run(client.send_message("secret", PASSWORD))

    asyncio.run(client.decrypt_all_messages("not the password"))
    assert [m.decrypted_text for m in client.messages] == [DECRYPTION_FAILED] * 2
    assert client.error is None


def test_decryption_failures_are_isolated():
    vault = MessageVault()
    session = vault.connect(ALICE)
    session.store_message(bytes.fromhex(encrypt_text("good one", PASSWORD)))
    session.store_message(b"\x00" * 8)
    session.store_message(bytes.fromhex(encrypt_text("other password", "different")))
    session.store_message(bytes.fromhex(encrypt_text("good two", PASSWORD)))

    client = onchain_client(vault)
    asyncio.run(client.load_messages())
    asyncio.run(client.decrypt_all_messages(PASSWORD))

    assert [m.decrypted_text for m in client.messages] == [
        "good one", DECRYPTION_FAILED, DECRYPTION_FAILED, "good two",
    ]
    assert [m.id for m in client.messages] == [0, 1, 2, 3]


def test_decryption_request_failure_does_not_block():
    vault = MessageVault()
    backend = FlakyDecryptionBackend(vault.connect(ALICE))
    client = WhisperVaultClient(
        wallet=connected_wallet(),
        deployments=deployments_for(vault),
        contract_factory=lambda address, wallet: backend,
    )
    asyncio.run(client.send_message("still readable", PASSWORD))

    asyncio.run(client.decrypt_all_messages(PASSWORD))
    assert backend.requests == 1
    assert client.messages[0].decrypted_text == "still readable"


def test_decrypt_without_messages_raises():
    client = local_client()
    with pytest.raises(VaultClientError, match="No messages to decrypt"):
        asyncio.run(client.decrypt_all_messages(PASSWORD))
    assert client.error == "No messages to decrypt"
    assert client.loading is False


def test_onchain_clear_leaves_other_users():
    vault = MessageVault()
    alice = onchain_client(vault, ALICE)
    bob = onchain_client(vault, BOB)
    asyncio.run(alice.send_message("from alice", PASSWORD))
    asyncio.run(bob.send_message("from bob", PASSWORD))

    asyncio.run(alice.clear_messages())

    assert alice.messages == []
    assert vault.get_message_count(ALICE) == 0
    assert vault.get_message_count(BOB) == 2


def test_send_rejects_oversized_message():
    vault = MessageVault()
    client = onchain_client(vault)

    with pytest.raises(VaultRevertError):
        asyncio.run(client.send_message("x" * 20_000, PASSWORD))
    assert client.error == "Message too large"
    assert vault.get_message_count(ALICE) == 0


# =============================================================================
# Fallbacks and errors
# =============================================================================

def test_unavailable_contract_falls_back_to_local():
    storage = LocalStorage()
    storage.save_messages(ALICE, [
        ChatMessage(id=0, sender=ALICE, encrypted_content="ab", timestamp=1, is_response=False),
    ])
    vault = MessageVault()
    client = WhisperVaultClient(
        wallet=connected_wallet(),
        deployments=deployments_for(vault),
        storage=storage,
        contract_factory=lambda a, w: BrokenBackend(ContractUnavailableError("no code")),
    )

    asyncio.run(client.load_messages())
    assert client.error == CONTRACT_UNAVAILABLE
    assert len(client.messages) == 1


def test_reverted_load_reports_detail():
    vault = MessageVault()
    client = WhisperVaultClient(
        wallet=connected_wallet(),
        deployments=deployments_for(vault),
        contract_factory=lambda a, w: BrokenBackend(VaultRevertError("boom")),
    )

    asyncio.run(client.load_messages())
    assert client.error == "Failed to load messages: boom"
    assert client.messages == []


def test_clear_failure_is_reported_not_raised():
    vault = MessageVault()
    client = WhisperVaultClient(
        wallet=connected_wallet(),
        deployments=deployments_for(vault),
        contract_factory=lambda a, w: BrokenBackend(VaultRevertError("nope")),
    )
    client.messages = [
        ChatMessage(id=0, sender=ALICE, encrypted_content="ab", timestamp=1, is_response=False),
    ]

    asyncio.run(client.clear_messages())
    assert client.error == "nope"
    assert len(client.messages) == 1


def test_send_requires_connection():
    client = WhisperVaultClient(
        wallet=MockWalletAdapter(chain_id=CHAIN_ID),
        deployments=StaticDeploymentLoader({}),
    )
    assert client.is_connected is False
    with pytest.raises(NotConnectedError):
        asyncio.run(client.send_message("hi", PASSWORD))


def test_load_without_connection_is_noop():
    client = WhisperVaultClient(
        wallet=MockWalletAdapter(chain_id=CHAIN_ID),
        deployments=StaticDeploymentLoader({}),
    )
    asyncio.run(client.load_messages())
    assert client.messages == []
    assert client.error is None


# =============================================================================
# Authentication
# =============================================================================

@pytest.mark.parametrize("password, message", [
    ("", "Please enter a password"),
    ("   ", "Please enter a password"),
    ("abc", "Password must be at least 6 characters"),
])
def test_authenticate_rejects_weak_input(password, message):
    client = local_client()
    with pytest.raises(AuthenticationError, match=message):
        asyncio.run(client.authenticate(password))
    assert client.is_authenticated is False


def test_authenticate_signs_and_unlocks_session():
    wallet = connected_wallet()
    client = WhisperVaultClient(wallet=wallet, deployments=StaticDeploymentLoader({}))

    result = asyncio.run(client.authenticate(PASSWORD))
    assert len(result.signature) == 65
    signed = wallet.signed_messages[0].decode()
    assert signed.startswith("WhisperLink Authentication\n\n")
    assert f"Address: {ALICE}" in signed

    asyncio.run(client.send_message("uses session password"))
    asyncio.run(client.decrypt_all_messages())
    assert client.messages[0].decrypted_text == "uses session password"

    client.logout()
    assert client.is_authenticated is False
    with pytest.raises(AuthenticationError):
        asyncio.run(client.send_message("no password now"))


# =============================================================================
# Web3-backed contract failures
# =============================================================================

VAULT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


def web3_client(w3, storage=None):
    """Client whose backend is a real VaultContract over a mocked node."""
    return WhisperVaultClient(
        wallet=connected_wallet(),
        deployments=StaticDeploymentLoader({
            "WhisperVault": {str(CHAIN_ID): {"address": VAULT, "chainId": CHAIN_ID}},
        }),
        storage=storage or LocalStorage(),
        contract_factory=lambda address, wallet: VaultContract(
            address, w3=w3, from_address=wallet.address, chain_id=CHAIN_ID,
        ),
    )


def local_history(text="kept locally"):
    return [ChatMessage(
        id=0,
        sender=ALICE,
        encrypted_content=encrypt_text(text, PASSWORD),
        timestamp=1_700_000_000,
        is_response=False,
    )]


def test_rejected_decryption_request_still_decrypts():
    w3 = MagicMock()
    requested = w3.eth.contract.return_value.functions.requestDecryption.return_value
    requested.transact.side_effect = Web3RPCError("insufficient funds for gas * price + value")
    client = web3_client(w3)
    client.messages = local_history("still readable")

    asyncio.run(client.decrypt_all_messages(PASSWORD))

    assert client.messages[0].decrypted_text == "still readable"
    assert client.error is None
    requested.transact.assert_called_once_with({"from": ALICE})


def test_unmined_decryption_request_still_decrypts():
    w3 = MagicMock()
    requested = w3.eth.contract.return_value.functions.requestDecryption.return_value
    requested.transact.return_value = b"\x11" * 32
    w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not mined")
    client = web3_client(w3)
    client.messages = local_history("after timeout")

    asyncio.run(client.decrypt_all_messages(PASSWORD))

    assert client.messages[0].decrypted_text == "after timeout"
    assert client.error is None


def test_rejected_clear_is_reported_not_raised():
    w3 = MagicMock()
    cleared = w3.eth.contract.return_value.functions.clearMessages.return_value
    cleared.transact.side_effect = Web3RPCError("nonce too low")
    storage = LocalStorage()
    storage.save_messages(ALICE, local_history())
    client = web3_client(w3, storage)
    client.messages = local_history()

    asyncio.run(client.clear_messages())

    assert "nonce too low" in client.error
    assert len(client.messages) == 1
    assert len(storage.load_messages(ALICE)) == 1
    assert client.loading is False


def test_node_error_on_load_falls_back_to_local():
    w3 = MagicMock()
    read_all = w3.eth.contract.return_value.functions.getAllMessages.return_value
    read_all.call.side_effect = Web3RPCError("header not found")
    storage = LocalStorage()
    storage.save_messages(ALICE, local_history())
    client = web3_client(w3, storage)

    asyncio.run(client.load_messages())

    assert client.error.startswith("Failed to load messages")
    assert "header not found" in client.error
    assert client.messages == storage.load_messages(ALICE)


def test_unreachable_node_on_load_falls_back_to_local():
    w3 = MagicMock()
    read_all = w3.eth.contract.return_value.functions.getAllMessages.return_value
    read_all.call.side_effect = ConnectionRefusedError()
    storage = LocalStorage()
    storage.save_messages(ALICE, local_history())
    client = web3_client(w3, storage)

    asyncio.run(client.load_messages())

    assert client.error == CONTRACT_UNAVAILABLE
    assert len(client.messages) == 1
