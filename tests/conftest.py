# tests/conftest.py
import pytest

from whisper_vault.client import clear_deployment_cache

ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
CAROL = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"

CHAIN_ID = 31337


@pytest.fixture(autouse=True)
def _fresh_deployment_cache():
    clear_deployment_cache()
    yield
    clear_deployment_cache()


class Clock:
    """Manually advanced block clock."""

    def __init__(self, start: int = 1_700_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def tick(self, seconds: int = 1) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return Clock()
