import pytest

from urban_node.shared_runtime import UrbanRuntime
from urban_node.storage.directory import MemoryDirectory
from urban_node.urban_runtime.identity import IdentityProvider
from urban_node.urban_runtime.errors import SignatureDeclinedError
from urban_node.urban_runtime.models import ProposalDraft
from urban_node.urban_runtime.repository import ProposalRepository

ALICE = "0xA11CE00000000000000000000000000000000001"
BOB = "0xB0B0000000000000000000000000000000000002"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedIdentity(IdentityProvider):
    """Signs or declines as told; records every prompt it receives."""

    def __init__(self, address: str = ALICE, decline: bool = False):
        self.address = address
        self.decline = decline
        self.prompts = []

    async def sign(self, message: str) -> str:
        self.prompts.append(message)
        if self.decline:
            raise SignatureDeclinedError("user rejected the signature request")
        return "0xsigned"


def make_draft(**overrides) -> ProposalDraft:
    data = {
        "title": "Bike lanes on Main St",
        "description": "Protected lanes from the station to the market",
        "location": "District 5",
        "vote_count": 42,
    }
    data.update(overrides)
    return ProposalDraft(**data)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def directory():
    return MemoryDirectory(address="0x00000000000000000000000000000000000c0ffe")


@pytest.fixture
def repo(directory, clock):
    return ProposalRepository(directory, clock=clock)


@pytest.fixture
def runtime(directory, clock):
    return UrbanRuntime(directory, cfg={}, clock=clock)
