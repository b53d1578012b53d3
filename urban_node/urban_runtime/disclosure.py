from __future__ import annotations

"""
Signature-gated disclosure of a proposal's obscured vote count.

    IDLE -> AWAITING_SIGNATURE -> REVEALED | FAILED

Toggling while REVEALED collapses back to IDLE without a new prompt.
Any successful signature unlocks local decoding; the signature is not
checked against the proposal or the value. The outcome is never persisted.
"""

import logging
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from . import codec
from .errors import DecodeError, ProviderError, SignatureDeclinedError, UrbanError
from .identity import IdentityProvider

log = logging.getLogger(__name__)

DEFAULT_CHAIN_ID = 11155111  # Sepolia
DEFAULT_DURATION_DAYS = 30
PUBLIC_KEY_HEX_DIGITS = 2000


class DisclosureState(str, Enum):
    IDLE = "idle"
    AWAITING_SIGNATURE = "awaiting_signature"
    REVEALED = "revealed"
    FAILED = "failed"


def generate_public_key() -> str:
    return "0x" + secrets.token_hex(PUBLIC_KEY_HEX_DIGITS // 2)


@dataclass(frozen=True)
class DisclosureParams:
    public_key: str
    contract_address: str
    chain_id: int
    start_timestamp: int
    duration_days: int = DEFAULT_DURATION_DAYS

    @classmethod
    def fresh(
        cls,
        contract_address: str,
        chain_id: int,
        *,
        duration_days: int = DEFAULT_DURATION_DAYS,
        clock: Callable[[], float] = time.time,
    ) -> "DisclosureParams":
        return cls(
            public_key=generate_public_key(),
            contract_address=contract_address,
            chain_id=int(chain_id),
            start_timestamp=int(clock()),
            duration_days=int(duration_days),
        )


def build_challenge(params: DisclosureParams) -> str:
    # Field order and labels are what wallets display and sign; keep them fixed.
    return (
        f"publickey:{params.public_key}\n"
        f"contractAddresses:{params.contract_address}\n"
        f"contractsChainId:{params.chain_id}\n"
        f"startTimestamp:{params.start_timestamp}\n"
        f"durationDays:{params.duration_days}"
    )


@dataclass
class DisclosureSession:
    identity: IdentityProvider
    params: DisclosureParams
    state: DisclosureState = DisclosureState.IDLE
    value: Optional[float] = None
    error: Optional[UrbanError] = None
    challenge: str = field(init=False)

    def __post_init__(self) -> None:
        self.challenge = build_challenge(self.params)

    def collapse(self) -> None:
        self.state = DisclosureState.IDLE
        self.value = None
        self.error = None

    async def reveal(self, encoded_votes: str) -> float:
        """Run one signature exchange; raise the failure instead of swallowing it."""
        self.value = None
        self.error = None
        self.state = DisclosureState.AWAITING_SIGNATURE
        try:
            await self.identity.sign(self.challenge)
        except (SignatureDeclinedError, ProviderError) as e:
            self._fail(e)
            raise
        except Exception as e:
            err = ProviderError(f"identity provider failed: {e}")
            self._fail(err)
            raise err from e

        try:
            value = codec.decode(encoded_votes)
        except DecodeError as e:
            self._fail(e)
            raise

        self.state = DisclosureState.REVEALED
        self.value = value
        return value

    def _fail(self, err: UrbanError) -> None:
        self.state = DisclosureState.FAILED
        self.error = err
        log.warning("disclosure failed: %s", err)

    async def toggle(self, encoded_votes: str) -> Optional[float]:
        """Show/hide: hides when revealed, otherwise prompts for a signature."""
        if self.state == DisclosureState.REVEALED:
            self.collapse()
            return None
        try:
            return await self.reveal(encoded_votes)
        except (SignatureDeclinedError, ProviderError, DecodeError):
            return None
