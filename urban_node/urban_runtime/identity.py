"""
Identity providers used by the disclosure exchange.

An identity has an address (wallet string) and can sign a text
message. Signing failures surface as SignatureDeclinedError or ProviderError;
the disclosure session treats both the same way.
"""

from __future__ import annotations

import abc
import hashlib
from typing import Optional

from nacl.encoding import HexEncoder
from nacl.signing import SigningKey

from .errors import ProviderError, SignatureDeclinedError


class IdentityProvider(abc.ABC):
    address: Optional[str] = None

    @abc.abstractmethod
    async def sign(self, message: str) -> str:
        ...


def address_from_verify_key(verify_key_hex: str) -> str:
    """0x + last 20 bytes of sha256(verify key), lowercase hex."""
    digest = hashlib.sha256(bytes.fromhex(verify_key_hex)).digest()
    return "0x" + digest[-20:].hex()


class WalletIdentity(IdentityProvider):
    """Local Ed25519 wallet (PyNaCl). Signatures are hex strings."""

    def __init__(self, secret_key_hex: Optional[str] = None) -> None:
        if secret_key_hex:
            self._sk = SigningKey(secret_key_hex, encoder=HexEncoder)
        else:
            self._sk = SigningKey.generate()
        self.verify_key_hex = self._sk.verify_key.encode(encoder=HexEncoder).decode("ascii")
        self.address = address_from_verify_key(self.verify_key_hex)

    @property
    def secret_key_hex(self) -> str:
        return self._sk.encode(encoder=HexEncoder).decode("ascii")

    async def sign(self, message: str) -> str:
        return self._sk.sign(message.encode("utf-8")).signature.hex()


class PresignedIdentity(IdentityProvider):
    """
    A signature produced outside this process (e.g. by a browser wallet)
    and handed in with the request. No signature means the viewer declined.
    """

    def __init__(self, address: Optional[str], signature: Optional[str]) -> None:
        self.address = address
        self.signature = signature

    async def sign(self, message: str) -> str:
        if not self.address:
            raise ProviderError("wallet_not_connected")
        if not self.signature:
            raise SignatureDeclinedError("user rejected the signature request")
        return self.signature
