# urban_node/urban_runtime/codec.py
"""
Vote-count codec.

NOT encryption. A token is the literal prefix "FHE-" followed by the base64
form of the number's decimal text. It stands in for a homomorphic ciphertext
and keeps that placeholder's exact observable behavior:

    encode(42)          -> "FHE-NDI="
    decode("FHE-NDI=")  -> 42.0
    decode("FHE-NDI")   -> 42.0   (padding optional, as with atob)
    decode("17")        -> 17.0   (legacy plain tokens)
"""

from __future__ import annotations

import base64
import binascii
import math
import re
from typing import Union

from .errors import DecodeError

PREFIX = "FHE-"

Number = Union[int, float]

# Plain decimal / scientific notation, plus the infinities encode() can emit.
_NUMBER_RE = re.compile(r"^[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)$")

_B64_BODY_RE = re.compile(r"^[A-Za-z0-9+/]*$")


def _number_text(value: Number) -> str:
    """Render a number the way a JavaScript client would (42.0 -> "42")."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _parse_number(text: str) -> float:
    s = text.strip()
    if not _NUMBER_RE.match(s):
        raise DecodeError(f"not a number: {text!r}")
    if s.endswith("Infinity"):
        return -math.inf if s.startswith("-") else math.inf
    return float(s)


def encode(value: Number) -> str:
    raw = _number_text(value).encode("ascii")
    return PREFIX + base64.b64encode(raw).decode("ascii")


def _forgiving_b64decode(body: str) -> bytes:
    """
    Browser-style base64 decode: whitespace is ignored and padding is
    optional, so "NDI" and "NDI=" both give b"42".
    """
    s = "".join(body.split())
    if len(s) % 4 == 0:
        if s.endswith("=="):
            s = s[:-2]
        elif s.endswith("="):
            s = s[:-1]
    if len(s) % 4 == 1 or not _B64_BODY_RE.match(s):
        raise binascii.Error("invalid base64 body")
    return base64.b64decode(s + "=" * (-len(s) % 4), validate=True)


def decode(token: str) -> float:
    if not isinstance(token, str):
        raise DecodeError(f"token must be a string, got {type(token).__name__}")
    if not token.startswith(PREFIX):
        return _parse_number(token)
    try:
        text = _forgiving_b64decode(token[len(PREFIX):]).decode("ascii")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise DecodeError(f"malformed token {token!r}: {e}") from e
    return _parse_number(text)


def is_encoded(token: str) -> bool:
    return isinstance(token, str) and token.startswith(PREFIX)
