"""
urban_runtime: proposal codec, repository, lifecycle and disclosure.
"""

from .errors import (
    DecodeError,
    DirectoryError,
    InvalidTransitionError,
    NotFoundError,
    ParseError,
    ProviderError,
    SignatureDeclinedError,
    UnauthorizedTransitionError,
    UrbanError,
    ValidationError,
    WriteRejectedError,
)

__all__ = [
    "DecodeError",
    "DirectoryError",
    "InvalidTransitionError",
    "NotFoundError",
    "ParseError",
    "ProviderError",
    "SignatureDeclinedError",
    "UnauthorizedTransitionError",
    "UrbanError",
    "ValidationError",
    "WriteRejectedError",
]
