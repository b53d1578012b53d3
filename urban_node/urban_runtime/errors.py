from __future__ import annotations

"""
Error taxonomy for the proposal runtime.

Propagation policy
------------------
- ParseError raised for a single record while listing is caught by the
  repository, logged, and the record is skipped.
- Everything else propagates to the caller with a readable message.
  Nothing here is fatal; callers retry by invoking the operation again.
"""


class UrbanError(Exception):
    """Base class for all runtime errors."""


class ParseError(UrbanError):
    """Stored JSON (a record or the index) could not be parsed."""


class NotFoundError(UrbanError):
    """The operation targets a proposal record that does not exist."""

    def __init__(self, proposal_id: str):
        super().__init__(f"Proposal not found: {proposal_id}")
        self.proposal_id = proposal_id


class InvalidTransitionError(UrbanError):
    """Lifecycle rule violated; no state change happened."""


class UnauthorizedTransitionError(InvalidTransitionError):
    """The acting identity is not the proposal owner."""


class SignatureDeclinedError(UrbanError):
    """The viewer declined to sign the disclosure challenge."""


class ProviderError(UrbanError):
    """The identity provider failed (network, wallet not connected, ...)."""


class DecodeError(UrbanError, ValueError):
    """A codec token could not be turned back into a number."""


class ValidationError(UrbanError, ValueError):
    """A proposal draft is missing required data."""


class DirectoryError(UrbanError):
    """The key-value directory transport failed."""


class WriteRejectedError(DirectoryError):
    """The directory refused a write for the current identity."""
