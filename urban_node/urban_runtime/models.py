"""
Proposal models and the directory wire format.

Parsing is lenient where a listing can still make progress:
  - an absent or blank Index is empty
  - non-string Index entries are dropped (and logged); the rest are kept
  - a record without a status is pending

and strict where a record cannot be shown meaningfully:
  - a record without a numeric timestamp is rejected
  - a record without a "votes" string is rejected, since there is nothing
    to disclose; listing skips it like any other unreadable record
"""

from __future__ import annotations

import json
import logging
import math
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .errors import ParseError, ValidationError

log = logging.getLogger(__name__)

__all__ = [
    "DISTRICTS",
    "INDEX_KEY",
    "ProposalStatus",
    "Proposal",
    "ProposalDraft",
    "record_key",
    "parse_index",
    "parse_record",
    "dump_json",
]

# Well-known directory key holding the JSON array of proposal ids.
INDEX_KEY = "proposal_keys"

DISTRICTS: List[str] = [f"District {i}" for i in range(1, 17)]


class ProposalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Proposal(BaseModel):
    id: str
    encoded_votes: str
    created_at: int
    owner: str
    location: str
    status: ProposalStatus = ProposalStatus.PENDING
    title: str = ""
    description: str = ""

    def to_record(self) -> Dict[str, Any]:
        """Wire form stored under record_key(id); the id itself is not stored."""
        return {
            "votes": self.encoded_votes,
            "timestamp": self.created_at,
            "owner": self.owner,
            "location": self.location,
            "status": self.status.value,
            "title": self.title,
            "description": self.description,
        }


class ProposalDraft(BaseModel):
    title: str = ""
    description: str = ""
    location: str = ""
    vote_count: float = Field(default=0)

    def validate_for_submit(self) -> None:
        if not self.title.strip():
            raise ValidationError("title is required")
        if not self.location:
            raise ValidationError("location is required")
        if self.location not in DISTRICTS:
            raise ValidationError(f"unknown district: {self.location}")
        if not math.isfinite(self.vote_count) or self.vote_count < 0:
            raise ValidationError("vote_count must be a finite number >= 0")


def record_key(proposal_id: str) -> str:
    return f"proposal_{proposal_id}"


def dump_json(obj: Any) -> bytes:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _load_json(raw: bytes, what: str) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"malformed {what}: {e}") from e


def parse_index(raw: bytes) -> List[str]:
    """
    Empty bytes (absent key) or blank text is an empty index.
    Anything else must be a JSON array; entries that are not strings
    cannot name a record and are dropped.
    """
    if not raw:
        return []
    try:
        if not raw.decode("utf-8").strip():
            return []
    except UnicodeDecodeError as e:
        raise ParseError(f"malformed proposal index: {e}") from e
    keys = _load_json(raw, "proposal index")
    if not isinstance(keys, list):
        raise ParseError("proposal index is not a JSON array")
    out: List[str] = []
    for k in keys:
        if not isinstance(k, str):
            log.warning("dropping non-string proposal index entry %r", k)
            continue
        out.append(k)
    return out


def parse_record(proposal_id: str, raw: bytes) -> Proposal:
    data = _load_json(raw, f"proposal record {proposal_id}")
    if not isinstance(data, dict):
        raise ParseError(f"proposal record {proposal_id} is not a JSON object")

    ts = data.get("timestamp")
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        raise ParseError(f"proposal record {proposal_id} has no numeric timestamp")

    status = data.get("status") or ProposalStatus.PENDING.value
    try:
        status = ProposalStatus(status)
    except ValueError as e:
        raise ParseError(f"proposal record {proposal_id} has unknown status {status!r}") from e

    votes = data.get("votes")
    if not isinstance(votes, str):
        raise ParseError(f"proposal record {proposal_id} has no encoded votes")

    return Proposal(
        id=proposal_id,
        encoded_votes=votes,
        created_at=int(ts),
        owner=str(data.get("owner") or ""),
        location=str(data.get("location") or ""),
        status=status,
        title=str(data.get("title") or ""),
        description=str(data.get("description") or ""),
    )
