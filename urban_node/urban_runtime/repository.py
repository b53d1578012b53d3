from __future__ import annotations

"""
ProposalRepository: canonical proposal state on top of a DirectoryClient.

Layout in the directory
-----------------------
  proposal_keys      JSON array of proposal ids (the Index)
  proposal_<id>      JSON record {votes, timestamp, owner, location,
                     status, title, description}

The Index is the only enumeration. create() writes the record first and
only then appends the id, so an id visible in the Index always resolves.

Known race: the Index append is a plain read-modify-write. Two concurrent
create() calls can both read the same Index and the later write drops the
other id. The directory has no compare-and-swap, so this is left as is.
"""

import json
import logging
import random
import string
import time
from collections import Counter
from typing import Callable, Dict, Iterable, List

from ..storage.directory import DirectoryClient
from . import codec
from .errors import DirectoryError, NotFoundError, ParseError, ValidationError
from .models import (
    DISTRICTS,
    INDEX_KEY,
    Proposal,
    ProposalDraft,
    ProposalStatus,
    dump_json,
    parse_index,
    parse_record,
    record_key,
)

log = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def new_proposal_id(now: float) -> str:
    suffix = "".join(random.choice(_BASE36) for _ in range(4))
    return f"prop-{int(now * 1000)}-{suffix}"


class ProposalRepository:
    def __init__(self, directory: DirectoryClient, clock: Callable[[], float] = time.time) -> None:
        self.directory = directory
        self.clock = clock

    # ------------------------
    # Reads
    # ------------------------
    async def _read_index(self) -> List[str]:
        raw = await self.directory.get(INDEX_KEY)
        return parse_index(raw)

    async def list_all(self) -> List[Proposal]:
        if not await self.directory.is_available():
            return []

        try:
            keys = await self._read_index()
        except ParseError:
            log.warning("proposal index unreadable; listing nothing", exc_info=True)
            return []

        out: List[Proposal] = []
        for pid in keys:
            try:
                raw = await self.directory.get(record_key(pid))
            except DirectoryError:
                log.exception("error loading proposal %s", pid)
                continue
            if not raw:
                log.warning("proposal %s is listed but has no record", pid)
                continue
            try:
                out.append(parse_record(pid, raw))
            except ParseError as e:
                log.warning("skipping proposal %s: %s", pid, e)

        # sorted() is stable, so equal timestamps keep Index order
        return sorted(out, key=lambda p: p.created_at, reverse=True)

    async def get(self, proposal_id: str) -> Proposal:
        raw = await self.directory.get(record_key(proposal_id))
        if not raw:
            raise NotFoundError(proposal_id)
        return parse_record(proposal_id, raw)

    # ------------------------
    # Writes
    # ------------------------
    async def create(self, draft: ProposalDraft, owner: str) -> str:
        if not owner:
            raise ValidationError("wallet_not_connected")
        draft.validate_for_submit()

        now = self.clock()
        pid = new_proposal_id(now)
        proposal = Proposal(
            id=pid,
            encoded_votes=codec.encode(draft.vote_count),
            created_at=int(now),
            owner=owner,
            location=draft.location,
            status=ProposalStatus.PENDING,
            title=draft.title,
            description=draft.description,
        )

        # Record first, Index second.
        await self.directory.set(record_key(pid), dump_json(proposal.to_record()))

        try:
            keys = await self._read_index()
        except ParseError:
            log.error("proposal index unreadable; rewriting it with %s only", pid, exc_info=True)
            keys = []
        keys.append(pid)
        await self.directory.set(INDEX_KEY, dump_json(keys))

        log.info("created proposal %s in %s by %s", pid, proposal.location, owner)
        return pid

    async def set_status(self, proposal_id: str, new_status: ProposalStatus) -> None:
        new_status = ProposalStatus(new_status)
        key = record_key(proposal_id)
        raw = await self.directory.get(key)
        if not raw:
            raise NotFoundError(proposal_id)

        # Validate the record, then merge into the raw object so unknown
        # fields survive the rewrite.
        parse_record(proposal_id, raw)
        data = json.loads(raw.decode("utf-8"))
        data["status"] = new_status.value
        await self.directory.set(key, dump_json(data))
        log.info("proposal %s -> %s", proposal_id, new_status.value)


# ---------------------------------------------------------------------------
# Read-side summaries (dashboard counters, district map)
# ---------------------------------------------------------------------------


def status_counts(proposals: Iterable[Proposal]) -> Dict[str, int]:
    items = list(proposals)
    counts = Counter(p.status.value for p in items)
    out = {"total": len(items)}
    for status in ProposalStatus:
        out[status.value] = counts.get(status.value, 0)
    return out


def group_by_district(proposals: Iterable[Proposal]) -> Dict[str, List[Proposal]]:
    out: Dict[str, List[Proposal]] = {d: [] for d in DISTRICTS}
    for p in proposals:
        if p.location in out:
            out[p.location].append(p)
    return out
