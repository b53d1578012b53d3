"""
Shared runtime: wires the directory, repository, lifecycle, disclosure
parameters and status notices together for the API and the CLI.

Notice flow for every user-facing operation:
  pending notice -> operation -> success (short ttl) | error (longer ttl)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

from .config import get_chain_id, get_duration_days, get_notice_ttls
from .storage.directory import DirectoryClient, build_client
from .urban_runtime import notifications as nt
from .urban_runtime.disclosure import DisclosureParams, DisclosureSession
from .urban_runtime.errors import UrbanError, WriteRejectedError
from .urban_runtime.identity import IdentityProvider
from .urban_runtime.lifecycle import LifecycleService
from .urban_runtime.models import Proposal, ProposalDraft, ProposalStatus
from .urban_runtime.repository import ProposalRepository

log = logging.getLogger(__name__)


class UrbanRuntime:
    def __init__(
        self,
        directory: DirectoryClient,
        cfg: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cfg = cfg or {}
        self.clock = clock
        self.directory = directory
        self.repository = ProposalRepository(directory, clock=clock)
        self.lifecycle = LifecycleService(self.repository)
        self.notices = nt.NotificationBoard(clock=clock)
        self.ttls = get_notice_ttls(self.cfg)
        self._params: Optional[DisclosureParams] = None

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "UrbanRuntime":
        return cls(build_client(cfg), cfg)

    # ------------------------
    # Proposals
    # ------------------------
    async def submit(self, draft: ProposalDraft, owner: Optional[str]) -> Proposal:
        self.notices.post(nt.PENDING, nt.MSG_ENCRYPTING)
        try:
            pid = await self.repository.create(draft, owner or "")
        except WriteRejectedError:
            self.notices.post(nt.ERROR, nt.MSG_USER_REJECTED, ttl=self.ttls["error"])
            raise
        except UrbanError as e:
            self.notices.post(nt.ERROR, f"Submission failed: {e}", ttl=self.ttls["error"])
            raise
        self.notices.post(nt.SUCCESS, nt.MSG_SUBMITTED, ttl=self.ttls["success"])
        return await self.repository.get(pid)

    async def change_status(self, proposal_id: str, target: ProposalStatus, actor: Optional[str]) -> Proposal:
        verb = "Approval" if target == ProposalStatus.APPROVED else "Rejection"
        self.notices.post(nt.PENDING, nt.MSG_PROCESSING)
        try:
            updated = await self.lifecycle.set_status(proposal_id, target, actor)
        except UrbanError as e:
            self.notices.post(nt.ERROR, f"{verb} failed: {e}", ttl=self.ttls["error"])
            raise
        done = nt.MSG_APPROVED if target == ProposalStatus.APPROVED else nt.MSG_REJECTED
        self.notices.post(nt.SUCCESS, done, ttl=self.ttls["success"])
        return updated

    # ------------------------
    # Disclosure
    # ------------------------
    async def disclosure_params(self) -> DisclosureParams:
        # Generated once per runtime, like the session parameters of a page load.
        if self._params is None:
            address = await self.directory.get_address()
            self._params = DisclosureParams.fresh(
                address,
                get_chain_id(self.cfg),
                duration_days=get_duration_days(self.cfg),
                clock=self.clock,
            )
        return self._params

    async def open_disclosure(self, identity: IdentityProvider) -> DisclosureSession:
        return DisclosureSession(identity=identity, params=await self.disclosure_params())

    async def reveal(self, proposal_id: str, identity: IdentityProvider) -> float:
        proposal = await self.repository.get(proposal_id)
        session = await self.open_disclosure(identity)
        return await session.reveal(proposal.encoded_votes)

    async def aclose(self) -> None:
        self.notices.clear()
        await self.directory.aclose()
