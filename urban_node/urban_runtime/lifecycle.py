"""
Proposal lifecycle: pending -> approved | rejected, owner only, no way back.
"""

from __future__ import annotations

import logging

from .errors import InvalidTransitionError, UnauthorizedTransitionError
from .models import Proposal, ProposalStatus
from .repository import ProposalRepository

log = logging.getLogger(__name__)

TERMINAL = (ProposalStatus.APPROVED, ProposalStatus.REJECTED)


def is_owner(proposal: Proposal, actor: str | None) -> bool:
    return bool(actor) and actor.lower() == proposal.owner.lower()


def transition(proposal: Proposal, actor: str | None, target: ProposalStatus) -> Proposal:
    target = ProposalStatus(target)
    if target not in TERMINAL:
        raise InvalidTransitionError(f"cannot move a proposal to {target.value}")
    if proposal.status != ProposalStatus.PENDING:
        raise InvalidTransitionError(
            f"proposal {proposal.id} is {proposal.status.value}; only pending proposals can change"
        )
    if not is_owner(proposal, actor):
        raise UnauthorizedTransitionError(f"only the owner of {proposal.id} can change its status")
    return proposal.model_copy(update={"status": target})


class LifecycleService:
    def __init__(self, repository: ProposalRepository) -> None:
        self.repository = repository

    async def set_status(self, proposal_id: str, target: ProposalStatus, actor: str | None) -> Proposal:
        current = await self.repository.get(proposal_id)
        updated = transition(current, actor, target)
        await self.repository.set_status(proposal_id, updated.status)
        log.info("%s set %s to %s", actor, proposal_id, updated.status.value)
        return updated

    async def approve(self, proposal_id: str, actor: str | None) -> Proposal:
        return await self.set_status(proposal_id, ProposalStatus.APPROVED, actor)

    async def reject(self, proposal_id: str, actor: str | None) -> Proposal:
        return await self.set_status(proposal_id, ProposalStatus.REJECTED, actor)
