"""
urban_node/api/proposals.py
---------------------------
Proposal routes: listing, dashboard counters, district map, submission,
owner approval/rejection and signature-gated vote disclosure.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from ..security.current_user import require_wallet_address, wallet_address_optional
from ..shared_runtime import UrbanRuntime
from ..urban_runtime.disclosure import build_challenge
from ..urban_runtime.errors import (
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
from ..urban_runtime.identity import PresignedIdentity
from ..urban_runtime.models import Proposal, ProposalDraft, ProposalStatus
from ..urban_runtime.repository import group_by_district, status_counts

router = APIRouter(tags=["proposals"])

__all__ = ["router", "ProposalCreate", "RevealRequest"]


class ProposalCreate(BaseModel):
    title: str
    description: str = ""
    location: str
    vote_count: float


class RevealRequest(BaseModel):
    signature: Optional[str] = None


def get_runtime(request: Request) -> UrbanRuntime:
    return request.app.state.runtime


def _http_error(e: UrbanError) -> HTTPException:
    # Order matters: subclasses before their bases.
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, UnauthorizedTransitionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (SignatureDeclinedError, ProviderError)):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, (DecodeError, ParseError)):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, WriteRejectedError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, DirectoryError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.get("/proposals")
async def list_proposals(rt: UrbanRuntime = Depends(get_runtime)) -> Dict[str, Any]:
    try:
        proposals = await rt.repository.list_all()
    except UrbanError as e:
        raise _http_error(e)
    return {"ok": True, "proposals": proposals}


@router.get("/proposals/stats")
async def proposal_stats(rt: UrbanRuntime = Depends(get_runtime)) -> Dict[str, Any]:
    try:
        proposals = await rt.repository.list_all()
    except UrbanError as e:
        raise _http_error(e)
    return {"ok": True, **status_counts(proposals)}


@router.get("/proposals/districts")
async def proposals_by_district(rt: UrbanRuntime = Depends(get_runtime)) -> Dict[str, Any]:
    try:
        proposals = await rt.repository.list_all()
    except UrbanError as e:
        raise _http_error(e)
    districts: Dict[str, List[Proposal]] = group_by_district(proposals)
    return {"ok": True, "districts": districts}


@router.get("/proposals/{proposal_id}")
async def get_proposal(proposal_id: str, rt: UrbanRuntime = Depends(get_runtime)) -> Dict[str, Any]:
    try:
        proposal = await rt.repository.get(proposal_id)
    except UrbanError as e:
        raise _http_error(e)
    return {"ok": True, "proposal": proposal}


@router.post("/proposals")
async def create_proposal(
    body: ProposalCreate,
    wallet: str = Depends(require_wallet_address),
    rt: UrbanRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    draft = ProposalDraft(
        title=body.title,
        description=body.description,
        location=body.location,
        vote_count=body.vote_count,
    )
    try:
        proposal = await rt.submit(draft, wallet)
    except UrbanError as e:
        raise _http_error(e)
    return {"ok": True, "proposal": proposal}


async def _change_status(rt: UrbanRuntime, proposal_id: str, target: ProposalStatus, wallet: str) -> Dict[str, Any]:
    try:
        proposal = await rt.change_status(proposal_id, target, wallet)
    except UrbanError as e:
        raise _http_error(e)
    return {"ok": True, "proposal": proposal}


@router.post("/proposals/{proposal_id}/approve")
async def approve_proposal(
    proposal_id: str,
    wallet: str = Depends(require_wallet_address),
    rt: UrbanRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    return await _change_status(rt, proposal_id, ProposalStatus.APPROVED, wallet)


@router.post("/proposals/{proposal_id}/reject")
async def reject_proposal(
    proposal_id: str,
    wallet: str = Depends(require_wallet_address),
    rt: UrbanRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    return await _change_status(rt, proposal_id, ProposalStatus.REJECTED, wallet)


@router.get("/disclosure/challenge")
async def disclosure_challenge(rt: UrbanRuntime = Depends(get_runtime)) -> Dict[str, Any]:
    try:
        params = await rt.disclosure_params()
    except UrbanError as e:
        raise _http_error(e)
    return {
        "ok": True,
        "message": build_challenge(params),
        "contract_address": params.contract_address,
        "chain_id": params.chain_id,
        "start_timestamp": params.start_timestamp,
        "duration_days": params.duration_days,
    }


@router.post("/proposals/{proposal_id}/reveal")
async def reveal_votes(
    proposal_id: str,
    body: RevealRequest,
    wallet: Optional[str] = Depends(wallet_address_optional),
    rt: UrbanRuntime = Depends(get_runtime),
) -> Dict[str, Any]:
    identity = PresignedIdentity(address=wallet, signature=body.signature)
    try:
        votes = await rt.reveal(proposal_id, identity)
    except UrbanError as e:
        raise _http_error(e)
    return {"ok": True, "proposal_id": proposal_id, "votes": votes}
