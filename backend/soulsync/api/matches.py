"""Match resolution endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from soulsync.api.deps import get_bearer_token, get_orchestrator, require_identity
from soulsync.database import get_db
from soulsync.middleware.rate_limit import get_rate_limit, limiter
from soulsync.models.identity import Identity
from soulsync.models.match import MatchRecord
from soulsync.schemas.match import (
    CandidateProfile,
    MatchDeniedResponse,
    MatchExhaustedResponse,
    MatchFailedResponse,
    MatchRecordResponse,
    MatchResolvedResponse,
    QuotaResponse,
    RejectionResetResponse,
)
from soulsync.services.orchestrator import Denied, Exhausted, MatchOrchestrator, Resolved

router = APIRouter(prefix="/matches", tags=["matches"])


@router.post(
    "/resolve",
    response_model=MatchResolvedResponse,
    responses={
        401: {"model": MatchFailedResponse},
        429: {"model": MatchDeniedResponse},
    },
)
@limiter.limit(get_rate_limit("resolve"))
def resolve_match(
    request: Request,
    token: Optional[str] = Depends(get_bearer_token),
    orchestrator: MatchOrchestrator = Depends(get_orchestrator),
):
    """
    Find the best-scoring candidate for the caller

    Every call that gets past authentication spends one daily quota slot,
    even when the pool turns out to be empty.

    Outcomes:
    - 200 ``resolved``: top candidate, score and remaining quota
    - 200 ``exhausted``: nobody left to match today
    - 429 ``denied``: quota used up, retry after ``reset_at``
    - 401 ``failed``: reauthenticate
    """
    outcome = orchestrator.resolve(token or "")

    if isinstance(outcome, Resolved):
        candidate = outcome.candidate
        return MatchResolvedResponse(
            candidate_id=outcome.candidate_id,
            score=outcome.score,
            remaining_quota_today=outcome.remaining_quota_today,
            candidate=CandidateProfile(
                identity_id=candidate.identity_id,
                name=candidate.name,
                age=candidate.age,
                bio=candidate.bio,
                location=candidate.location,
                interests=candidate.interests,
            ),
        )

    if isinstance(outcome, Exhausted):
        return JSONResponse(status_code=status.HTTP_200_OK, content=MatchExhaustedResponse().model_dump())

    if isinstance(outcome, Denied):
        body = MatchDeniedResponse(reset_at=outcome.reset_at, remaining=outcome.remaining)
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=jsonable_encoder(body),
        )

    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=MatchFailedResponse().model_dump(),
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.get("/quota", response_model=QuotaResponse)
def get_quota(
    identity: Identity = Depends(require_identity),
    orchestrator: MatchOrchestrator = Depends(get_orchestrator),
) -> QuotaResponse:
    """Today's quota usage; reading it never spends a slot."""
    quota = orchestrator.quota
    return QuotaResponse(
        tier=identity.tier,
        limit=quota.limit(identity.tier),
        used=quota.count_today(identity.identity_id),
        remaining=quota.remaining(identity.identity_id, identity.tier),
        reset_at=quota.reset_at(),
    )


@router.get("", response_model=List[MatchRecordResponse])
def list_matches(
    skip: int = 0,
    limit: int = 50,
    match_status: Optional[str] = None,
    identity: Identity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    """
    List the caller's match history, newest first

    Query parameters:
    - skip: Number of records to skip
    - limit: Maximum number of records to return
    - match_status: Filter by status (resolved/accepted/rejected)
    """
    query = db.query(MatchRecord).filter(MatchRecord.identity_id == identity.identity_id)
    if match_status:
        query = query.filter(MatchRecord.status == match_status)
    return (
        query.order_by(MatchRecord.created_at.desc(), MatchRecord.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


@router.post("/rejections/reset", response_model=RejectionResetResponse)
def reset_rejections(
    identity: Identity = Depends(require_identity),
    orchestrator: MatchOrchestrator = Depends(get_orchestrator),
) -> RejectionResetResponse:
    """Forget today's rejections so those candidates can be offered again."""
    return RejectionResetResponse(cleared=orchestrator.reset_rejections(identity))


@router.post("/{candidate_id}/accept", response_model=MatchRecordResponse)
def accept_match(
    candidate_id: str,
    identity: Identity = Depends(require_identity),
    orchestrator: MatchOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.accept(identity, candidate_id)


@router.post("/{candidate_id}/reject", response_model=MatchRecordResponse)
def reject_match(
    candidate_id: str,
    identity: Identity = Depends(require_identity),
    orchestrator: MatchOrchestrator = Depends(get_orchestrator),
):
    """Pass on a resolved candidate; they are skipped for the rest of the day."""
    return orchestrator.reject(identity, candidate_id)
