"""Tests for candidate selection and match resolution"""
from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from zoneinfo import ZoneInfo

from soulsync.config import settings
from soulsync.errors import CandidatesExhausted, MatchNotFound
from soulsync.models.identity import TIER_PREMIUM
from soulsync.models.match import MATCH_ACCEPTED, MATCH_REJECTED, MatchRecord
from soulsync.services.candidates import CandidateSelector, UserDirectory
from soulsync.services.orchestrator import (
    EXHAUSTED_RESET_AND_RETRY,
    Denied,
    Exhausted,
    Failed,
    MatchOrchestrator,
    MatchState,
    Resolved,
)
from soulsync.services.quota import QuotaTracker
from soulsync.services.token_service import TokenService

MINE = {"val_children": True, "rel_commitment": True, "compat_faith": False, "life_fitness": 10}
OPPOSITE = {"val_children": False, "rel_commitment": False, "compat_faith": True, "life_fitness": 1}


@pytest.fixture
def world(db, questions, make_identity):
    """Requester plus a close match, a poor match and two ineligible identities"""
    me = make_identity("Me", answers=MINE)
    close = make_identity("Close", answers=MINE, minutes_ago=5)
    far = make_identity("Far", answers=OPPOSITE, minutes_ago=10)
    make_identity("Unverified", answers=MINE, verified=False)
    make_identity("Gone", answers=MINE, active=False)
    return {"me": me, "close": close, "far": far}


def _token(db, clock, identity):
    return TokenService(db, clock).issue(identity.identity_id).access_token


# ---------------------------------------------------------------------------
# Candidate selection
# ---------------------------------------------------------------------------

def test_directory_lists_active_verified_most_recent_first(db, questions, make_identity):
    me = make_identity("Me")
    old = make_identity("Old", minutes_ago=60)
    new = make_identity("New", minutes_ago=1)
    make_identity("Hidden", verified=False)

    ids = [c.identity_id for c in UserDirectory(db, batch_size=1).list_active_verified(excluding=me.identity_id)]
    assert ids == [new.identity_id, old.identity_id]


def test_selector_applies_exclusions_and_limit(db, make_identity):
    me = make_identity("Me")
    others = [make_identity(f"Other{i}", minutes_ago=i + 1) for i in range(5)]
    selector = CandidateSelector(UserDirectory(db, batch_size=2))

    pool = selector.select(me.identity_id, exclude_ids={others[0].identity_id}, limit=3)
    assert [c.identity_id for c in pool] == [o.identity_id for o in others[1:4]]


def test_selector_raises_when_empty(db, make_identity):
    me = make_identity("Me")
    with pytest.raises(CandidatesExhausted):
        CandidateSelector(UserDirectory(db)).select(me.identity_id)


def test_selector_zero_limit_is_empty_pool(db, make_identity):
    me = make_identity("Me")
    make_identity("Other")
    with pytest.raises(CandidatesExhausted):
        CandidateSelector(UserDirectory(db)).select(me.identity_id, limit=0)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

def test_free_tier_two_resolves_then_denied(db, clock, world):
    """Free limit is 2: resolved, resolved, then denied until next midnight"""
    orchestrator = MatchOrchestrator(db, clock)
    token = _token(db, clock, world["me"])

    first = orchestrator.resolve(token)
    assert isinstance(first, Resolved)
    assert first.candidate_id == world["close"].identity_id
    assert first.score == 10.0
    assert first.remaining_quota_today == 1

    second = orchestrator.resolve(token)
    assert isinstance(second, Resolved)
    assert second.remaining_quota_today == 0

    third = orchestrator.resolve(token)
    assert isinstance(third, Denied)
    assert third.remaining == 0
    assert third.reset_at == datetime(2026, 3, 11, tzinfo=ZoneInfo(settings.QUOTA_TIMEZONE))
    assert third.state == MatchState.DENIED


def test_quota_resets_next_day(db, clock, world):
    orchestrator = MatchOrchestrator(db, clock)
    token = _token(db, clock, world["me"])
    for _ in range(settings.QUOTA_FREE_DAILY):
        orchestrator.resolve(token)
    assert isinstance(orchestrator.resolve(token), Denied)

    clock.advance(days=1)
    token = _token(db, clock, world["me"])
    assert isinstance(orchestrator.resolve(token), Resolved)


def test_invalid_token_fails_without_spending(db, clock, world):
    orchestrator = MatchOrchestrator(db, clock)

    outcome = orchestrator.resolve("garbage")

    assert isinstance(outcome, Failed)
    assert outcome.reason == "reauthenticate"
    assert QuotaTracker(db, clock).count_today(world["me"].identity_id) == 0


def test_expired_token_fails(db, clock, world):
    orchestrator = MatchOrchestrator(db, clock)
    token = _token(db, clock, world["me"])
    clock.advance(seconds=settings.ACCESS_TOKEN_EXPIRE_SECONDS)

    assert isinstance(orchestrator.resolve(token), Failed)


def test_exhausted_still_spends_quota(db, clock, questions, make_identity):
    loner = make_identity("Loner", answers=MINE)
    orchestrator = MatchOrchestrator(db, clock)

    outcome = orchestrator.resolve(_token(db, clock, loner))

    assert isinstance(outcome, Exhausted)
    assert QuotaTracker(db, clock).remaining(loner.identity_id, loner.tier) == settings.QUOTA_FREE_DAILY - 1


def test_rejected_candidate_skipped_for_the_day(db, clock, world):
    world["me"].tier = TIER_PREMIUM
    db.commit()
    orchestrator = MatchOrchestrator(db, clock)
    token = _token(db, clock, world["me"])

    first = orchestrator.resolve(token)
    orchestrator.reject(world["me"], first.candidate_id)

    second = orchestrator.resolve(token)
    assert isinstance(second, Resolved)
    assert second.candidate_id == world["far"].identity_id
    assert second.score == 0.0

    orchestrator.reject(world["me"], second.candidate_id)
    assert isinstance(orchestrator.resolve(token), Exhausted)

    # next day the rejections no longer apply
    clock.advance(days=1)
    token = _token(db, clock, world["me"])
    assert orchestrator.resolve(token).candidate_id == world["close"].identity_id


def test_reset_rejections(db, clock, world):
    world["me"].tier = TIER_PREMIUM
    db.commit()
    orchestrator = MatchOrchestrator(db, clock)
    token = _token(db, clock, world["me"])
    for candidate in (world["close"], world["far"]):
        orchestrator.resolve(token)
        orchestrator.reject(world["me"], candidate.identity_id)

    assert orchestrator.reset_rejections(world["me"]) == 2
    assert orchestrator.resolve(token).candidate_id == world["close"].identity_id


def test_reset_and_retry_policy(db, clock, world):
    world["me"].tier = TIER_PREMIUM
    db.commit()
    orchestrator = MatchOrchestrator(db, clock, exhausted_policy=EXHAUSTED_RESET_AND_RETRY)
    token = _token(db, clock, world["me"])
    orchestrator.resolve(token)
    orchestrator.reject(world["me"], world["close"].identity_id)
    orchestrator.resolve(token)
    orchestrator.reject(world["me"], world["far"].identity_id)

    outcome = orchestrator.resolve(token)

    assert isinstance(outcome, Resolved)
    assert outcome.candidate_id == world["close"].identity_id
    assert orchestrator.rejections.ids_today(world["me"].identity_id) == set()


def test_ties_break_by_candidate_id(db, clock, questions, make_identity):
    me = make_identity("Me", answers=MINE)
    make_identity("Zed", answers=MINE, identity_id="usr_zzz")
    make_identity("Amy", answers=MINE, identity_id="usr_aaa", minutes_ago=30)

    outcome = MatchOrchestrator(db, clock).resolve(_token(db, clock, me))
    assert outcome.candidate_id == "usr_aaa"


def test_resolution_is_recorded(db, clock, world):
    orchestrator = MatchOrchestrator(db, clock)
    outcome = orchestrator.resolve(_token(db, clock, world["me"]))

    record = db.query(MatchRecord).one()
    assert record.identity_id == world["me"].identity_id
    assert record.candidate_id == outcome.candidate_id
    assert record.score == outcome.score
    assert record.status == "resolved"


def test_accept_and_unknown_match(db, clock, world):
    orchestrator = MatchOrchestrator(db, clock)
    outcome = orchestrator.resolve(_token(db, clock, world["me"]))

    record = orchestrator.accept(world["me"], outcome.candidate_id)
    assert record.status == MATCH_ACCEPTED

    with pytest.raises(MatchNotFound):
        orchestrator.accept(world["me"], outcome.candidate_id)
    with pytest.raises(MatchNotFound):
        orchestrator.reject(world["me"], world["far"].identity_id)


def test_unverified_requester_can_resolve(db, clock, questions, world, make_identity):
    newcomer = make_identity("Newcomer", answers=MINE, verified=False)
    outcome = MatchOrchestrator(db, clock).resolve(_token(db, clock, newcomer))
    assert isinstance(outcome, Resolved)


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------

def test_resolve_endpoint_outcomes(client: TestClient, world, bearer):
    headers = bearer(world["me"])

    for remaining in (1, 0):
        response = client.post("/matches/resolve", headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "resolved"
        assert data["candidate_id"] == world["close"].identity_id
        assert data["candidate"]["name"] == "Close"
        assert data["remaining_quota_today"] == remaining

    denied = client.post("/matches/resolve", headers=headers)
    assert denied.status_code == 429
    assert denied.json()["status"] == "denied"
    assert denied.json()["remaining"] == 0
    assert denied.json()["reset_at"].startswith("2026-03-11T00:00:00")


def test_resolve_endpoint_requires_token(client: TestClient, world):
    response = client.post("/matches/resolve")
    assert response.status_code == 401
    assert response.json() == {"status": "failed", "reason": "reauthenticate"}

    response = client.post("/matches/resolve", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


def test_resolve_endpoint_exhausted(client: TestClient, questions, make_identity, bearer):
    loner = make_identity("Loner")
    response = client.post("/matches/resolve", headers=bearer(loner))
    assert response.status_code == 200
    assert response.json() == {"status": "exhausted"}


def test_reject_accept_and_history_endpoints(client: TestClient, db, world, bearer):
    world["me"].tier = TIER_PREMIUM
    db.commit()
    headers = bearer(world["me"])

    first = client.post("/matches/resolve", headers=headers).json()
    response = client.post(f"/matches/{first['candidate_id']}/reject", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == MATCH_REJECTED

    second = client.post("/matches/resolve", headers=headers).json()
    assert second["candidate_id"] == world["far"].identity_id
    response = client.post(f"/matches/{second['candidate_id']}/accept", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == MATCH_ACCEPTED

    missing = client.post(f"/matches/{second['candidate_id']}/accept", headers=headers)
    assert missing.status_code == 404

    history = client.get("/matches", headers=headers).json()
    assert [h["status"] for h in history] == [MATCH_ACCEPTED, MATCH_REJECTED]

    only_rejected = client.get("/matches", params={"match_status": MATCH_REJECTED}, headers=headers).json()
    assert len(only_rejected) == 1

    reset = client.post("/matches/rejections/reset", headers=headers)
    assert reset.json() == {"cleared": 1}


def test_resolve_updates_last_active(db, clock, world):
    before = world["me"].last_active_at
    clock.advance(minutes=3)
    MatchOrchestrator(db, clock).resolve(_token(db, clock, world["me"]))
    db.refresh(world["me"])
    assert world["me"].last_active_at == before + timedelta(minutes=3)
