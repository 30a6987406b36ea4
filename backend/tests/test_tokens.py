"""Tests for the token lifecycle"""
import threading
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from soulsync.config import settings
from soulsync.errors import AuthInvalid, RefreshReuseDetected
from soulsync.models.refresh_token import RefreshToken
from soulsync.services.token_service import REUSE_REJECT, REUSE_REVOKE_FAMILY, TokenService
from soulsync.utils.auth import hash_token
from soulsync.utils.clock import FixedClock


def test_issue_and_verify_round_trip(db, clock, make_identity):
    """A freshly issued access token verifies to its identity"""
    identity = make_identity()
    tokens = TokenService(db, clock)

    pair = tokens.issue(identity.identity_id)

    assert tokens.verify_access(pair.access_token) == identity.identity_id
    assert pair.expires_in == settings.ACCESS_TOKEN_EXPIRE_SECONDS
    assert pair.refresh_token != pair.access_token


def test_refresh_token_stored_as_hash(db, clock, make_identity):
    identity = make_identity()
    pair = TokenService(db, clock).issue(identity.identity_id)

    row = db.query(RefreshToken).filter(RefreshToken.identity_id == identity.identity_id).one()
    assert row.token_hash == hash_token(pair.refresh_token)
    assert row.token_hash != pair.refresh_token


def test_access_token_expires_on_injected_clock(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock, access_ttl_seconds=900)
    pair = tokens.issue(identity.identity_id)

    clock.advance(seconds=899)
    assert tokens.verify_access(pair.access_token) == identity.identity_id

    clock.advance(seconds=1)
    with pytest.raises(AuthInvalid):
        tokens.verify_access(pair.access_token)


def test_zero_access_ttl_is_not_replaced_by_default(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock, access_ttl_seconds=0)
    pair = tokens.issue(identity.identity_id)

    assert pair.expires_in == 0
    with pytest.raises(AuthInvalid):
        tokens.verify_access(pair.access_token)


def test_tampered_access_token_rejected(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock)
    pair = tokens.issue(identity.identity_id)

    header, payload, signature = pair.access_token.split(".")
    forged = ".".join([header, payload, signature[::-1]])

    with pytest.raises(AuthInvalid):
        tokens.verify_access(forged)
    with pytest.raises(AuthInvalid):
        tokens.verify_access("not-a-jwt")


def test_refresh_token_is_not_an_access_token(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock)
    pair = tokens.issue(identity.identity_id)

    with pytest.raises(AuthInvalid):
        tokens.verify_access(pair.refresh_token)


def test_rotation_is_one_shot(db, clock, make_identity):
    """Rotating twice with the same refresh token fails the second time; the first rotation's pair lives on"""
    identity = make_identity()
    tokens = TokenService(db, clock)
    first = tokens.issue(identity.identity_id)

    second = tokens.rotate(first.refresh_token)
    assert second.refresh_token != first.refresh_token
    assert tokens.verify_access(second.access_token) == identity.identity_id

    with pytest.raises(RefreshReuseDetected):
        tokens.rotate(first.refresh_token)

    assert tokens.verify_access(second.access_token) == identity.identity_id
    third = tokens.rotate(second.refresh_token)
    assert tokens.verify_access(third.access_token) == identity.identity_id


def test_reuse_revokes_family(db, clock, make_identity):
    """Under revoke_family, replaying a rotated token also kills its successor"""
    identity = make_identity()
    tokens = TokenService(db, clock, reuse_policy=REUSE_REVOKE_FAMILY)
    first = tokens.issue(identity.identity_id)
    other_session = tokens.issue(identity.identity_id)
    second = tokens.rotate(first.refresh_token)

    with pytest.raises(RefreshReuseDetected):
        tokens.rotate(first.refresh_token)

    # successor refresh is dead, its access token runs to expiry
    with pytest.raises(AuthInvalid):
        tokens.rotate(second.refresh_token)
    assert tokens.verify_access(second.access_token) == identity.identity_id

    # a separate login is a separate family
    assert tokens.rotate(other_session.refresh_token).identity_id == identity.identity_id


def test_reuse_reject_policy_keeps_successor(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock, reuse_policy=REUSE_REJECT)
    first = tokens.issue(identity.identity_id)
    second = tokens.rotate(first.refresh_token)

    with pytest.raises(RefreshReuseDetected):
        tokens.rotate(first.refresh_token)

    third = tokens.rotate(second.refresh_token)
    assert tokens.verify_access(third.access_token) == identity.identity_id


def test_rotation_links_chain(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock)
    first = tokens.issue(identity.identity_id)
    tokens.rotate(first.refresh_token)

    rows = db.query(RefreshToken).order_by(RefreshToken.id).all()
    assert len(rows) == 2
    assert rows[0].family_id == rows[1].family_id
    assert rows[0].revoked_at is not None
    assert rows[0].replaced_by == rows[1].token_id
    assert rows[1].revoked_at is None


def test_unknown_refresh_token(db, clock):
    tokens = TokenService(db, clock)
    with pytest.raises(AuthInvalid) as exc_info:
        tokens.rotate("never-issued")
    assert not isinstance(exc_info.value, RefreshReuseDetected)


def test_expired_refresh_token(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock, refresh_ttl_days=30)
    pair = tokens.issue(identity.identity_id)

    clock.advance(days=30)
    with pytest.raises(AuthInvalid):
        tokens.rotate(pair.refresh_token)


def test_revoke_is_idempotent(db, clock, make_identity):
    identity = make_identity()
    tokens = TokenService(db, clock)
    pair = tokens.issue(identity.identity_id)

    tokens.revoke(pair.refresh_token)
    tokens.revoke(pair.refresh_token)
    tokens.revoke("never-issued")

    with pytest.raises(AuthInvalid):
        tokens.rotate(pair.refresh_token)


def test_revoke_all(db, clock, make_identity):
    identity = make_identity()
    bystander = make_identity()
    tokens = TokenService(db, clock)
    phone = tokens.issue(identity.identity_id)
    laptop = tokens.issue(identity.identity_id)
    tokens.rotate(phone.refresh_token)
    keep = tokens.issue(bystander.identity_id)

    assert tokens.revoke_all(identity.identity_id) == 2

    with pytest.raises(AuthInvalid):
        tokens.rotate(laptop.refresh_token)
    assert tokens.rotate(keep.refresh_token).identity_id == bystander.identity_id


def test_concurrent_rotation_single_winner(db, clock, make_identity, session_factory, monkeypatch):
    """Two racing rotations of one token: exactly one succeeds"""
    monkeypatch.setattr(settings, "STORAGE_RETRY_ATTEMPTS", 5)
    identity = make_identity()
    pair = TokenService(db, clock).issue(identity.identity_id)

    barrier = threading.Barrier(2)
    results = []
    lock = threading.Lock()

    def worker():
        session = session_factory()
        try:
            service = TokenService(session, FixedClock(clock.now()))
            barrier.wait()
            try:
                service.rotate(pair.refresh_token)
                outcome = "rotated"
            except RefreshReuseDetected:
                outcome = "reuse"
            with lock:
                results.append(outcome)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["reuse", "rotated"]


# ---------------------------------------------------------------------------
# HTTP surface
# ---------------------------------------------------------------------------

def _register(client: TestClient, email="ava@example.com", password="correct-horse"):
    return client.post("/auth/register", json={"email": email, "password": password, "name": "Ava", "age": 29})


def test_register_returns_token_pair(client: TestClient):
    response = _register(client)
    assert response.status_code == 201

    data = response.json()
    assert data["identity_id"].startswith("usr_")
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["refresh_token"]


def test_register_duplicate_email(client: TestClient):
    assert _register(client).status_code == 201
    response = _register(client, email="AVA@example.com")
    assert response.status_code == 409


def test_register_short_password(client: TestClient):
    response = _register(client, password="abc")
    assert response.status_code == 422


def test_login(client: TestClient):
    identity_id = _register(client).json()["identity_id"]

    response = client.post("/auth/login", json={"email": "ava@example.com", "password": "correct-horse"})
    assert response.status_code == 200
    assert response.json()["identity_id"] == identity_id


def test_login_wrong_password_is_generic_401(client: TestClient):
    _register(client)

    wrong = client.post("/auth/login", json={"email": "ava@example.com", "password": "nope"})
    unknown = client.post("/auth/login", json={"email": "bob@example.com", "password": "nope"})

    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert wrong.json() == unknown.json()
    assert wrong.json()["error"] == "reauthenticate"


def test_refresh_endpoint_rotates_once(client: TestClient):
    tokens = _register(client).json()

    rotated = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert rotated.status_code == 200
    assert rotated.json()["refresh_token"] != tokens["refresh_token"]

    replay = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == 401
    assert replay.json()["error"] == "reauthenticate"
    assert replay.headers["WWW-Authenticate"] == "Bearer"

    successor = client.post("/auth/refresh", json={"refresh_token": rotated.json()["refresh_token"]})
    assert successor.status_code == 200


def test_revoke_endpoint_idempotent(client: TestClient):
    tokens = _register(client).json()

    for _ in range(2):
        response = client.post("/auth/revoke", json={"refresh_token": tokens["refresh_token"]})
        assert response.status_code == 200
        assert response.json() == {"revoked": True}

    assert client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]}).status_code == 401


def test_revoke_all_endpoint(client: TestClient):
    tokens = _register(client).json()
    client.post("/auth/login", json={"email": "ava@example.com", "password": "correct-horse"})

    response = client.post("/auth/revoke-all", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert response.status_code == 200
    assert response.json() == {"revoked": 2}


def test_expired_access_token_rejected_over_http(client: TestClient, clock):
    tokens = _register(client).json()
    clock.advance(seconds=tokens["expires_in"])

    response = client.get("/matches/quota", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert response.status_code == 401


def test_missing_bearer_token(client: TestClient):
    response = client.post("/auth/revoke-all")
    assert response.status_code == 401


def test_inactive_identity_cannot_authenticate(client: TestClient, db, make_identity, bearer):
    identity = make_identity(active=False)
    response = client.get("/matches/quota", headers=bearer(identity))
    assert response.status_code == 401
