"""Tests for the one-time challenge session lifecycle."""

import asyncio
import base64
from concurrent.futures import ThreadPoolExecutor

import pytest

from passvote.models import SESSION_KIND_AUTHENTICATE, SESSION_KIND_REGISTER
from passvote.services.challenges import IdentityHint, SessionSweeper
from passvote.services.errors import (
    SessionExpired,
    SessionInvalidOrExpired,
    SessionKindMismatch,
    SessionNotFound,
)

ALICE = IdentityHint(username="alice", display_name="Alice")


def test_create_challenge_issues_random_32_byte_challenge(challenge_manager, clock) -> None:
    first = challenge_manager.create_challenge(SESSION_KIND_REGISTER, ALICE)
    second = challenge_manager.create_challenge(SESSION_KIND_REGISTER, ALICE)

    assert len(first.challenge) == 32
    assert first.challenge != second.challenge
    assert first.session_id != second.session_id
    assert first.session_id.startswith("reg-")
    assert first.subject_user_id.startswith("user-")
    assert (first.expires_at - clock.now).total_seconds() == 600

    padding = "=" * (-len(first.challenge_b64) % 4)
    assert base64.urlsafe_b64decode(first.challenge_b64 + padding) == first.challenge
    assert "=" not in first.challenge_b64


def test_authentication_challenge_needs_no_hint(challenge_manager) -> None:
    issued = challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)
    assert issued.session_id.startswith("auth-")


def test_registration_challenge_requires_identity(challenge_manager) -> None:
    with pytest.raises(ValueError):
        challenge_manager.create_challenge(SESSION_KIND_REGISTER)
    with pytest.raises(ValueError):
        challenge_manager.create_challenge("login", ALICE)


def test_consume_returns_session_exactly_once(challenge_manager) -> None:
    issued = challenge_manager.create_challenge(SESSION_KIND_REGISTER, ALICE)

    session = challenge_manager.consume_session(issued.session_id)
    assert session.session_id == issued.session_id
    assert session.challenge == issued.challenge
    assert session.username == "alice"
    assert session.display_name == "Alice"
    assert session.kind == SESSION_KIND_REGISTER

    with pytest.raises(SessionNotFound):
        challenge_manager.consume_session(issued.session_id)


def test_consume_unknown_session(challenge_manager) -> None:
    with pytest.raises(SessionNotFound):
        challenge_manager.consume_session("reg-does-not-exist")


def test_expired_session_is_rejected_and_removed(challenge_manager, clock) -> None:
    issued = challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)
    clock.advance(601)

    with pytest.raises(SessionExpired):
        challenge_manager.consume_session(issued.session_id)
    with pytest.raises(SessionNotFound):
        challenge_manager.consume_session(issued.session_id)


def test_session_is_usable_until_ttl(challenge_manager, clock) -> None:
    issued = challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)
    clock.advance(600)

    assert challenge_manager.consume_session(issued.session_id).session_id == issued.session_id


def test_kind_mismatch_still_consumes(challenge_manager) -> None:
    issued = challenge_manager.create_challenge(SESSION_KIND_REGISTER, ALICE)

    with pytest.raises(SessionKindMismatch) as exc_info:
        challenge_manager.consume_session(issued.session_id, expected_kind=SESSION_KIND_AUTHENTICATE)
    assert isinstance(exc_info.value, SessionInvalidOrExpired)

    with pytest.raises(SessionNotFound):
        challenge_manager.consume_session(issued.session_id, expected_kind=SESSION_KIND_REGISTER)


def test_sweep_removes_only_expired_sessions(challenge_manager, clock) -> None:
    stale = challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)
    clock.advance(500)
    fresh = challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)
    clock.advance(200)

    assert challenge_manager.sweep_expired() == 1
    assert challenge_manager.pending_count() == 1
    with pytest.raises(SessionNotFound):
        challenge_manager.consume_session(stale.session_id)
    assert challenge_manager.consume_session(fresh.session_id).session_id == fresh.session_id


def test_sweep_after_consume_is_harmless(challenge_manager, clock) -> None:
    issued = challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)
    challenge_manager.consume_session(issued.session_id)
    clock.advance(601)

    assert challenge_manager.sweep_expired() == 0
    assert challenge_manager.sweep_expired() == 0


def test_concurrent_consumers_get_one_session(challenge_manager) -> None:
    issued = challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)

    def attempt() -> str:
        try:
            challenge_manager.consume_session(issued.session_id)
        except SessionNotFound:
            return "missing"
        return "consumed"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: attempt(), range(8)))

    assert outcomes.count("consumed") == 1
    assert outcomes.count("missing") == 7


@pytest.mark.asyncio
async def test_sweeper_runs_in_background(challenge_manager, clock) -> None:
    challenge_manager.create_challenge(SESSION_KIND_AUTHENTICATE)
    challenge_manager.create_challenge(SESSION_KIND_REGISTER, ALICE)
    clock.advance(601)

    sweeper = SessionSweeper(challenge_manager, interval_seconds=0.01)
    await sweeper.start()
    assert sweeper.running
    try:
        for _ in range(200):
            if challenge_manager.pending_count() == 0:
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert challenge_manager.pending_count() == 0
    assert not sweeper.running


@pytest.mark.asyncio
async def test_sweeper_survives_sweep_errors(challenge_manager, mocker) -> None:
    calls = {"n": 0}

    def flaky_sweep() -> int:
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("db down")
        return 0

    sweep = mocker.patch.object(challenge_manager, "sweep_expired", side_effect=flaky_sweep)
    sweeper = SessionSweeper(challenge_manager, interval_seconds=0.01)
    await sweeper.start()
    try:
        for _ in range(200):
            if sweep.call_count >= 2:
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert sweep.call_count >= 2
