# tests/v1/test_passkey.py
"""Tests for passkey registration and authentication endpoints."""

from __future__ import annotations

import base64

from fastapi import status

from passvote.core.security import decode_access_token


def _decode_b64(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _register(client, username: str = "alice", credential_id: str = "cred-alice", **extra) -> dict:
    options = client.post(
        "/api/v1/passkey/register/options",
        json={"username": username, "display_name": username.title()},
    )
    assert options.status_code == status.HTTP_200_OK
    session_id = options.json()["session_id"]
    response = client.post(
        "/api/v1/passkey/register/verify",
        json={
            "session_id": session_id,
            "credential_id": credential_id,
            "public_key": f"pk-{credential_id}",
            **extra,
        },
    )
    return {"session_id": session_id, "response": response}


def _authenticate_options(client, username: str | None = "alice") -> str:
    response = client.post("/api/v1/passkey/authenticate/options", json={"username": username})
    assert response.status_code == status.HTTP_200_OK
    return response.json()["session_id"]


def test_register_options_issue_challenge(client) -> None:
    response = client.post(
        "/api/v1/passkey/register/options",
        json={"username": "alice", "display_name": "Alice"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["session_id"].startswith("reg-")
    assert data["user_id"].startswith("user-")
    assert len(_decode_b64(data["challenge"])) == 32
    assert data["username"] == "alice"


def test_register_options_require_identity(client) -> None:
    response = client.post("/api/v1/passkey/register/options", json={"username": "alice"})
    assert response.status_code == 422


def test_register_then_authenticate(client) -> None:
    registered = _register(client, wallet_address="GALICE")["response"]
    assert registered.status_code == status.HTTP_201_CREATED
    assert registered.json()["created"] is True
    user_id = registered.json()["user_id"]

    session_id = _authenticate_options(client)
    response = client.post(
        "/api/v1/passkey/authenticate/verify",
        json={"session_id": session_id, "credential_id": "cred-alice", "username": "alice"},
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["user_id"] == user_id
    assert data["wallet_address"] == "GALICE"
    claims = decode_access_token(data["access_token"])
    assert claims["sub"] == user_id
    assert claims["username"] == "alice"


def test_second_passkey_reuses_identity(client, services) -> None:
    first = _register(client, credential_id="cred-one", wallet_address="GALICE")["response"]
    second = _register(client, credential_id="cred-two", wallet_address="GMALLORY")["response"]

    assert second.status_code == status.HTTP_201_CREATED
    assert second.json()["created"] is False
    user_id = first.json()["user_id"]
    assert second.json()["user_id"] == user_id
    for credential_id in ("cred-one", "cred-two"):
        assert services.credentials.find("alice", credential_id).subject_user_id == user_id

    # A later registration cannot rebind the wallet used for paid votes.
    assert second.json()["wallet_address"] == "GALICE"
    assert services.credentials.get_identity("alice").wallet_address == "GALICE"


def test_registration_session_cannot_be_replayed(client) -> None:
    first = _register(client)
    assert first["response"].status_code == status.HTTP_201_CREATED

    replay = client.post(
        "/api/v1/passkey/register/verify",
        json={"session_id": first["session_id"], "credential_id": "cred-other", "public_key": "pk"},
    )
    assert replay.status_code == status.HTTP_400_BAD_REQUEST
    assert replay.json()["detail"] == "Session invalid or expired"


def test_duplicate_credential_conflicts(client) -> None:
    _register(client)
    duplicate = _register(client)["response"]
    assert duplicate.status_code == status.HTTP_409_CONFLICT


def test_register_verify_rejects_other_username(client) -> None:
    assert _register(client)["response"].status_code == status.HTTP_201_CREATED

    options = client.post(
        "/api/v1/passkey/register/options",
        json={"username": "bob", "display_name": "Bob"},
    )
    hijack = client.post(
        "/api/v1/passkey/register/verify",
        json={
            "session_id": options.json()["session_id"],
            "credential_id": "cred-x",
            "public_key": "pk",
            "username": "alice",
        },
    )
    assert hijack.status_code == status.HTTP_400_BAD_REQUEST


def test_authentication_with_unknown_credential(client) -> None:
    _register(client)
    session_id = _authenticate_options(client)

    response = client.post(
        "/api/v1/passkey/authenticate/verify",
        json={"session_id": session_id, "credential_id": "cred-ali", "username": "alice"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_registration_session_rejected_for_authentication(client) -> None:
    _register(client)
    options = client.post(
        "/api/v1/passkey/register/options",
        json={"username": "alice", "display_name": "Alice"},
    )

    response = client.post(
        "/api/v1/passkey/authenticate/verify",
        json={
            "session_id": options.json()["session_id"],
            "credential_id": "cred-alice",
            "username": "alice",
        },
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_authentication_session_bound_to_username(client) -> None:
    _register(client)
    _register(client, username="bob", credential_id="cred-bob")
    session_id = _authenticate_options(client, username="alice")

    response = client.post(
        "/api/v1/passkey/authenticate/verify",
        json={"session_id": session_id, "credential_id": "cred-bob", "username": "bob"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
