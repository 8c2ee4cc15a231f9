import pytest
import requests
from httpx import AsyncClient
from jose import JWTError
from uuid import uuid4

from checkin_service.auth import middleware
from checkin_service.auth.models import JWTPayload
from checkin_service.auth.permissions_manager import PermissionsManager


def test_permissions_for_roles():
    """Test roles from permissions.yml are merged."""
    manager = PermissionsManager()

    staff = manager.get_permissions_for_roles(["staff"])
    assert "pickup:redeem" in staff
    assert "event-session:manage" not in staff

    merged = manager.get_permissions_for_roles(["member", "pastor"])
    assert "event-session:manage" in merged
    assert merged == sorted(set(merged))


def test_unknown_role_has_no_permissions():
    assert PermissionsManager().get_permissions_for_roles(["visitor"]) == []


def test_missing_permissions_file(tmp_path):
    manager = PermissionsManager(tmp_path / "missing.yml")
    assert manager.get_permissions_for_roles(["admin"]) == []


def test_payload_reads_subject_claim():
    user_id = uuid4()
    payload = JWTPayload(**{"sub": str(user_id), "roles": ["staff"]})
    assert payload.user_id == user_id
    assert payload.permissions == []


@pytest.mark.asyncio
async def test_invalid_token_rejected(client: AsyncClient, monkeypatch):
    def bad_token(token):
        raise JWTError("Signature verification failed")

    monkeypatch.setattr(middleware.jwt_verifier, "verify_and_decode", bad_token)

    response = await client.post("/checkin", json={"code": "1234"}, headers={"Authorization": "Bearer bad"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_identity_provider_down(client: AsyncClient, monkeypatch):
    def unreachable(token):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(middleware.jwt_verifier, "verify_and_decode", unreachable)

    response = await client.post("/checkin", json={"code": "1234"}, headers={"Authorization": "Bearer token"})
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_valid_token_maps_roles_to_permissions(client: AsyncClient, monkeypatch):
    """Test realm roles become permissions on the request."""
    monkeypatch.setattr(
        middleware.jwt_verifier,
        "verify_and_decode",
        lambda token: {"sub": str(uuid4()), "realm_access": {"roles": ["member"]}},
    )

    response = await client.post(
        "/staff/programs/session/open", json={"program": "daycare"}, headers={"Authorization": "Bearer token"}
    )
    assert response.status_code == 403
    assert "program-session:manage" in response.json()["detail"]
