# tests/infra/test_identity.py
import json

import httpx
import pytest

from app.core.exceptions import AuthenticationError, UpstreamStoreError
from app.infra.identity import IdentityClient


def _client(status_code, body, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=body)

    return IdentityClient(
        base_url="http://auth.test", api_key="anon-key", transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
async def test_connexion_ok():
    seen = []
    client = _client(
        200,
        {"access_token": "acc", "refresh_token": "ref", "user": {"id": "u-1"}},
        seen,
    )
    session = await client.sign_in_with_password("a@test.com", "pw")

    assert session.access_token == "acc"
    assert session.refresh_token == "ref"
    assert session.user == {"id": "u-1"}

    request = seen[0]
    assert request.url.path == "/auth/v1/token"
    assert request.url.params["grant_type"] == "password"
    assert request.headers["apikey"] == "anon-key"
    assert json.loads(request.content) == {"email": "a@test.com", "password": "pw"}


@pytest.mark.asyncio
async def test_identifiants_refuses_message_generique():
    client = _client(400, {"error_description": "Invalid login credentials"})
    with pytest.raises(AuthenticationError) as exc:
        await client.sign_in_with_password("a@test.com", "faux")
    # Le détail du service d'identité reste dans les logs
    assert exc.value.message == "Identifiants incorrects."


@pytest.mark.asyncio
async def test_refresh_refuse_session_expiree():
    client = _client(401, {"msg": "Invalid Refresh Token: Already Used"})
    with pytest.raises(AuthenticationError) as exc:
        await client.refresh_session("ref")
    assert exc.value.message == "Session expirée."


@pytest.mark.asyncio
async def test_refresh_sans_access_token():
    client = _client(200, {})
    with pytest.raises(AuthenticationError) as exc:
        await client.refresh_session("ref")
    assert exc.value.message == "Session expirée."


@pytest.mark.asyncio
async def test_service_indisponible():
    client = _client(503, {"msg": "down"})
    with pytest.raises(UpstreamStoreError):
        await client.sign_in_with_password("a@test.com", "pw")
