import base64
from urllib.parse import parse_qs, urlparse

import pytest
from conftest import GRAPH, TOKEN_URLS, install_token_route

from socialsync.crypto import decrypt
from socialsync.errors import OAuthExchangeFailed, TokenRefreshFailed
from socialsync.services.factory import get_descriptor
from socialsync.services.http_client import PlatformHttpClient
from socialsync.services.oauth import (
    build_authorization_url,
    exchange_code,
    pkce_challenge,
    pkce_verifier,
    request_token_refresh,
    store_token_grant,
)
from socialsync.services.platforms.base import Credentials, TokenGrant

REDIRECT = "https://example.com/admin/social/callback"


def _query(url: str) -> dict:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


def test_authorization_url_carries_platform_state():
    url = build_authorization_url(get_descriptor("youtube"), "yt-client", REDIRECT)
    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    params = _query(url)
    assert params["state"] == "youtube"
    assert params["client_id"] == "yt-client"
    assert params["redirect_uri"] == REDIRECT
    assert params["response_type"] == "code"
    assert params["access_type"] == "offline"
    assert "https://www.googleapis.com/auth/youtube.readonly" in params["scope"].split(" ")


def test_meta_scopes_are_comma_separated():
    params = _query(build_authorization_url(get_descriptor("instagram"), "meta-app", REDIRECT))
    assert params["scope"] == "instagram_basic,instagram_manage_insights,pages_read_engagement"
    assert "code_challenge" not in params


def test_twitter_uses_pkce():
    params = _query(build_authorization_url(get_descriptor("twitter"), "tw-client", REDIRECT))
    assert params["code_challenge_method"] == "S256"
    assert params["code_challenge"] == pkce_challenge(pkce_verifier("twitter", "tw-client"))


def test_pkce_verifier_is_deterministic_and_url_safe():
    verifier = pkce_verifier("twitter", "tw-client")
    assert verifier == pkce_verifier("twitter", "tw-client")
    assert verifier != pkce_verifier("twitter", "other-client")
    assert 43 <= len(verifier) <= 128
    assert "=" not in verifier
    base64.urlsafe_b64decode(verifier + "=")


@pytest.mark.asyncio
async def test_exchange_code_posts_authorization_code(fake_api):
    install_token_route(fake_api, "linkedin")
    async with PlatformHttpClient("linkedin", transport=fake_api.transport) as http:
        grant = await exchange_code(
            get_descriptor("linkedin"), http, "auth-code", "li-client", "li-secret", REDIRECT
        )

    assert grant.access_token == "new-access-token"
    assert grant.refresh_token == "new-refresh-token"
    request = fake_api.requests[0]
    body = parse_qs(request.content.decode())
    assert body["grant_type"] == ["authorization_code"]
    assert body["code"] == ["auth-code"]
    assert body["client_secret"] == ["li-secret"]


@pytest.mark.asyncio
async def test_twitter_exchange_uses_basic_auth_and_verifier(fake_api):
    install_token_route(fake_api, "twitter")
    async with PlatformHttpClient("twitter", transport=fake_api.transport) as http:
        await exchange_code(get_descriptor("twitter"), http, "code", "tw-client", "tw-secret", REDIRECT)

    request = fake_api.requests[0]
    expected = base64.b64encode(b"tw-client:tw-secret").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    body = parse_qs(request.content.decode())
    assert body["code_verifier"] == [pkce_verifier("twitter", "tw-client")]
    assert "client_secret" not in body


@pytest.mark.asyncio
async def test_meta_exchange_swaps_for_long_lived_token(fake_api):
    url = f"{GRAPH}/oauth/access_token"
    fake_api.add("GET", url, {"access_token": "short-lived", "expires_in": 3600})
    fake_api.add("GET", url, {"access_token": "long-lived", "expires_in": 5184000})
    async with PlatformHttpClient("facebook", transport=fake_api.transport) as http:
        grant = await exchange_code(get_descriptor("facebook"), http, "code", "app", "secret", REDIRECT)

    assert grant.access_token == "long-lived"
    assert grant.expires_in == 5184000
    second = fake_api.requests[1]
    assert second.url.params["grant_type"] == "fb_exchange_token"
    assert second.url.params["fb_exchange_token"] == "short-lived"


@pytest.mark.asyncio
async def test_exchange_failure_raises(fake_api):
    install_token_route(fake_api, "youtube", json={"error_description": "Bad code"}, status_code=400)
    async with PlatformHttpClient("youtube", transport=fake_api.transport) as http:
        with pytest.raises(OAuthExchangeFailed, match="Bad code"):
            await exchange_code(get_descriptor("youtube"), http, "bad", "id", "secret", REDIRECT)


@pytest.mark.asyncio
async def test_refresh_without_refresh_token_fails(fake_api):
    creds = Credentials(platform="youtube", client_id="id", client_secret="secret", access_token="old")
    async with PlatformHttpClient("youtube", transport=fake_api.transport) as http:
        with pytest.raises(TokenRefreshFailed, match="No refresh token"):
            await request_token_refresh(get_descriptor("youtube"), http, creds)
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_refresh_grant_payload(fake_api):
    install_token_route(fake_api, "youtube", json={"access_token": "fresh", "expires_in": 3599})
    creds = Credentials(
        platform="youtube", client_id="id", client_secret="secret", refresh_token="rt-1"
    )
    async with PlatformHttpClient("youtube", transport=fake_api.transport) as http:
        grant = await request_token_refresh(get_descriptor("youtube"), http, creds)

    assert grant.access_token == "fresh"
    assert grant.refresh_token == ""
    body = parse_qs(fake_api.calls(*TOKEN_URLS["youtube"])[0].content.decode())
    assert body["grant_type"] == ["refresh_token"]
    assert body["refresh_token"] == ["rt-1"]


def test_store_token_grant_keeps_refresh_token_when_not_rotated(storage):
    store_token_grant(storage, "youtube", TokenGrant("first", "rt-1", 3600))
    integration = store_token_grant(storage, "youtube", TokenGrant("second"))

    assert integration.is_connected is True
    assert decrypt(integration.access_token) == "second"
    assert decrypt(integration.refresh_token) == "rt-1"
    assert integration.token_expires_at is None
