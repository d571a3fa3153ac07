"""OAuth 2.0 helpers: authorization URLs, code exchange and refresh grants."""

import base64
import hashlib
import hmac
import logging
from urllib.parse import urlencode

from socialsync.config import settings
from socialsync.crypto import encrypt
from socialsync.errors import OAuthExchangeFailed, PlatformApiError, TokenRefreshFailed
from socialsync.services.http_client import PlatformHttpClient
from socialsync.services.platforms.base import Credentials, PlatformDescriptor, TokenGrant
from socialsync.storage.base import SocialStorage

logger = logging.getLogger(__name__)


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def pkce_verifier(platform: str, client_id: str) -> str:
    """Deterministic PKCE verifier, so the callback can rebuild it without stored state."""
    digest = hmac.new(
        settings.secret_key.encode(),
        f"{platform}:{client_id}".encode(),
        hashlib.sha256,
    ).digest()
    return _b64url(digest)


def pkce_challenge(verifier: str) -> str:
    return _b64url(hashlib.sha256(verifier.encode()).digest())


def build_authorization_url(
    descriptor: PlatformDescriptor, client_id: str, redirect_uri: str
) -> str:
    """Build the consent-screen URL. ``state`` carries the platform name."""
    platform = descriptor.platform.value
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": descriptor.scope_separator.join(descriptor.scopes),
        "state": platform,
        **descriptor.extra_authorize_params,
    }
    if descriptor.uses_pkce:
        params["code_challenge"] = pkce_challenge(pkce_verifier(platform, client_id))
        params["code_challenge_method"] = "S256"
    return f"{descriptor.authorize_url}?{urlencode(params)}"


async def _token_request(
    descriptor: PlatformDescriptor,
    http: PlatformHttpClient,
    payload: dict,
    client_id: str,
    client_secret: str,
) -> TokenGrant:
    payload = {**payload, "client_id": client_id}
    basic = None
    if descriptor.token_auth == "basic":
        basic = (client_id, client_secret)
    else:
        payload["client_secret"] = client_secret

    if descriptor.token_method == "GET":
        data = await http.get(descriptor.token_url, params=payload, basic=basic)
    else:
        data = await http.post(descriptor.token_url, data=payload, basic=basic)

    grant = TokenGrant.from_response(data)
    if not grant.access_token:
        raise PlatformApiError(
            descriptor.platform.value, "Token response did not include an access token"
        )
    return grant


async def _exchange_long_lived(
    descriptor: PlatformDescriptor,
    http: PlatformHttpClient,
    access_token: str,
    client_id: str,
    client_secret: str,
) -> TokenGrant:
    return await _token_request(
        descriptor,
        http,
        {"grant_type": "fb_exchange_token", "fb_exchange_token": access_token},
        client_id,
        client_secret,
    )


async def exchange_code(
    descriptor: PlatformDescriptor,
    http: PlatformHttpClient,
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
) -> TokenGrant:
    """Trade an authorization code for tokens. Raises OAuthExchangeFailed."""
    platform = descriptor.platform.value
    payload = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
    }
    if descriptor.uses_pkce:
        payload["code_verifier"] = pkce_verifier(platform, client_id)

    try:
        grant = await _token_request(descriptor, http, payload, client_id, client_secret)
        if descriptor.exchange_long_lived:
            grant = await _exchange_long_lived(
                descriptor, http, grant.access_token, client_id, client_secret
            )
    except PlatformApiError as e:
        logger.error(f"OAuth code exchange failed for {platform}: {e.upstream_message}")
        raise OAuthExchangeFailed(platform, e.upstream_message) from e

    logger.info(f"Exchanged authorization code for {platform} tokens")
    return grant


async def request_token_refresh(
    descriptor: PlatformDescriptor, http: PlatformHttpClient, creds: Credentials
) -> TokenGrant:
    """Run the platform's refresh grant. Raises TokenRefreshFailed."""
    platform = descriptor.platform.value
    try:
        if descriptor.refresh_grant == "fb_exchange_token":
            if not creds.access_token:
                raise TokenRefreshFailed(platform, "No access token to exchange")
            return await _exchange_long_lived(
                descriptor, http, creds.access_token, creds.client_id, creds.client_secret
            )
        if not creds.refresh_token:
            raise TokenRefreshFailed(platform, "No refresh token available")
        return await _token_request(
            descriptor,
            http,
            {"grant_type": "refresh_token", "refresh_token": creds.refresh_token},
            creds.client_id,
            creds.client_secret,
        )
    except PlatformApiError as e:
        raise TokenRefreshFailed(platform, e.upstream_message) from e


def store_token_grant(
    storage: SocialStorage, platform: str, grant: TokenGrant, *, connect: bool = True
):
    """Persist a grant. A grant without a refresh token keeps the stored one."""
    changes = {
        "access_token": encrypt(grant.access_token),
        "token_expires_at": grant.expires_at,
    }
    if grant.refresh_token:
        changes["refresh_token"] = encrypt(grant.refresh_token)
    if connect:
        changes["is_connected"] = True
    return storage.update_integration(platform, **changes)
