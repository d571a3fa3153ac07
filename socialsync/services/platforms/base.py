"""Data-driven description of one social platform.

The generic ``PlatformClient`` does the sync bookkeeping for every platform;
a ``PlatformDescriptor`` supplies what differs between them: OAuth endpoints
and scopes, the shape of the token grants, and the fetch routine that maps
the platform's REST API onto ``MetricSet``.
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal

from socialsync.crypto import decrypt
from socialsync.models.social import Platform, PlatformIntegration
from socialsync.services.http_client import PlatformHttpClient
from socialsync.services.metrics import MetricSet


@dataclass
class Credentials:
    """Decrypted view of a PlatformIntegration, held only for the duration of a sync."""

    platform: str
    client_id: str = ""
    client_secret: str = ""
    access_token: str = ""
    refresh_token: str = ""
    token_expires_at: datetime | None = None
    account_id: str = ""
    account_name: str = ""

    @classmethod
    def from_integration(cls, integration: PlatformIntegration) -> "Credentials":
        return cls(
            platform=integration.platform,
            client_id=decrypt(integration.client_id),
            client_secret=decrypt(integration.client_secret),
            access_token=decrypt(integration.access_token),
            refresh_token=decrypt(integration.refresh_token),
            token_expires_at=integration.token_expires_at,
            account_id=integration.account_id,
            account_name=integration.account_name,
        )

    @property
    def is_expired(self) -> bool:
        return (
            self.token_expires_at is not None
            and datetime.utcnow() >= self.token_expires_at
        )

    @property
    def needs_refresh(self) -> bool:
        return self.is_expired or (not self.access_token and bool(self.refresh_token))


@dataclass
class TokenGrant:
    access_token: str
    refresh_token: str = ""
    expires_in: int | None = None

    @property
    def expires_at(self) -> datetime | None:
        if not self.expires_in:
            return None
        return datetime.utcnow() + timedelta(seconds=int(self.expires_in))

    @classmethod
    def from_response(cls, data: dict) -> "TokenGrant":
        return cls(
            access_token=data.get("access_token") or "",
            refresh_token=data.get("refresh_token") or "",
            expires_in=data.get("expires_in"),
        )


@dataclass
class FetchResult:
    metrics: MetricSet
    account_id: str | None = None
    account_name: str | None = None


Fetcher = Callable[[PlatformHttpClient, Credentials], Awaitable[FetchResult]]


@dataclass(frozen=True)
class PlatformDescriptor:
    platform: Platform
    authorize_url: str
    token_url: str
    scopes: tuple[str, ...]
    fetch: Fetcher
    scope_separator: str = " "
    extra_authorize_params: Mapping[str, str] = field(default_factory=dict)
    # How the client id/secret reach the token endpoint
    token_auth: Literal["body", "basic"] = "body"
    token_method: Literal["GET", "POST"] = "POST"
    uses_pkce: bool = False
    # "fb_exchange_token" re-exchanges the current long-lived access token
    refresh_grant: Literal["refresh_token", "fb_exchange_token"] = "refresh_token"
    exchange_long_lived: bool = False


def as_int(value) -> int:
    """Platforms report counts as ints, numeric strings or not at all."""
    if value is None or value == "":
        return 0
    return int(value)
