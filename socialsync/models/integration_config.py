"""Per-platform integration settings submitted by the admin.

``IntegrationConfig`` is a union discriminated by ``platform``: each variant
carries exactly the credentials that platform's OAuth flow needs, so a
LinkedIn config without an organization id or a WhatsApp config with OAuth
secrets is rejected at validation time.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from socialsync.models.social import SyncInterval


class _SyncSettings(BaseModel):
    auto_sync_enabled: bool = False
    sync_interval: SyncInterval = SyncInterval.ONE_HOUR
    is_published: bool = True


class _OAuthCredentials(_SyncSettings):
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    is_manual_mode: bool = False


class GoogleOAuthConfig(_OAuthCredentials):
    platform: Literal["youtube"]


class MetaOAuthConfig(_OAuthCredentials):
    """Facebook and Instagram share a Meta app id/secret."""

    platform: Literal["facebook", "instagram"]


class LinkedInOAuthConfig(_OAuthCredentials):
    platform: Literal["linkedin"]
    organization_id: str = Field(min_length=1)


class TwitterOAuthConfig(_OAuthCredentials):
    platform: Literal["twitter"]


class ManualEntryConfig(_SyncSettings):
    platform: Literal["whatsapp", "viber"]
    account_name: str = ""


IntegrationConfig = Annotated[
    Union[
        GoogleOAuthConfig,
        MetaOAuthConfig,
        LinkedInOAuthConfig,
        TwitterOAuthConfig,
        ManualEntryConfig,
    ],
    Field(discriminator="platform"),
]


class SyncSettingsUpdate(BaseModel):
    auto_sync_enabled: bool | None = None
    sync_interval: SyncInterval | None = None
    is_manual_mode: bool | None = None
    is_published: bool | None = None
