"""Social media analytics endpoints: integrations, OAuth, sync, analytics."""

import logging
from datetime import datetime

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from socialsync.api.deps import (
    get_admin_user,
    get_http_transport,
    get_orchestrator,
    get_storage,
    get_sync_scheduler,
)
from socialsync.crypto import decrypt, encrypt, mask_secret
from socialsync.errors import OAuthExchangeFailed, UnsupportedPlatform
from socialsync.models.integration_config import (
    IntegrationConfig,
    LinkedInOAuthConfig,
    ManualEntryConfig,
    SyncSettingsUpdate,
)
from socialsync.models.social import (
    MANUAL_ONLY_PLATFORMS,
    Platform,
    PlatformAnalytics,
    PlatformIntegration,
)
from socialsync.models.user import User
from socialsync.services.factory import get_descriptor
from socialsync.services.http_client import PlatformHttpClient
from socialsync.services.oauth import (
    build_authorization_url,
    exchange_code,
    store_token_grant,
)
from socialsync.services.scheduler import SyncScheduler
from socialsync.services.social_client import SyncResult
from socialsync.services.sync import SyncOrchestrator
from socialsync.storage import SocialStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/social", tags=["social"])


# --- Pydantic models ---


class IntegrationResponse(BaseModel):
    platform: str
    client_id: str  # masked
    has_client_secret: bool
    has_access_token: bool
    has_refresh_token: bool
    token_expires_at: datetime | None
    account_id: str
    account_name: str
    is_connected: bool
    auto_sync_enabled: bool
    sync_interval: str
    is_manual_mode: bool
    is_published: bool
    last_sync_at: datetime | None
    next_sync_at: datetime | None
    updated_at: datetime


class AnalyticsResponse(BaseModel):
    platform: str
    followers_count: str
    engagement_rate: str
    impressions: str
    likes: str
    shares: str
    comments: str
    posts_count: str
    updated_at: datetime


class AnalyticsUpdate(BaseModel):
    followers_count: int | None = Field(default=None, ge=0)
    engagement_rate: float | None = Field(default=None, ge=0)
    impressions: int | None = Field(default=None, ge=0)
    likes: int | None = Field(default=None, ge=0)
    shares: int | None = Field(default=None, ge=0)
    comments: int | None = Field(default=None, ge=0)
    posts_count: int | None = Field(default=None, ge=0)


class SyncLogResponse(BaseModel):
    id: int
    platform: str
    sync_type: str
    status: str
    metrics_updated: list[str]
    error_message: str | None
    synced_at: datetime


class SyncAllResponse(BaseModel):
    results: list[SyncResult]
    succeeded: int
    failed: int


class AuthorizeUrlResponse(BaseModel):
    authorization_url: str
    state: str


class OAuthCallbackRequest(BaseModel):
    code: str = Field(min_length=1)
    state: str
    redirect_uri: str


class OAuthCallbackResponse(BaseModel):
    success: bool
    platform: str
    token_expires_at: datetime | None


class SchedulerJob(BaseModel):
    platform: str
    name: str
    next_run_time: datetime | None


class SchedulerStatusResponse(BaseModel):
    running: bool
    jobs: list[SchedulerJob]


# --- Helpers ---


def _reveal(platform: str, ciphertext: str) -> str:
    try:
        return decrypt(ciphertext)
    except ValueError:
        logger.warning(f"Stored {platform} credential could not be decrypted")
        return ""


def _integration_response(integration: PlatformIntegration) -> IntegrationResponse:
    return IntegrationResponse(
        platform=integration.platform,
        client_id=mask_secret(_reveal(integration.platform, integration.client_id)),
        has_client_secret=bool(integration.client_secret),
        has_access_token=bool(integration.access_token),
        has_refresh_token=bool(integration.refresh_token),
        token_expires_at=integration.token_expires_at,
        account_id=integration.account_id,
        account_name=integration.account_name,
        is_connected=integration.is_connected,
        auto_sync_enabled=integration.auto_sync_enabled,
        sync_interval=integration.sync_interval,
        is_manual_mode=integration.is_manual_mode,
        is_published=integration.is_published,
        last_sync_at=integration.last_sync_at,
        next_sync_at=integration.next_sync_at,
        updated_at=integration.updated_at,
    )


def _analytics_response(analytics: PlatformAnalytics) -> AnalyticsResponse:
    return AnalyticsResponse.model_validate(analytics, from_attributes=True)


def _get_integration_or_404(storage: SocialStorage, platform: Platform) -> PlatformIntegration:
    integration = storage.get_integration(platform.value)
    if not integration:
        raise HTTPException(status_code=404, detail=f"No integration configured for {platform.value}")
    return integration


def _refresh_schedule(scheduler: SyncScheduler | None, integration: PlatformIntegration):
    if scheduler is not None:
        scheduler.refresh_platform(integration)


# --- Integrations ---


@router.get("/integrations", response_model=list[IntegrationResponse])
async def list_integrations(
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    return [_integration_response(i) for i in storage.list_integrations()]


@router.get("/integrations/{platform}", response_model=IntegrationResponse)
async def get_integration(
    platform: Platform,
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    return _integration_response(_get_integration_or_404(storage, platform))


@router.put("/integrations/{platform}", response_model=IntegrationResponse)
async def save_integration(
    platform: Platform,
    config: IntegrationConfig,
    storage: SocialStorage = Depends(get_storage),
    scheduler: SyncScheduler | None = Depends(get_sync_scheduler),
    user: User = Depends(get_admin_user),
):
    """Store credentials and sync settings. Secrets are encrypted before they are written."""
    if config.platform != platform.value:
        raise HTTPException(status_code=400, detail="Platform in body does not match the URL")

    changes = {
        "auto_sync_enabled": config.auto_sync_enabled,
        "sync_interval": config.sync_interval.value,
        "is_published": config.is_published,
    }
    if isinstance(config, ManualEntryConfig):
        changes["is_manual_mode"] = True
        if config.account_name:
            changes["account_name"] = config.account_name
    else:
        changes["client_id"] = encrypt(config.client_id)
        changes["client_secret"] = encrypt(config.client_secret)
        changes["is_manual_mode"] = config.is_manual_mode
        if isinstance(config, LinkedInOAuthConfig):
            changes["account_id"] = config.organization_id

    integration = storage.update_integration(platform.value, **changes)
    logger.info(f"Saved {platform.value} integration settings")
    _refresh_schedule(scheduler, integration)
    return _integration_response(integration)


@router.patch("/integrations/{platform}/sync-settings", response_model=IntegrationResponse)
async def update_sync_settings(
    platform: Platform,
    body: SyncSettingsUpdate,
    storage: SocialStorage = Depends(get_storage),
    scheduler: SyncScheduler | None = Depends(get_sync_scheduler),
    user: User = Depends(get_admin_user),
):
    _get_integration_or_404(storage, platform)
    changes = body.model_dump(exclude_none=True)
    if changes.get("is_manual_mode") is False and platform in MANUAL_ONLY_PLATFORMS:
        raise HTTPException(
            status_code=400,
            detail=str(UnsupportedPlatform(platform.value)),
        )
    if "sync_interval" in changes:
        changes["sync_interval"] = changes["sync_interval"].value
    integration = storage.update_integration(platform.value, **changes)
    _refresh_schedule(scheduler, integration)
    return _integration_response(integration)


@router.post("/integrations/{platform}/disconnect", response_model=IntegrationResponse)
async def disconnect_integration(
    platform: Platform,
    storage: SocialStorage = Depends(get_storage),
    scheduler: SyncScheduler | None = Depends(get_sync_scheduler),
    user: User = Depends(get_admin_user),
):
    """Clear stored tokens. Credentials stay so the account can be reconnected."""
    _get_integration_or_404(storage, platform)
    integration = storage.update_integration(
        platform.value,
        access_token="",
        refresh_token="",
        token_expires_at=None,
        is_connected=False,
    )
    if scheduler is not None:
        scheduler.stop_platform(platform.value)
    logger.info(f"Disconnected {platform.value}")
    return _integration_response(integration)


# --- OAuth ---


@router.get("/oauth/{platform}/authorize", response_model=AuthorizeUrlResponse)
async def authorize_url(
    platform: Platform,
    redirect_uri: str = Query(..., min_length=1),
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    try:
        descriptor = get_descriptor(platform)
    except UnsupportedPlatform as e:
        raise HTTPException(status_code=400, detail=str(e))
    integration = storage.get_integration(platform.value)
    client_id = _reveal(platform.value, integration.client_id) if integration else ""
    if not client_id:
        raise HTTPException(status_code=400, detail=f"Client ID not configured for {platform.value}")
    return AuthorizeUrlResponse(
        authorization_url=build_authorization_url(descriptor, client_id, redirect_uri),
        state=platform.value,
    )


@router.post("/oauth/callback", response_model=OAuthCallbackResponse)
async def oauth_callback(
    body: OAuthCallbackRequest,
    storage: SocialStorage = Depends(get_storage),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
    scheduler: SyncScheduler | None = Depends(get_sync_scheduler),
    user: User = Depends(get_admin_user),
):
    """Exchange the authorization code. ``state`` names the platform."""
    try:
        descriptor = get_descriptor(body.state)
    except UnsupportedPlatform as e:
        raise HTTPException(status_code=400, detail=str(e))
    platform = descriptor.platform.value

    integration = storage.get_integration(platform)
    client_id = _reveal(platform, integration.client_id) if integration else ""
    client_secret = _reveal(platform, integration.client_secret) if integration else ""
    if not client_id or not client_secret:
        raise HTTPException(status_code=400, detail=f"Client credentials not configured for {platform}")

    async with PlatformHttpClient(platform, transport=transport) as http:
        try:
            grant = await exchange_code(
                descriptor, http, body.code, client_id, client_secret, body.redirect_uri
            )
        except OAuthExchangeFailed:
            raise HTTPException(status_code=400, detail="Failed to exchange code for token")

    integration = store_token_grant(storage, platform, grant)
    _refresh_schedule(scheduler, integration)
    return OAuthCallbackResponse(
        success=True, platform=platform, token_expires_at=integration.token_expires_at
    )


# --- Sync ---


@router.post("/sync", response_model=SyncAllResponse)
async def sync_all(
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    user: User = Depends(get_admin_user),
):
    results = await orchestrator.sync_all_platforms()
    succeeded = sum(1 for r in results if r.success)
    return SyncAllResponse(results=results, succeeded=succeeded, failed=len(results) - succeeded)


@router.post("/sync/{platform}", response_model=SyncResult)
async def sync_platform(
    platform: Platform,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
    user: User = Depends(get_admin_user),
):
    try:
        return await orchestrator.sync_platform(platform)
    except UnsupportedPlatform as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/sync-logs", response_model=list[SyncLogResponse])
async def list_sync_logs(
    platform: Platform | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    logs = storage.list_sync_logs(platform.value if platform else None, limit=limit)
    return [SyncLogResponse.model_validate(log, from_attributes=True) for log in logs]


# --- Analytics ---


@router.get("/analytics", response_model=list[AnalyticsResponse])
async def list_analytics(
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    return [_analytics_response(a) for a in storage.list_analytics()]


@router.post("/analytics/reset")
async def reset_analytics(
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    storage.reset_analytics()
    logger.info("Reset all analytics snapshots")
    return {"detail": "Analytics reset"}


@router.get("/analytics/{platform}", response_model=AnalyticsResponse)
async def get_analytics(
    platform: Platform,
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    analytics = storage.get_analytics(platform.value)
    if not analytics:
        raise HTTPException(status_code=404, detail=f"No analytics recorded for {platform.value}")
    return _analytics_response(analytics)


@router.put("/analytics/{platform}", response_model=AnalyticsResponse)
async def update_analytics(
    platform: Platform,
    body: AnalyticsUpdate,
    storage: SocialStorage = Depends(get_storage),
    user: User = Depends(get_admin_user),
):
    """Manual metric entry, used for platforms without an analytics API."""
    changes = {
        field: f"{value:.2f}" if field == "engagement_rate" else str(value)
        for field, value in body.model_dump(exclude_none=True).items()
    }
    if not changes:
        raise HTTPException(status_code=400, detail="No metrics provided")
    return _analytics_response(storage.update_analytics(platform.value, **changes))


# --- Scheduler ---


@router.get("/scheduler", response_model=SchedulerStatusResponse)
async def scheduler_status(
    scheduler: SyncScheduler | None = Depends(get_sync_scheduler),
    user: User = Depends(get_admin_user),
):
    if scheduler is None:
        return SchedulerStatusResponse(running=False, jobs=[])
    return SchedulerStatusResponse(
        running=scheduler.scheduler.running,
        jobs=[SchedulerJob(**job) for job in scheduler.status()],
    )


# --- Public ---


@router.get("/public/analytics", response_model=list[AnalyticsResponse])
async def public_analytics(storage: SocialStorage = Depends(get_storage)):
    """Snapshots the marketing site may show. Platforms without an integration count as published."""
    hidden = {i.platform for i in storage.list_integrations() if not i.is_published}
    return [_analytics_response(a) for a in storage.list_analytics() if a.platform not in hidden]
