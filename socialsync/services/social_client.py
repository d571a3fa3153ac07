"""Generic platform client: the sync skeleton shared by every auto-sync platform."""

import logging
from datetime import datetime

import httpx
from pydantic import BaseModel

from socialsync.errors import NotConfigured, PlatformApiError, SocialSyncError
from socialsync.models.social import SyncInterval, SyncStatus, SyncType
from socialsync.services.http_client import PlatformHttpClient
from socialsync.services.metrics import MetricSet
from socialsync.services.oauth import request_token_refresh, store_token_grant
from socialsync.services.platforms.base import Credentials, FetchResult, PlatformDescriptor
from socialsync.storage.base import SocialStorage

logger = logging.getLogger(__name__)


class SyncResult(BaseModel):
    success: bool
    platform: str
    metrics_updated: list[str] = []
    error: str | None = None
    skipped: bool = False


class PlatformClient:
    """Talks to one platform on behalf of the sync layer.

    The descriptor supplies endpoints, token-grant shape and the fetch routine;
    this class owns the bookkeeping around them: credential loading, token
    refresh, snapshot and sync-log writes, and last/next sync timestamps.
    """

    def __init__(
        self,
        descriptor: PlatformDescriptor,
        storage: SocialStorage,
        http: PlatformHttpClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.descriptor = descriptor
        self.platform = descriptor.platform.value
        self.storage = storage
        self._owns_http = http is None
        self.http = http or PlatformHttpClient(self.platform, transport=transport)

    def load_config(self) -> Credentials:
        """Decrypted credentials for a connected integration. Raises NotConfigured."""
        integration = self.storage.get_integration(self.platform)
        if integration is None or not integration.is_connected:
            raise NotConfigured(self.platform)
        try:
            creds = Credentials.from_integration(integration)
        except ValueError as e:
            raise NotConfigured(self.platform, f"{self.platform} credentials are unreadable: {e}") from e
        if not creds.access_token and not creds.refresh_token:
            raise NotConfigured(self.platform, f"{self.platform} has no stored access token")
        return creds

    async def refresh_access_token(self, creds: Credentials | None = None) -> Credentials:
        """Run the refresh grant and persist the new tokens. Raises TokenRefreshFailed."""
        creds = creds or self.load_config()
        grant = await request_token_refresh(self.descriptor, self.http, creds)
        store_token_grant(self.storage, self.platform, grant, connect=False)
        logger.info(f"Refreshed {self.platform} access token")

        creds.access_token = grant.access_token
        creds.token_expires_at = grant.expires_at
        if grant.refresh_token:
            creds.refresh_token = grant.refresh_token
        return creds

    async def _run_fetch(self, creds: Credentials) -> FetchResult:
        try:
            return await self.descriptor.fetch(self.http, creds)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise PlatformApiError(
                self.platform, f"Unexpected response shape: {e!r}"
            ) from e

    async def fetch_analytics(
        self, creds: Credentials | None = None, *, refresh_on_unauthorized: bool = True
    ) -> MetricSet:
        """Fetch the current metric set.

        An HTTP 401 triggers one token refresh and one repeat of the fetch,
        unless the caller has already refreshed the token for this attempt.
        """
        creds = creds or self.load_config()
        try:
            result = await self._run_fetch(creds)
        except PlatformApiError as e:
            if e.status_code != 401 or not refresh_on_unauthorized:
                raise
            logger.warning(f"{self.platform} rejected the access token, refreshing once")
            creds = await self.refresh_access_token(creds)
            result = await self._run_fetch(creds)

        self._remember_account(creds, result)
        return result.metrics

    def _remember_account(self, creds: Credentials, result: FetchResult) -> None:
        changes = {}
        if not creds.account_id and result.account_id:
            changes["account_id"] = str(result.account_id)
        if not creds.account_name and result.account_name:
            changes["account_name"] = result.account_name
        if changes:
            self.storage.update_integration(self.platform, **changes)
            creds.account_id = changes.get("account_id", creds.account_id)
            creds.account_name = changes.get("account_name", creds.account_name)

    async def sync(self, sync_type: SyncType = SyncType.MANUAL) -> SyncResult:
        sync_type = SyncType(sync_type)
        integration = self.storage.get_integration(self.platform)
        if integration is not None and integration.is_manual_mode:
            logger.info(f"Skipping {self.platform} sync: platform is in manual mode")
            return SyncResult(success=True, platform=self.platform, skipped=True)

        try:
            creds = self.load_config()
            refreshed = creds.needs_refresh
            if refreshed:
                creds = await self.refresh_access_token(creds)
            metrics = await self.fetch_analytics(creds, refresh_on_unauthorized=not refreshed)
        except SocialSyncError as e:
            logger.error(f"{self.platform} sync failed: {e}")
            self.storage.create_sync_log(
                self.platform,
                sync_type.value,
                SyncStatus.FAILURE.value,
                error_message=str(e),
            )
            return SyncResult(success=False, platform=self.platform, error=str(e))

        now = datetime.utcnow()
        updated = metrics.updated_metrics()
        self.storage.update_analytics(self.platform, **metrics.to_analytics_fields())
        self.storage.create_sync_log(
            self.platform,
            sync_type.value,
            SyncStatus.SUCCESS.value,
            metrics_updated=updated,
        )
        try:
            interval = SyncInterval(integration.sync_interval)
        except ValueError:
            interval = SyncInterval.ONE_HOUR
        self.storage.update_integration(
            self.platform, last_sync_at=now, next_sync_at=now + interval.delta
        )
        logger.info(f"{self.platform} sync succeeded ({len(updated)} metrics updated)")
        return SyncResult(success=True, platform=self.platform, metrics_updated=updated)

    async def close(self):
        if self._owns_http:
            await self.http.close()

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
