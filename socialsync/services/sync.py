"""Entry points for one-platform and all-platform syncs."""

import asyncio
import logging

import httpx

from socialsync.models.social import AUTO_SYNC_PLATFORMS, Platform, SyncType
from socialsync.services.factory import create_platform_client
from socialsync.services.social_client import SyncResult
from socialsync.storage.base import SocialStorage

logger = logging.getLogger(__name__)


class SyncLockRegistry:
    """One asyncio.Lock per platform, shared by the API and the scheduler."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, platform: str) -> asyncio.Lock:
        if platform not in self._locks:
            self._locks[platform] = asyncio.Lock()
        return self._locks[platform]


class SyncOrchestrator:
    def __init__(
        self,
        storage: SocialStorage,
        *,
        locks: SyncLockRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.storage = storage
        self.locks = locks or SyncLockRegistry()
        self.transport = transport

    async def sync_platform(
        self, platform: str | Platform, sync_type: SyncType = SyncType.MANUAL
    ) -> SyncResult:
        """Sync one platform. UnsupportedPlatform propagates to the caller."""
        client = create_platform_client(platform, self.storage, transport=self.transport)
        async with client:
            lock = self.locks.lock_for(client.platform)
            if lock.locked():
                logger.info(f"{client.platform} sync already running, waiting for it")
            async with lock:
                return await client.sync(sync_type)

    async def sync_all_platforms(
        self, sync_type: SyncType = SyncType.MANUAL
    ) -> list[SyncResult]:
        """Sync every auto-sync platform in turn. One failure never stops the rest."""
        results = []
        for platform in AUTO_SYNC_PLATFORMS:
            integration = self.storage.get_integration(platform.value)
            if integration is not None and integration.is_manual_mode:
                results.append(
                    SyncResult(success=True, platform=platform.value, skipped=True)
                )
                continue
            try:
                result = await self.sync_platform(platform, sync_type)
            except Exception as e:
                logger.exception(f"Unexpected error syncing {platform.value}")
                result = SyncResult(success=False, platform=platform.value, error=str(e))
            results.append(result)

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Bulk sync finished: {succeeded}/{len(results)} platforms succeeded")
        return results
