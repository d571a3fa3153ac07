from datetime import datetime
from itertools import count
from typing import Any

from socialsync.models.social import PlatformAnalytics, PlatformIntegration, SyncLog
from socialsync.storage.base import ANALYTICS_DEFAULTS


class MemoryStorage:
    """SocialStorage kept in process memory. Nothing survives a restart."""

    def __init__(self):
        self._integrations: dict[str, PlatformIntegration] = {}
        self._analytics: dict[str, PlatformAnalytics] = {}
        self._logs: list[SyncLog] = []
        self._ids = count(1)

    def get_integration(self, platform: str) -> PlatformIntegration | None:
        return self._integrations.get(platform)

    def list_integrations(self) -> list[PlatformIntegration]:
        return [self._integrations[p] for p in sorted(self._integrations)]

    def update_integration(self, platform: str, **changes: Any) -> PlatformIntegration:
        integration = self._integrations.get(platform)
        if integration is None:
            integration = PlatformIntegration(id=next(self._ids), platform=platform)
            self._integrations[platform] = integration
        for field, value in changes.items():
            setattr(integration, field, value)
        integration.updated_at = datetime.utcnow()
        return integration

    def get_analytics(self, platform: str) -> PlatformAnalytics | None:
        return self._analytics.get(platform)

    def list_analytics(self) -> list[PlatformAnalytics]:
        return [self._analytics[p] for p in sorted(self._analytics)]

    def update_analytics(self, platform: str, **changes: Any) -> PlatformAnalytics:
        analytics = self._analytics.get(platform)
        if analytics is None:
            analytics = PlatformAnalytics(id=next(self._ids), platform=platform)
            self._analytics[platform] = analytics
        for field, value in changes.items():
            setattr(analytics, field, value)
        analytics.updated_at = datetime.utcnow()
        return analytics

    def reset_analytics(self) -> None:
        for analytics in self._analytics.values():
            for field, value in ANALYTICS_DEFAULTS.items():
                setattr(analytics, field, value)
            analytics.updated_at = datetime.utcnow()

    def create_sync_log(
        self,
        platform: str,
        sync_type: str,
        status: str,
        metrics_updated: list[str] | None = None,
        error_message: str | None = None,
    ) -> SyncLog:
        log = SyncLog(
            id=next(self._ids),
            platform=platform,
            sync_type=sync_type,
            status=status,
            metrics_updated=list(metrics_updated or []),
            error_message=error_message,
        )
        self._logs.append(log)
        return log

    def list_sync_logs(self, platform: str | None = None, limit: int = 50) -> list[SyncLog]:
        logs = [log for log in reversed(self._logs) if not platform or log.platform == platform]
        return logs[:limit]
