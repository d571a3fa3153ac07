from typing import Any, Protocol

from socialsync.models.social import PlatformAnalytics, PlatformIntegration, SyncLog


class SocialStorage(Protocol):
    """Persistence contract used by the sync layer and the admin API.

    Integrations and analytics are keyed by platform name and written with
    upsert semantics; sync logs are append-only.
    """

    def get_integration(self, platform: str) -> PlatformIntegration | None: ...

    def list_integrations(self) -> list[PlatformIntegration]: ...

    def update_integration(self, platform: str, **changes: Any) -> PlatformIntegration: ...

    def get_analytics(self, platform: str) -> PlatformAnalytics | None: ...

    def list_analytics(self) -> list[PlatformAnalytics]: ...

    def update_analytics(self, platform: str, **changes: Any) -> PlatformAnalytics: ...

    def reset_analytics(self) -> None: ...

    def create_sync_log(
        self,
        platform: str,
        sync_type: str,
        status: str,
        metrics_updated: list[str] | None = None,
        error_message: str | None = None,
    ) -> SyncLog: ...

    def list_sync_logs(self, platform: str | None = None, limit: int = 50) -> list[SyncLog]: ...


ANALYTICS_DEFAULTS = {
    "followers_count": "0",
    "engagement_rate": "0.00",
    "impressions": "0",
    "likes": "0",
    "shares": "0",
    "comments": "0",
    "posts_count": "0",
}
