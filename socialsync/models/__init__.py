from socialsync.models.social import (
    PlatformAnalytics,
    PlatformIntegration,
    SyncLog,
)
from socialsync.models.user import User

__all__ = [
    "PlatformAnalytics",
    "PlatformIntegration",
    "SyncLog",
    "User",
]
