from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class Platform(str, Enum):
    YOUTUBE = "youtube"
    FACEBOOK = "facebook"
    INSTAGRAM = "instagram"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    WHATSAPP = "whatsapp"
    VIBER = "viber"


# Synced in this order by the bulk sync
AUTO_SYNC_PLATFORMS = (
    Platform.YOUTUBE,
    Platform.FACEBOOK,
    Platform.INSTAGRAM,
    Platform.LINKEDIN,
    Platform.TWITTER,
)
MANUAL_ONLY_PLATFORMS = (Platform.WHATSAPP, Platform.VIBER)


class SyncInterval(str, Enum):
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    SIX_HOURS = "6h"
    DAILY = "24h"

    @property
    def delta(self) -> timedelta:
        return _INTERVAL_DELTAS[self]

    @property
    def cron(self) -> str:
        return _INTERVAL_CRONS[self]


_INTERVAL_DELTAS = {
    SyncInterval.FIFTEEN_MINUTES: timedelta(minutes=15),
    SyncInterval.THIRTY_MINUTES: timedelta(minutes=30),
    SyncInterval.ONE_HOUR: timedelta(hours=1),
    SyncInterval.SIX_HOURS: timedelta(hours=6),
    SyncInterval.DAILY: timedelta(days=1),
}

_INTERVAL_CRONS = {
    SyncInterval.FIFTEEN_MINUTES: "*/15 * * * *",
    SyncInterval.THIRTY_MINUTES: "*/30 * * * *",
    SyncInterval.ONE_HOUR: "0 * * * *",
    SyncInterval.SIX_HOURS: "0 */6 * * *",
    SyncInterval.DAILY: "0 0 * * *",
}


class SyncType(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"


class SyncStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class PlatformIntegration(SQLModel, table=True):
    __tablename__ = "platform_integrations"

    id: int | None = Field(default=None, primary_key=True)
    platform: str = Field(unique=True, index=True)
    client_id: str = Field(default="")  # encrypted
    client_secret: str = Field(default="")  # encrypted
    access_token: str = Field(default="")  # encrypted
    refresh_token: str = Field(default="")  # encrypted
    token_expires_at: datetime | None = Field(default=None)
    account_id: str = Field(default="")
    account_name: str = Field(default="")
    is_connected: bool = Field(default=False)
    auto_sync_enabled: bool = Field(default=False)
    sync_interval: str = Field(default=SyncInterval.ONE_HOUR.value)
    is_manual_mode: bool = Field(default=False)
    is_published: bool = Field(default=True)
    last_sync_at: datetime | None = Field(default=None)
    next_sync_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PlatformAnalytics(SQLModel, table=True):
    __tablename__ = "platform_analytics"

    id: int | None = Field(default=None, primary_key=True)
    platform: str = Field(unique=True, index=True)
    # Numeric strings, formatted for display
    followers_count: str = Field(default="0")
    engagement_rate: str = Field(default="0.00")
    impressions: str = Field(default="0")
    likes: str = Field(default="0")
    shares: str = Field(default="0")
    comments: str = Field(default="0")
    posts_count: str = Field(default="0")
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class SyncLog(SQLModel, table=True):
    __tablename__ = "sync_logs"

    id: int | None = Field(default=None, primary_key=True)
    platform: str = Field(index=True)
    sync_type: str = Field(default=SyncType.MANUAL.value)  # "manual" | "scheduled"
    status: str  # "success" | "failure"
    metrics_updated: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    error_message: str | None = Field(default=None)
    synced_at: datetime = Field(default_factory=datetime.utcnow)
