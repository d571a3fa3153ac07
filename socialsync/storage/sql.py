from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy import Engine
from sqlmodel import Session, col, select

from socialsync.models.social import PlatformAnalytics, PlatformIntegration, SyncLog
from socialsync.storage.base import ANALYTICS_DEFAULTS


class SQLStorage:
    """SocialStorage backed by a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    # --- Integrations ---

    def get_integration(self, platform: str) -> PlatformIntegration | None:
        return self.session.exec(
            select(PlatformIntegration).where(PlatformIntegration.platform == platform)
        ).first()

    def list_integrations(self) -> list[PlatformIntegration]:
        return list(
            self.session.exec(
                select(PlatformIntegration).order_by(PlatformIntegration.platform)
            ).all()
        )

    def update_integration(self, platform: str, **changes: Any) -> PlatformIntegration:
        integration = self.get_integration(platform)
        if integration is None:
            integration = PlatformIntegration(platform=platform)
        for field, value in changes.items():
            setattr(integration, field, value)
        integration.updated_at = datetime.utcnow()
        self.session.add(integration)
        self.session.commit()
        self.session.refresh(integration)
        return integration

    # --- Analytics ---

    def get_analytics(self, platform: str) -> PlatformAnalytics | None:
        return self.session.exec(
            select(PlatformAnalytics).where(PlatformAnalytics.platform == platform)
        ).first()

    def list_analytics(self) -> list[PlatformAnalytics]:
        return list(
            self.session.exec(
                select(PlatformAnalytics).order_by(PlatformAnalytics.platform)
            ).all()
        )

    def update_analytics(self, platform: str, **changes: Any) -> PlatformAnalytics:
        analytics = self.get_analytics(platform)
        if analytics is None:
            analytics = PlatformAnalytics(platform=platform)
        for field, value in changes.items():
            setattr(analytics, field, value)
        analytics.updated_at = datetime.utcnow()
        self.session.add(analytics)
        self.session.commit()
        self.session.refresh(analytics)
        return analytics

    def reset_analytics(self) -> None:
        now = datetime.utcnow()
        for analytics in self.list_analytics():
            for field, value in ANALYTICS_DEFAULTS.items():
                setattr(analytics, field, value)
            analytics.updated_at = now
            self.session.add(analytics)
        self.session.commit()

    # --- Sync logs ---

    def create_sync_log(
        self,
        platform: str,
        sync_type: str,
        status: str,
        metrics_updated: list[str] | None = None,
        error_message: str | None = None,
    ) -> SyncLog:
        log = SyncLog(
            platform=platform,
            sync_type=sync_type,
            status=status,
            metrics_updated=list(metrics_updated or []),
            error_message=error_message,
        )
        self.session.add(log)
        self.session.commit()
        self.session.refresh(log)
        return log

    def list_sync_logs(self, platform: str | None = None, limit: int = 50) -> list[SyncLog]:
        query = select(SyncLog)
        if platform:
            query = query.where(SyncLog.platform == platform)
        query = query.order_by(col(SyncLog.synced_at).desc(), col(SyncLog.id).desc()).limit(limit)
        return list(self.session.exec(query).all())


@contextmanager
def open_sql_storage(engine: Engine) -> Iterator[SQLStorage]:
    """Storage bound to a fresh session, for work outside a request (scheduler jobs)."""
    with Session(engine) as session:
        yield SQLStorage(session)
