"""Periodic auto-sync: one cron job per connected, auto-sync-enabled platform."""

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from socialsync.errors import SocialSyncError
from socialsync.models.social import AUTO_SYNC_PLATFORMS, PlatformIntegration, SyncInterval, SyncType
from socialsync.services.social_client import SyncResult
from socialsync.services.sync import SyncLockRegistry, SyncOrchestrator
from socialsync.storage.base import SocialStorage

logger = logging.getLogger(__name__)

JOB_PREFIX = "sync:"

StorageFactory = Callable[[], AbstractContextManager[SocialStorage]]


def should_schedule(integration: PlatformIntegration) -> bool:
    return (
        integration.platform in {p.value for p in AUTO_SYNC_PLATFORMS}
        and integration.is_connected
        and integration.auto_sync_enabled
        and not integration.is_manual_mode
    )


class SyncScheduler:
    """Wraps an AsyncIOScheduler.

    Each job opens its own storage through ``storage_factory`` and shares the
    lock registry with the API, so a scheduled run and a manual "sync now" on
    the same platform never overlap.
    """

    def __init__(
        self,
        storage_factory: StorageFactory,
        locks: SyncLockRegistry,
        transport: httpx.AsyncBaseTransport | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ):
        self.storage_factory = storage_factory
        self.locks = locks
        self.transport = transport
        self.scheduler = scheduler or AsyncIOScheduler(timezone="UTC")

    @staticmethod
    def job_id(platform: str) -> str:
        return f"{JOB_PREFIX}{platform}"

    def start(self):
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Sync scheduler started")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Sync scheduler stopped")

    def schedule_platform(self, platform: str, interval: str | SyncInterval):
        interval = SyncInterval(interval)
        # Jobs added before start() are queued, not replaced, so drop the old one first
        self.stop_platform(platform)
        self.scheduler.add_job(
            self._run_sync,
            CronTrigger.from_crontab(interval.cron, timezone="UTC"),
            args=[platform],
            id=self.job_id(platform),
            name=f"{platform} every {interval.value}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Scheduled {platform} auto-sync every {interval.value} ({interval.cron})")

    def stop_platform(self, platform: str) -> bool:
        job_id = self.job_id(platform)
        if self.scheduler.get_job(job_id) is None:
            return False
        self.scheduler.remove_job(job_id)
        logger.info(f"Stopped {platform} auto-sync")
        return True

    def stop_all(self):
        for job in self.scheduler.get_jobs():
            if job.id.startswith(JOB_PREFIX):
                self.scheduler.remove_job(job.id)

    def initialize(self) -> int:
        """Schedule every integration that qualifies. Returns the number of jobs."""
        with self.storage_factory() as storage:
            integrations = storage.list_integrations()
        scheduled = 0
        for integration in integrations:
            if should_schedule(integration):
                self.schedule_platform(integration.platform, integration.sync_interval)
                scheduled += 1
        logger.info(f"Auto-sync initialized for {scheduled} platform(s)")
        return scheduled

    def refresh_platform(self, integration: PlatformIntegration):
        """Re-evaluate one platform after its settings changed."""
        if should_schedule(integration):
            self.schedule_platform(integration.platform, integration.sync_interval)
        else:
            self.stop_platform(integration.platform)

    def status(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            if not job.id.startswith(JOB_PREFIX):
                continue
            jobs.append(
                {
                    "platform": job.id[len(JOB_PREFIX):],
                    "name": job.name,
                    # Unset until the scheduler has started
                    "next_run_time": getattr(job, "next_run_time", None),
                }
            )
        return sorted(jobs, key=lambda j: j["platform"])

    async def _run_sync(self, platform: str) -> SyncResult | None:
        logger.info(f"Running scheduled sync for {platform}")
        with self.storage_factory() as storage:
            orchestrator = SyncOrchestrator(storage, locks=self.locks, transport=self.transport)
            try:
                return await orchestrator.sync_platform(platform, SyncType.SCHEDULED)
            except SocialSyncError as e:
                logger.error(f"Scheduled sync for {platform} could not start: {e}")
                return None
