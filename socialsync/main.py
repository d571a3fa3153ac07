from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from socialsync.api.auth import router as auth_router
from socialsync.api.social import router as social_router
from socialsync.auth import ensure_admin_user
from socialsync.config import settings
from socialsync.database import engine, init_db
from socialsync.logging_config import setup_logging
from socialsync.services.scheduler import SyncScheduler
from socialsync.services.sync import SyncLockRegistry
from socialsync.storage import open_sql_storage


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = setup_logging(settings.log_level)
    init_db()
    with Session(engine) as session:
        ensure_admin_user(session)

    if settings.scheduler_enabled:
        scheduler = SyncScheduler(lambda: open_sql_storage(engine), app.state.sync_locks)
        scheduler.initialize()
        scheduler.start()
        app.state.sync_scheduler = scheduler
    else:
        logger.info("Auto-sync scheduler disabled")
    yield
    if app.state.sync_scheduler is not None:
        app.state.sync_scheduler.shutdown()
        app.state.sync_scheduler = None


app = FastAPI(title="SocialSync", version="0.1.0", lifespan=lifespan)
app.state.sync_locks = SyncLockRegistry()
app.state.sync_scheduler = None

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api")
app.include_router(social_router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok"}
