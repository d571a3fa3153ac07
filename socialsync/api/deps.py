import httpx
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from socialsync.auth import decode_token
from socialsync.database import get_session
from socialsync.models.user import User
from socialsync.services.scheduler import SyncScheduler
from socialsync.services.sync import SyncLockRegistry, SyncOrchestrator
from socialsync.storage import SQLStorage, SocialStorage

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session: Session = Depends(get_session),
) -> User:
    try:
        payload = decode_token(credentials.credentials, "access")
        user_id = int(payload["sub"])
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin required")
    return user


def get_storage(session: Session = Depends(get_session)) -> SocialStorage:
    return SQLStorage(session)


def get_http_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for outbound platform calls. None means the real network."""
    return None


def get_sync_locks(request: Request) -> SyncLockRegistry:
    return request.app.state.sync_locks


def get_sync_scheduler(request: Request) -> SyncScheduler | None:
    return getattr(request.app.state, "sync_scheduler", None)


def get_orchestrator(
    storage: SocialStorage = Depends(get_storage),
    locks: SyncLockRegistry = Depends(get_sync_locks),
    transport: httpx.AsyncBaseTransport | None = Depends(get_http_transport),
) -> SyncOrchestrator:
    return SyncOrchestrator(storage, locks=locks, transport=transport)
