from datetime import datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from socialsync.api.deps import get_http_transport
from socialsync.auth import hash_password
from socialsync.crypto import encrypt
from socialsync.database import get_session
from socialsync.main import app
from socialsync.models.user import User
from socialsync.services.sync import SyncLockRegistry
from socialsync.storage import MemoryStorage, SQLStorage

GRAPH = "https://graph.facebook.com/v18.0"
YOUTUBE = "https://www.googleapis.com/youtube/v3"
LINKEDIN = "https://api.linkedin.com/v2"
TWITTER = "https://api.twitter.com/2"

TOKEN_URLS = {
    "youtube": ("POST", "https://oauth2.googleapis.com/token"),
    "facebook": ("GET", f"{GRAPH}/oauth/access_token"),
    "instagram": ("GET", f"{GRAPH}/oauth/access_token"),
    "linkedin": ("POST", "https://www.linkedin.com/oauth/v2/accessToken"),
    "twitter": ("POST", f"{TWITTER}/oauth2/token"),
}

LINKEDIN_ORG_ID = "12345"

# Analytics columns produced by the canned responses in install_platform_routes
EXPECTED_ANALYTICS = {
    "youtube": {
        "followers_count": "1500",
        "engagement_rate": "6.00",
        "impressions": "1000",
        "likes": "50",
        "shares": "0",
        "comments": "10",
        "posts_count": "42",
    },
    "facebook": {
        "followers_count": "800",
        "engagement_rate": "3.00",
        "impressions": "2000",
        "likes": "45",
        "shares": "10",
        "comments": "5",
        "posts_count": "2",
    },
    "instagram": {
        "followers_count": "1200",
        "engagement_rate": "10.00",
        "impressions": "1000",
        "likes": "80",
        "shares": "0",
        "comments": "20",
        "posts_count": "30",
    },
    "linkedin": {
        "followers_count": "350",
        "engagement_rate": "4.00",
        "impressions": "1000",
        "likes": "30",
        "shares": "5",
        "comments": "5",
        "posts_count": "2",
    },
    "twitter": {
        "followers_count": "900",
        "engagement_rate": "5.00",
        "impressions": "1000",
        "likes": "30",
        "shares": "10",
        "comments": "10",
        "posts_count": "120",
    },
}


class FakePlatformApi:
    """Canned platform responses served through httpx.MockTransport.

    Routes match on method plus URL without the query string. Several
    responses registered for one route are served in order; the last one
    repeats.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, json=None, status_code: int = 200):
        self.routes.setdefault((method, url), []).append((status_code, json))

    def calls(self, method: str, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and _route_url(r) == url]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self.routes.get((request.method, _route_url(request)))
        if not responses:
            return httpx.Response(404, json={"error": {"message": f"No route for {request.url}"}})
        status_code, payload = responses.pop(0) if len(responses) > 1 else responses[0]
        return httpx.Response(status_code, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _route_url(request: httpx.Request) -> str:
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


def install_platform_routes(api: FakePlatformApi, platform: str):
    """Register successful analytics responses for one platform."""
    if platform == "youtube":
        api.add("GET", f"{YOUTUBE}/channels", {
            "items": [{
                "id": "UC123",
                "snippet": {"title": "Acme Channel"},
                "statistics": {"subscriberCount": "1500", "videoCount": "42"},
            }],
        })
        api.add("GET", f"{YOUTUBE}/search", {
            "items": [{"id": {"videoId": "v1"}}, {"id": {"videoId": "v2"}}],
        })
        api.add("GET", f"{YOUTUBE}/videos", {
            "items": [
                {"statistics": {"viewCount": "600", "likeCount": "30", "commentCount": "6"}},
                {"statistics": {"viewCount": "400", "likeCount": "20", "commentCount": "4"}},
            ],
        })
    elif platform == "facebook":
        api.add("GET", f"{GRAPH}/me", {"id": "page-1", "name": "Acme Page", "followers_count": 800})
        api.add("GET", f"{GRAPH}/page-1/insights", {
            "data": [{"name": "page_impressions", "values": [{"value": 1500}, {"value": 2000}]}],
        })
        api.add("GET", f"{GRAPH}/page-1/posts", {
            "data": [
                {
                    "likes": {"summary": {"total_count": 25}},
                    "comments": {"summary": {"total_count": 3}},
                    "shares": {"count": 6},
                },
                {
                    "likes": {"summary": {"total_count": 20}},
                    "comments": {"summary": {"total_count": 2}},
                    "shares": {"count": 4},
                },
            ],
        })
    elif platform == "instagram":
        api.add("GET", f"{GRAPH}/me/accounts", {
            "data": [{"id": "page-1"}, {"id": "page-2", "instagram_business_account": {"id": "ig-1"}}],
        })
        api.add("GET", f"{GRAPH}/ig-1", {"followers_count": 1200, "media_count": 30, "username": "acme"})
        api.add("GET", f"{GRAPH}/ig-1/media", {
            "data": [
                {
                    "like_count": 50,
                    "comments_count": 12,
                    "insights": {"data": [{"name": "impressions", "values": [{"value": 600}]}]},
                },
                {
                    "like_count": 30,
                    "comments_count": 8,
                    "insights": {"data": [{"name": "impressions", "values": [{"value": 400}]}]},
                },
            ],
        })
    elif platform == "linkedin":
        api.add("GET", f"{LINKEDIN}/organizations/{LINKEDIN_ORG_ID}", {"id": 12345, "localizedName": "Acme Corp"})
        api.add("GET", f"{LINKEDIN}/networkSizes/urn:li:organization:{LINKEDIN_ORG_ID}", {"firstDegreeSize": 350})
        api.add("GET", f"{LINKEDIN}/shares", {
            "elements": [
                {"totalShareStatistics": {"likeCount": 20, "shareCount": 3, "commentCount": 2, "impressionCount": 600}},
                {"totalShareStatistics": {"likeCount": 10, "shareCount": 2, "commentCount": 3, "impressionCount": 400}},
            ],
        })
    elif platform == "twitter":
        api.add("GET", f"{TWITTER}/users/me", {
            "data": {
                "id": "42",
                "username": "acme",
                "public_metrics": {"followers_count": 900, "tweet_count": 120},
            },
        })
        api.add("GET", f"{TWITTER}/users/42/tweets", {
            "data": [
                {"public_metrics": {"like_count": 20, "retweet_count": 6, "reply_count": 4, "impression_count": 700}},
                {"public_metrics": {"like_count": 10, "retweet_count": 4, "reply_count": 6, "impression_count": 300}},
            ],
        })
    else:
        raise ValueError(f"No canned routes for {platform}")


def install_token_route(api: FakePlatformApi, platform: str, json=None, status_code: int = 200):
    method, url = TOKEN_URLS[platform]
    if json is None and status_code == 200:
        json = {"access_token": "new-access-token", "refresh_token": "new-refresh-token", "expires_in": 3600}
    api.add(method, url, json, status_code)


def connect_platform(
    storage,
    platform: str,
    *,
    access_token: str = "access-token",
    refresh_token: str = "refresh-token",
    expires_at: datetime | None = None,
    **changes,
):
    """Store an integration that looks like a completed OAuth connection."""
    if platform == "linkedin":
        changes.setdefault("account_id", LINKEDIN_ORG_ID)
    return storage.update_integration(
        platform,
        client_id=encrypt(f"{platform}-client-id"),
        client_secret=encrypt(f"{platform}-client-secret"),
        access_token=encrypt(access_token),
        refresh_token=encrypt(refresh_token),
        token_expires_at=expires_at or datetime.utcnow() + timedelta(hours=1),
        is_connected=True,
        **changes,
    )


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        # Seed admin user
        admin = User(
            username="admin",
            password_hash=hash_password("admin"),
            role="admin",
        )
        session.add(admin)
        session.commit()
        yield session


@pytest.fixture
def fake_api() -> FakePlatformApi:
    return FakePlatformApi()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def sql_storage(session: Session) -> SQLStorage:
    return SQLStorage(session)


@pytest.fixture(name="client")
def client_fixture(session: Session, fake_api: FakePlatformApi):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_http_transport] = lambda: fake_api.transport
    app.state.sync_locks = SyncLockRegistry()
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
    app.state.sync_scheduler = None


@pytest.fixture
def admin_token(client: TestClient) -> str:
    response = client.post(
        "/api/auth/login",
        json={"username": "admin", "password": "admin"},
    )
    return response.json()["access_token"]


@pytest.fixture
def editor_token(client: TestClient, session: Session) -> str:
    user = User(
        username="editor",
        password_hash=hash_password("editorpass"),
        role="editor",
    )
    session.add(user)
    session.commit()
    response = client.post(
        "/api/auth/login",
        json={"username": "editor", "password": "editorpass"},
    )
    return response.json()["access_token"]
