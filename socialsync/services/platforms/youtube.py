"""YouTube Data API v3: channel statistics plus statistics of recent uploads."""

from socialsync.errors import PlatformApiError
from socialsync.models.social import Platform
from socialsync.services.http_client import PlatformHttpClient
from socialsync.services.metrics import MetricSet
from socialsync.services.platforms.base import (
    Credentials,
    FetchResult,
    PlatformDescriptor,
    as_int,
)

API_URL = "https://www.googleapis.com/youtube/v3"
RECENT_VIDEO_LIMIT = 10


async def fetch_youtube(http: PlatformHttpClient, creds: Credentials) -> FetchResult:
    token = creds.access_token
    channels = await http.get(
        f"{API_URL}/channels",
        bearer=token,
        params={"part": "statistics,snippet", "mine": "true"},
    )
    items = channels.get("items") or []
    if not items:
        raise PlatformApiError("youtube", "No channel found for the authenticated account")
    channel = items[0]
    stats = channel.get("statistics") or {}

    metrics = MetricSet(
        followers=as_int(stats.get("subscriberCount")),
        posts=as_int(stats.get("videoCount")),
    )

    search = await http.get(
        f"{API_URL}/search",
        bearer=token,
        params={
            "part": "id",
            "forMine": "true",
            "type": "video",
            "order": "date",
            "maxResults": RECENT_VIDEO_LIMIT,
        },
    )
    video_ids = [
        item["id"]["videoId"]
        for item in search.get("items", [])
        if (item.get("id") or {}).get("videoId")
    ]

    if video_ids:
        videos = await http.get(
            f"{API_URL}/videos",
            bearer=token,
            params={"part": "statistics", "id": ",".join(video_ids)},
        )
        for video in videos.get("items", []):
            video_stats = video.get("statistics") or {}
            metrics.likes += as_int(video_stats.get("likeCount"))
            metrics.comments += as_int(video_stats.get("commentCount"))
            # Views of the recent uploads, so engagement compares like with like
            metrics.impressions += as_int(video_stats.get("viewCount"))

    return FetchResult(
        metrics=metrics,
        account_id=channel.get("id"),
        account_name=(channel.get("snippet") or {}).get("title") or "YouTube Channel",
    )


DESCRIPTOR = PlatformDescriptor(
    platform=Platform.YOUTUBE,
    authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
    token_url="https://oauth2.googleapis.com/token",
    scopes=(
        "https://www.googleapis.com/auth/youtube.readonly",
        "https://www.googleapis.com/auth/yt-analytics.readonly",
    ),
    fetch=fetch_youtube,
    extra_authorize_params={"access_type": "offline", "prompt": "consent"},
)
