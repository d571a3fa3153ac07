"""Twitter/X API v2: account public metrics and recent tweet metrics."""

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

API_URL = "https://api.twitter.com/2"
RECENT_TWEET_LIMIT = 10


async def fetch_twitter(http: PlatformHttpClient, creds: Credentials) -> FetchResult:
    token = creds.access_token
    me = await http.get(
        f"{API_URL}/users/me",
        bearer=token,
        params={"user.fields": "public_metrics,username"},
    )
    user = me.get("data")
    if not user or not user.get("id"):
        raise PlatformApiError("twitter", "User missing from users/me response")

    public = user.get("public_metrics") or {}
    metrics = MetricSet(
        followers=as_int(public.get("followers_count")),
        posts=as_int(public.get("tweet_count")),
    )

    tweets = await http.get(
        f"{API_URL}/users/{user['id']}/tweets",
        bearer=token,
        params={"max_results": RECENT_TWEET_LIMIT, "tweet.fields": "public_metrics"},
    )
    for tweet in tweets.get("data", []):
        tweet_metrics = tweet.get("public_metrics") or {}
        metrics.likes += as_int(tweet_metrics.get("like_count"))
        metrics.shares += as_int(tweet_metrics.get("retweet_count"))
        metrics.comments += as_int(tweet_metrics.get("reply_count"))
        metrics.impressions += as_int(tweet_metrics.get("impression_count"))

    username = user.get("username")
    return FetchResult(
        metrics=metrics,
        account_id=user["id"],
        account_name=f"@{username}" if username else "Twitter Account",
    )


DESCRIPTOR = PlatformDescriptor(
    platform=Platform.TWITTER,
    authorize_url="https://twitter.com/i/oauth2/authorize",
    token_url="https://api.twitter.com/2/oauth2/token",
    scopes=("tweet.read", "users.read", "follows.read", "offline.access"),
    fetch=fetch_twitter,
    token_auth="basic",
    uses_pkce=True,
)
