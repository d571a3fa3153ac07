"""Facebook Pages and Instagram Business accounts, both read through the Graph API."""

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

GRAPH_API_URL = "https://graph.facebook.com/v18.0"
RECENT_POST_LIMIT = 10


def _latest_value(metric: dict) -> int:
    values = metric.get("values") or []
    return as_int(values[-1].get("value")) if values else 0


async def fetch_facebook(http: PlatformHttpClient, creds: Credentials) -> FetchResult:
    token = creds.access_token
    page = await http.get(
        f"{GRAPH_API_URL}/me",
        bearer=token,
        params={"fields": "id,name,followers_count,fan_count"},
    )
    page_id = page.get("id")
    if not page_id:
        raise PlatformApiError("facebook", "Page id missing from /me response")

    metrics = MetricSet(
        followers=as_int(page.get("followers_count") or page.get("fan_count")),
    )

    insights = await http.get(
        f"{GRAPH_API_URL}/{page_id}/insights",
        bearer=token,
        params={"metric": "page_impressions", "period": "day"},
    )
    for metric in insights.get("data", []):
        if metric.get("name") == "page_impressions":
            metrics.impressions = _latest_value(metric)

    posts = await http.get(
        f"{GRAPH_API_URL}/{page_id}/posts",
        bearer=token,
        params={
            "fields": "likes.summary(true),comments.summary(true),shares",
            "limit": RECENT_POST_LIMIT,
        },
    )
    post_items = posts.get("data", [])
    metrics.posts = len(post_items)
    for post in post_items:
        metrics.likes += as_int(((post.get("likes") or {}).get("summary") or {}).get("total_count"))
        metrics.comments += as_int(((post.get("comments") or {}).get("summary") or {}).get("total_count"))
        metrics.shares += as_int((post.get("shares") or {}).get("count"))

    return FetchResult(
        metrics=metrics,
        account_id=page_id,
        account_name=page.get("name") or "Facebook Page",
    )


async def fetch_instagram(http: PlatformHttpClient, creds: Credentials) -> FetchResult:
    token = creds.access_token
    pages = await http.get(
        f"{GRAPH_API_URL}/me/accounts",
        bearer=token,
        params={"fields": "instagram_business_account"},
    )
    ig_account = next(
        (
            page["instagram_business_account"]
            for page in pages.get("data", [])
            if page.get("instagram_business_account")
        ),
        None,
    )
    if not ig_account:
        raise PlatformApiError(
            "instagram", "No Instagram business account is linked to a Facebook page"
        )
    ig_id = ig_account["id"]

    profile = await http.get(
        f"{GRAPH_API_URL}/{ig_id}",
        bearer=token,
        params={"fields": "followers_count,media_count,username"},
    )
    metrics = MetricSet(
        followers=as_int(profile.get("followers_count")),
        posts=as_int(profile.get("media_count")),
    )

    media = await http.get(
        f"{GRAPH_API_URL}/{ig_id}/media",
        bearer=token,
        params={
            "fields": "like_count,comments_count,insights.metric(impressions)",
            "limit": RECENT_POST_LIMIT,
        },
    )
    for item in media.get("data", []):
        metrics.likes += as_int(item.get("like_count"))
        metrics.comments += as_int(item.get("comments_count"))
        for insight in (item.get("insights") or {}).get("data", []):
            if insight.get("name") == "impressions":
                values = insight.get("values") or []
                metrics.impressions += as_int(values[0].get("value")) if values else 0

    return FetchResult(
        metrics=metrics,
        account_id=ig_id,
        account_name=profile.get("username") or "Instagram Account",
    )


def _meta_descriptor(platform: Platform, scopes: tuple[str, ...], fetch) -> PlatformDescriptor:
    return PlatformDescriptor(
        platform=platform,
        authorize_url="https://www.facebook.com/v18.0/dialog/oauth",
        token_url=f"{GRAPH_API_URL}/oauth/access_token",
        scopes=scopes,
        fetch=fetch,
        scope_separator=",",
        token_method="GET",
        refresh_grant="fb_exchange_token",
        exchange_long_lived=True,
    )


FACEBOOK = _meta_descriptor(
    Platform.FACEBOOK,
    ("pages_read_engagement", "pages_show_list", "pages_read_user_content"),
    fetch_facebook,
)

INSTAGRAM = _meta_descriptor(
    Platform.INSTAGRAM,
    ("instagram_basic", "instagram_manage_insights", "pages_read_engagement"),
    fetch_instagram,
)
