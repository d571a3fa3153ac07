"""LinkedIn organization pages: follower count and recent share statistics."""

from socialsync.errors import NotConfigured
from socialsync.models.social import Platform
from socialsync.services.http_client import PlatformHttpClient
from socialsync.services.metrics import MetricSet
from socialsync.services.platforms.base import (
    Credentials,
    FetchResult,
    PlatformDescriptor,
    as_int,
)

API_URL = "https://api.linkedin.com/v2"
RECENT_SHARE_LIMIT = 10


async def fetch_linkedin(http: PlatformHttpClient, creds: Credentials) -> FetchResult:
    org_id = creds.account_id
    if not org_id:
        raise NotConfigured("linkedin", "LinkedIn organization id is not configured")
    token = creds.access_token
    org_urn = f"urn:li:organization:{org_id}"

    org = await http.get(
        f"{API_URL}/organizations/{org_id}",
        bearer=token,
        params={"projection": "(id,localizedName,vanityName)"},
    )
    network = await http.get(
        f"{API_URL}/networkSizes/{org_urn}",
        bearer=token,
        params={"edgeType": "CompanyFollowedByMember"},
    )
    metrics = MetricSet(followers=as_int(network.get("firstDegreeSize")))

    shares = await http.get(
        f"{API_URL}/shares",
        bearer=token,
        params={"q": "owners", "owners": org_urn, "count": RECENT_SHARE_LIMIT},
    )
    elements = shares.get("elements", [])
    metrics.posts = len(elements)
    for share in elements:
        stats = share.get("totalShareStatistics") or {}
        metrics.likes += as_int(stats.get("likeCount"))
        metrics.shares += as_int(stats.get("shareCount"))
        metrics.comments += as_int(stats.get("commentCount"))
        metrics.impressions += as_int(stats.get("impressionCount"))

    return FetchResult(
        metrics=metrics,
        account_id=org_id,
        account_name=org.get("localizedName") or "LinkedIn Organization",
    )


DESCRIPTOR = PlatformDescriptor(
    platform=Platform.LINKEDIN,
    authorize_url="https://www.linkedin.com/oauth/v2/authorization",
    token_url="https://www.linkedin.com/oauth/v2/accessToken",
    scopes=("r_organization_social", "rw_organization_admin", "r_basicprofile"),
    fetch=fetch_linkedin,
)
