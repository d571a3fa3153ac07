from dataclasses import dataclass

METRIC_NAMES = (
    "followers",
    "engagement_rate",
    "impressions",
    "likes",
    "shares",
    "comments",
    "posts",
)


def engagement_rate(likes: int, shares: int, comments: int, impressions: int) -> float:
    """(likes + shares + comments) / impressions * 100, rounded to 2 decimals.

    Returns 0.0 when there are no impressions.
    """
    if impressions <= 0:
        return 0.0
    return round((likes + shares + comments) / impressions * 100, 2)


@dataclass
class MetricSet:
    """Platform-independent analytics snapshot returned by every fetch routine."""

    followers: int = 0
    impressions: int = 0
    likes: int = 0
    shares: int = 0
    comments: int = 0
    posts: int = 0

    @property
    def engagement_rate(self) -> float:
        return engagement_rate(self.likes, self.shares, self.comments, self.impressions)

    def as_dict(self) -> dict[str, int | float]:
        return {name: getattr(self, name) for name in METRIC_NAMES}

    def updated_metrics(self) -> list[str]:
        """Names of the metrics that carry a non-zero value."""
        return [name for name, value in self.as_dict().items() if value]

    def to_analytics_fields(self) -> dict[str, str]:
        """Column values for PlatformAnalytics."""
        return {
            "followers_count": str(self.followers),
            "engagement_rate": f"{self.engagement_rate:.2f}",
            "impressions": str(self.impressions),
            "likes": str(self.likes),
            "shares": str(self.shares),
            "comments": str(self.comments),
            "posts_count": str(self.posts),
        }
