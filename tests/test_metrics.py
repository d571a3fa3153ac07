from socialsync.services.metrics import MetricSet, engagement_rate


def test_engagement_rate_zero_impressions():
    assert engagement_rate(likes=10, shares=5, comments=5, impressions=0) == 0


def test_engagement_rate_rounds_to_two_decimals():
    assert engagement_rate(likes=50, shares=30, comments=20, impressions=1000) == 10.00
    assert engagement_rate(likes=1, shares=0, comments=0, impressions=3) == 33.33


def test_metric_set_analytics_fields():
    metrics = MetricSet(followers=120, impressions=1000, likes=50, shares=30, comments=20, posts=4)
    assert metrics.engagement_rate == 10.0
    assert metrics.to_analytics_fields() == {
        "followers_count": "120",
        "engagement_rate": "10.00",
        "impressions": "1000",
        "likes": "50",
        "shares": "30",
        "comments": "20",
        "posts_count": "4",
    }


def test_metric_set_without_impressions():
    metrics = MetricSet(likes=10, shares=5, comments=5)
    assert metrics.to_analytics_fields()["engagement_rate"] == "0.00"


def test_updated_metrics_lists_non_zero_values():
    metrics = MetricSet(followers=10, impressions=100, likes=5)
    assert metrics.updated_metrics() == ["followers", "engagement_rate", "impressions", "likes"]
    assert MetricSet().updated_metrics() == []
