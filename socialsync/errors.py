"""Error taxonomy for the platform sync layer.

Every error raised while syncing one platform derives from SocialSyncError so
that ``PlatformClient.sync`` can turn it into a failed sync log entry instead
of letting it escape to the orchestrator or the scheduler.
"""


class SocialSyncError(Exception):
    """Base class for failures raised by the platform sync layer."""

    def __init__(self, platform: str, message: str):
        self.platform = platform
        super().__init__(message)


class NotConfigured(SocialSyncError):
    """No credentials or tokens are stored for the platform."""

    def __init__(self, platform: str, message: str | None = None):
        super().__init__(
            platform, message or f"{platform} is not configured or not connected"
        )


class TokenRefreshFailed(SocialSyncError):
    """The OAuth refresh grant was rejected or could not be attempted."""

    def __init__(self, platform: str, reason: str):
        self.reason = reason
        super().__init__(platform, f"Failed to refresh {platform} access token: {reason}")


class PlatformApiError(SocialSyncError):
    """An upstream REST call failed or returned an unexpected payload."""

    def __init__(self, platform: str, message: str, status_code: int | None = None):
        self.upstream_message = message
        self.status_code = status_code
        super().__init__(platform, f"{platform} API error: {message}")


class UnsupportedPlatform(SocialSyncError):
    """The platform has no automated analytics (or is not a known platform)."""

    def __init__(self, platform: str, message: str | None = None):
        super().__init__(
            platform,
            message
            or f"{platform} does not support automated analytics sync. "
            "Please enter data manually.",
        )


class OAuthExchangeFailed(SocialSyncError):
    """The authorization code could not be exchanged for tokens."""

    def __init__(self, platform: str, reason: str):
        self.reason = reason
        super().__init__(platform, f"Failed to exchange {platform} authorization code: {reason}")
