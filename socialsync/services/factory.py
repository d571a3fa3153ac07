import httpx

from socialsync.errors import UnsupportedPlatform
from socialsync.models.social import MANUAL_ONLY_PLATFORMS, Platform
from socialsync.services.platforms import linkedin, meta, twitter, youtube
from socialsync.services.platforms.base import PlatformDescriptor
from socialsync.services.social_client import PlatformClient
from socialsync.storage.base import SocialStorage

DESCRIPTORS: dict[Platform, PlatformDescriptor] = {
    Platform.YOUTUBE: youtube.DESCRIPTOR,
    Platform.FACEBOOK: meta.FACEBOOK,
    Platform.INSTAGRAM: meta.INSTAGRAM,
    Platform.LINKEDIN: linkedin.DESCRIPTOR,
    Platform.TWITTER: twitter.DESCRIPTOR,
}


def get_descriptor(platform: str | Platform) -> PlatformDescriptor:
    """Descriptor for an auto-sync platform.

    WhatsApp and Viber have no analytics API and are always rejected here,
    before any client or network connection exists.
    """
    try:
        platform = Platform(platform)
    except ValueError:
        raise UnsupportedPlatform(str(platform), f"Unsupported platform: {platform}") from None
    if platform in MANUAL_ONLY_PLATFORMS:
        raise UnsupportedPlatform(platform.value)
    return DESCRIPTORS[platform]


def create_platform_client(
    platform: str | Platform,
    storage: SocialStorage,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PlatformClient:
    return PlatformClient(get_descriptor(platform), storage, transport=transport)
