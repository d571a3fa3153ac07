"""HTTP transport shared by the platform REST calls and the OAuth token endpoints."""

from typing import Any

import httpx

from socialsync.config import settings
from socialsync.errors import PlatformApiError


def _upstream_message(response: httpx.Response) -> str:
    """Pull the most useful error text out of a platform error response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        for key in ("error_description", "message", "detail", "title"):
            if body.get(key):
                return str(body[key])
        if isinstance(error, str):
            return error
    text = response.text.strip()
    return f"HTTP {response.status_code}" + (f": {text[:200]}" if text else "")


class PlatformHttpClient:
    """Async JSON client for one platform. Failures surface as PlatformApiError."""

    def __init__(
        self,
        platform: str,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        self.platform = platform
        self.client = httpx.AsyncClient(
            transport=transport,
            timeout=timeout or settings.http_timeout_seconds,
            headers={"Accept": "application/json"},
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        bearer: str | None = None,
        basic: tuple[str, str] | None = None,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict:
        headers = {"Authorization": f"Bearer {bearer}"} if bearer else {}
        auth = httpx.BasicAuth(*basic) if basic else None
        try:
            resp = await self.client.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                auth=auth,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PlatformApiError(
                self.platform,
                _upstream_message(e.response),
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise PlatformApiError(
                self.platform, str(e) or e.__class__.__name__
            ) from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise PlatformApiError(
                self.platform, "Response was not valid JSON", status_code=resp.status_code
            ) from e
        if not isinstance(payload, dict):
            raise PlatformApiError(
                self.platform, "Unexpected response payload", status_code=resp.status_code
            )
        return payload

    async def get(self, url: str, **kwargs: Any) -> dict:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> dict:
        return await self.request("POST", url, **kwargs)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "PlatformHttpClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
