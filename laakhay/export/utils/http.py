"""JSON-over-HTTP client used by the Elasticsearch engine client."""

from typing import Any, Dict, Optional

import aiohttp

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class HTTPClient:
    """Async JSON HTTP client bound to one cluster base URL.

    The session is created lazily and re-created after it was closed.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.auth = aiohttp.BasicAuth(username, password or "") if username else None
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout, auth=self.auth, headers=JSON_HEADERS
            )
        return self._session

    def url_for(self, path: str) -> str:
        """Absolute URL for ``path``; absolute URLs are returned unchanged."""
        if self.base_url and not path.startswith(("http://", "https://")):
            return f"{self.base_url}/{path.lstrip('/')}"
        return path

    async def post(
        self,
        path: str,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """POST ``json_body`` and decode the JSON response.

        Raises:
            aiohttp.ClientResponseError: Non-2xx response
            aiohttp.ClientError: Transport failure
        """
        async with self.session.post(
            self.url_for(path), json=json_body, params=params, headers=headers
        ) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HTTPClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
