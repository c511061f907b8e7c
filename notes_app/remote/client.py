"""
HTTP Client for the Remote Notes Service.

Provides the async HTTP client used by the gateway. Every request carries
the service access key (`apikey` header) and, once signed in, the user's
bearer token.
"""

from typing import Any

import httpx

from notes_app.core.config import get_app_config, get_remote_endpoint
from notes_app.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


class APIClient:
    """
    HTTP client for remote notes service communication.

    Features:
    - Base URL, access key and timeout from configuration
    - apikey and Authorization headers on every request
    - X-Client-Info header identifying this client
    - Structured logging of requests/responses

    Usage:
        client = APIClient()
        client.set_access_token(session.access_token)
        response = await client.get("/rest/v1/notes", params={"select": "*"})
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client_info: str = "notes-tui",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Service base URL. If None, reads NOTES_SERVICE_URL.
            api_key: Service access key. If None, reads NOTES_SERVICE_KEY.
            timeout: Request timeout in seconds; None waits indefinitely.
            client_info: Value of the X-Client-Info header.
            transport: Optional httpx transport, used by tests.
        """
        if base_url is None or api_key is None:
            config_base_url, config_api_key, config_timeout = get_remote_endpoint()
            base_url = base_url or config_base_url
            api_key = api_key or config_api_key
            if timeout is None:
                timeout = config_timeout

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.client_info = client_info
        self._transport = transport
        self._access_token: str | None = None
        self._client: httpx.AsyncClient | None = None

    @property
    def access_token(self) -> str | None:
        """Bearer token of the signed-in user, if any."""
        return self._access_token

    def set_access_token(self, token: str | None) -> None:
        """Use the user's token for subsequent requests; None reverts to the access key."""
        self._access_token = token

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "apikey": self.api_key,
                    "X-Client-Info": self.client_info,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make an HTTP request to the remote service.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path (e.g., /auth/v1/user, /rest/v1/notes)
            **kwargs: Additional arguments for httpx

        Returns:
            httpx.Response

        Raises:
            httpx.HTTPError: On transport failure
        """
        client = await self._get_client()

        headers = dict(kwargs.pop("headers", None) or {})
        headers.setdefault("Authorization", f"Bearer {self._access_token or self.api_key}")

        log_with_source(
            logger,
            "remote",
            "debug",
            "API request",
            method=method,
            path=path,
        )

        try:
            response = await client.request(method, path, headers=headers, **kwargs)

            log_with_source(
                logger,
                "remote",
                "debug",
                "API response",
                method=method,
                path=path,
                status_code=response.status_code,
            )

            return response

        except httpx.HTTPError as e:
            log_with_source(
                logger,
                "remote",
                "error",
                "API request failed",
                method=method,
                path=path,
                error=str(e),
            )
            raise

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a GET request."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a POST request."""
        return await self.request("POST", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a PATCH request."""
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        """Make a DELETE request."""
        return await self.request("DELETE", path, **kwargs)


def create_api_client(transport: httpx.AsyncBaseTransport | None = None) -> APIClient:
    """Build a client from config/.env and remote.yaml."""
    remote = get_app_config().remote
    return APIClient(client_info=remote.client_info, transport=transport)
