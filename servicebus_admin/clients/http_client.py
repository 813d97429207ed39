from typing import Any, Optional, Self

import httpx
from httpx import Response
from loguru import logger

from servicebus_admin.helpers.async_client import (
    MANAGEMENT_HTTP_TIMEOUT,
    ManagementAsyncClient,
)


class HTTPBaseClient:
    def __init__(
        self,
        base_url: str,
        auth: httpx.Auth | None = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, Any]] = None,
        timeout: float = MANAGEMENT_HTTP_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self._auth = auth
        self._default_params = params or {}
        self._default_headers = headers or {}
        self._owns_client = http_client is None
        self._async_client = http_client or ManagementAsyncClient(timeout=timeout)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._async_client.aclose()

    def get_url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def send_request(
        self,
        method: str,
        path: str,
        content: Optional[bytes | str] = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, Any]] = None,
    ) -> Response:
        url = self.get_url(path)
        try:
            response = await self._async_client.request(
                method=method,
                url=url,
                content=content,
                params={**self._default_params, **(params or {})},
                headers={**self._default_headers, **(headers or {})},
                auth=self._auth if self._auth is not None else httpx.USE_CLIENT_DEFAULT,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                logger.error(
                    f"Couldn't access url {url} . Make sure the credentials are valid!"
                )
            else:
                logger.error(
                    f"Request with bad status code {e.response.status_code}: {method} to url {url}: {str(e)}"
                )
            raise
        except httpx.HTTPError as e:
            logger.error(f"Couldn't send request {method} to url {url}: {str(e)}")
            raise
        logger.debug(f"{method} Request to {url} got {response.status_code}")
        return response
