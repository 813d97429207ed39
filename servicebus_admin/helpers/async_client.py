from typing import Any

import httpx

MANAGEMENT_HTTP_TIMEOUT = 60.0
MANAGEMENT_HTTP_MAX_CONNECTIONS_LIMIT = 100
MANAGEMENT_HTTP_MAX_KEEP_ALIVE_CONNECTIONS = 50

MANAGEMENT_HTTPX_LIMITS = httpx.Limits(
    max_connections=MANAGEMENT_HTTP_MAX_CONNECTIONS_LIMIT,
    max_keepalive_connections=MANAGEMENT_HTTP_MAX_KEEP_ALIVE_CONNECTIONS,
)


class ManagementAsyncClient(httpx.AsyncClient):
    """
    This class is a wrapper around httpx.AsyncClient that applies the management api defaults.
    Retries, proxies and TLS stay with the underlying transport, which can be passed in through `transport`.
    """

    def __init__(
        self,
        timeout: float | httpx.Timeout = MANAGEMENT_HTTP_TIMEOUT,
        limits: httpx.Limits = MANAGEMENT_HTTPX_LIMITS,
        **kwargs: Any,
    ):
        super().__init__(
            timeout=timeout,
            limits=limits,
            follow_redirects=True,
            **kwargs,
        )
