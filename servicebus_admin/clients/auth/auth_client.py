from abc import ABC, abstractmethod
from typing import Generator

import httpx


class AuthClient(httpx.Auth, ABC):
    """
    Signs every outbound management request, once per request.
    """

    @abstractmethod
    def get_token(self, audience: str) -> str:
        pass

    @abstractmethod
    def refresh_request_auth_creds(self, request: httpx.Request) -> httpx.Request:
        pass

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        yield self.refresh_request_auth_creds(request)
