from typing import Callable

import httpx

from servicebus_admin.clients.auth.auth_client import AuthClient

SERVICEBUS_AAD_SCOPE = "https://servicebus.azure.net//user_impersonation"


class BearerTokenCredential(AuthClient):
    def __init__(self, token_provider: Callable[[], str]):
        """
        A client that signs requests with an access token handed out by `token_provider`.
        Acquiring and caching the token is up to the provider.
        """
        self._token_provider = token_provider

    @property
    def access_token(self) -> str:
        access_token = self._token_provider()
        if not access_token:
            raise ValueError("No access token returned by the token provider")
        return access_token.strip()

    def get_token(self, audience: str = SERVICEBUS_AAD_SCOPE) -> str:
        return f"Bearer {self.access_token}"

    def refresh_request_auth_creds(self, request: httpx.Request) -> httpx.Request:
        request.headers["Authorization"] = self.get_token()
        return request
