import base64
import hashlib
import hmac
from urllib.parse import quote_plus

import httpx

from servicebus_admin.clients.auth.auth_client import AuthClient
from servicebus_admin.log.sensetive import sensitive_log_filter
from servicebus_admin.utils.misc import get_time

SAS_TOKEN_TTL_SECONDS = 3600


class SharedKeyCredential(AuthClient):
    def __init__(
        self,
        key_name: str,
        key: str,
        token_ttl: int = SAS_TOKEN_TTL_SECONDS,
    ):
        if not key_name or not key:
            raise ValueError("Both the shared access key name and key are required.")
        self.key_name = key_name
        self.key = key
        self.token_ttl = token_ttl
        sensitive_log_filter.hide_sensitive_strings(key)

    def get_token(self, audience: str) -> str:
        expiry = int(get_time()) + self.token_ttl
        encoded_audience = quote_plus(audience)
        string_to_sign = f"{encoded_audience}\n{expiry}".encode("utf-8")
        signature = base64.b64encode(
            hmac.new(self.key.encode("utf-8"), string_to_sign, hashlib.sha256).digest()
        ).decode("utf-8")
        return (
            f"SharedAccessSignature sr={encoded_audience}"
            f"&sig={quote_plus(signature)}&se={expiry}&skn={self.key_name}"
        )

    def refresh_request_auth_creds(self, request: httpx.Request) -> httpx.Request:
        audience = str(request.url.copy_with(query=None))
        request.headers["Authorization"] = self.get_token(audience)
        return request
