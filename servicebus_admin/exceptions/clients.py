from typing import Any

from servicebus_admin.exceptions.base import BaseManagementError


class ManagementClientError(BaseManagementError):
    pass


class InvalidContinuationTokenError(ManagementClientError, ValueError):
    def __init__(self, token: Any):
        self.token = token
        super().__init__(f"Invalid continuationToken {token!r} provided")


class ManagementParseError(ManagementClientError):
    """
    Raised when a response body can't be turned into the expected shape.

    Carries the HTTP status together with a stripped copy of the request
    (method and url) and of the response (status and headers) for diagnostics.
    """

    code = "PARSE_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        request: dict[str, Any] | None = None,
        response: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.request = request
        self.response = response


class MessageEntityNotFoundError(ManagementClientError):
    code = "MessageEntityNotFoundError"
    status_code = 404

    def __init__(
        self,
        entity_path: str,
        request: dict[str, Any] | None = None,
        response: dict[str, Any] | None = None,
    ):
        super().__init__(
            f'The messaging entity "{entity_path}" being requested cannot be found.'
        )
        self.entity_path = entity_path
        self.request = request
        self.response = response
