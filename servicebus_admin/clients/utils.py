from typing import Any

import httpx
from loguru import logger

from servicebus_admin.exceptions.clients import ManagementParseError

# Headers that carry credentials are never copied into diagnostics
REDACTED_HEADERS = frozenset(
    [
        "authorization",
        "api-key",
        "servicebussupplementaryauthorization",
        "servicebusdlqsupplementaryauthorization",
    ]
)


def _strip_headers(headers: httpx.Headers) -> dict[str, str]:
    return {
        key: ("REDACTED" if key.lower() in REDACTED_HEADERS else value)
        for key, value in headers.items()
    }


def strip_request(request: httpx.Request | None) -> dict[str, Any] | None:
    if request is None:
        return None
    return {
        "method": request.method,
        "url": str(request.url),
        "headers": _strip_headers(request.headers),
    }


def strip_response(response: httpx.Response) -> dict[str, Any]:
    return {
        "status_code": response.status_code,
        "headers": _strip_headers(response.headers),
    }


def _get_request(response: httpx.Response) -> httpx.Request | None:
    try:
        return response.request
    except RuntimeError:
        # responses built by hand in tests have no request bound
        return None


def build_parse_error(message: str, response: httpx.Response) -> ManagementParseError:
    logger.warning(f"Failure parsing response from service - {message}")
    return ManagementParseError(
        f"Error occurred while parsing the response body - {message}",
        status_code=response.status_code,
        request=strip_request(_get_request(response)),
        response=strip_response(response),
    )
