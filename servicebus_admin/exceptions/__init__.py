from servicebus_admin.exceptions.base import BaseManagementError
from servicebus_admin.exceptions.clients import (
    InvalidContinuationTokenError,
    ManagementClientError,
    ManagementParseError,
    MessageEntityNotFoundError,
)

__all__ = [
    "BaseManagementError",
    "InvalidContinuationTokenError",
    "ManagementClientError",
    "ManagementParseError",
    "MessageEntityNotFoundError",
]
