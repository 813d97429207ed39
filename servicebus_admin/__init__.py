from .clients.auth.sas_client import SharedKeyCredential
from .clients.auth.token_client import BearerTokenCredential
from .clients.management_client import ServiceBusManagementClient
from .clients.search_client import SearchServiceClient
from .config.settings import ManagementSettings
from .core.paging import Page, PagedSequence
from .exceptions.clients import (
    InvalidContinuationTokenError,
    ManagementParseError,
    MessageEntityNotFoundError,
)
from .version import __version__

__all__ = [
    "BearerTokenCredential",
    "InvalidContinuationTokenError",
    "ManagementParseError",
    "ManagementSettings",
    "MessageEntityNotFoundError",
    "Page",
    "PagedSequence",
    "SearchServiceClient",
    "ServiceBusManagementClient",
    "SharedKeyCredential",
    "__version__",
]
