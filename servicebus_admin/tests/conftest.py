from io import StringIO
from typing import AsyncGenerator, Generator

import pytest
from loguru import logger

from servicebus_admin.clients.http_client import HTTPBaseClient
from servicebus_admin.clients.management_client import ServiceBusManagementClient

NAMESPACE = "testns.servicebus.windows.net"
BASE_URL = f"https://{NAMESPACE}"
API_VERSION = "2017-04"
CONNECTION_STRING = (
    f"Endpoint=sb://{NAMESPACE}/;"
    "SharedAccessKeyName=RootManageSharedAccessKey;"
    "SharedAccessKey=c2VjcmV0LWtleS1mb3ItdGVzdHM="
)

ATOM_NS = "http://www.w3.org/2005/Atom"
SB_NS = "http://schemas.microsoft.com/netservices/2010/10/servicebus/connect"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"


def atom_entry(
    title: str,
    content_root: str,
    fields_xml: str = "",
    entity_path: str | None = None,
) -> str:
    entity_url = f"{BASE_URL}/{entity_path or title}?api-version={API_VERSION}"
    return (
        f'<entry xmlns="{ATOM_NS}">'
        f"<id>{entity_url}</id>"
        f'<title type="text">{title}</title>'
        "<published>2024-01-01T00:00:00Z</published>"
        "<updated>2024-01-02T00:00:00Z</updated>"
        f"<author><name>{NAMESPACE.split('.')[0]}</name></author>"
        f'<link rel="self" href="{entity_url}"/>'
        '<content type="application/xml">'
        f'<{content_root} xmlns="{SB_NS}" xmlns:i="{XSI_NS}">'
        f"{fields_xml}"
        f"</{content_root}>"
        "</content>"
        "</entry>"
    )


def atom_feed(
    entries: list[str], path: str, next_skip: int | None = None, top: int = 100
) -> str:
    next_link = ""
    if next_skip is not None:
        next_link = (
            f'<link rel="next" href="{BASE_URL}/{path}'
            f'?$skip={next_skip}&amp;$top={top}&amp;api-version={API_VERSION}"/>'
        )
    return (
        f'<feed xmlns="{ATOM_NS}">'
        f'<title type="text">{path}</title>'
        f"<id>{BASE_URL}/{path}?api-version={API_VERSION}</id>"
        "<updated>2024-01-02T00:00:00Z</updated>"
        f'<link rel="self" href="{BASE_URL}/{path}?api-version={API_VERSION}"/>'
        f"{next_link}"
        f"{''.join(entries)}"
        "</feed>"
    )


def queue_entry(name: str, max_size: int = 1024) -> str:
    return atom_entry(
        name,
        "QueueDescription",
        "<LockDuration>PT1M</LockDuration>"
        f"<MaxSizeInMegabytes>{max_size}</MaxSizeInMegabytes>"
        "<RequiresDuplicateDetection>false</RequiresDuplicateDetection>"
        "<RequiresSession>false</RequiresSession>"
        "<MaxDeliveryCount>10</MaxDeliveryCount>"
        "<Status>Active</Status>"
        "<ForwardTo i:nil=\"true\"/>",
    )


def list_url(path: str, **query: str | int) -> str:
    params = "&".join(f"{key}={value}" for key, value in query.items())
    url = f"{BASE_URL}/{path}?api-version={API_VERSION}"
    return f"{url}&{params}" if params else url


@pytest.fixture
async def http_client() -> AsyncGenerator[HTTPBaseClient, None]:
    client = HTTPBaseClient(
        base_url=f"{BASE_URL}/", params={"api-version": API_VERSION}
    )
    yield client
    await client.close()


@pytest.fixture
async def management_client() -> AsyncGenerator[ServiceBusManagementClient, None]:
    client = ServiceBusManagementClient.from_connection_string(CONNECTION_STRING)
    yield client
    await client.close()


@pytest.fixture
def warning_logs() -> Generator[StringIO, None, None]:
    log_capture = StringIO()
    logger_id = logger.add(
        log_capture, level="WARNING", format="{message}", diagnose=False
    )
    yield log_capture
    logger.remove(logger_id)
