from io import StringIO
from typing import Any

import httpx
import pytest
from pytest_httpx import HTTPXMock

from servicebus_admin.clients.http_client import HTTPBaseClient
from servicebus_admin.core.paging import (
    PageFetcher,
    PagedSequence,
    get_marker_from_next_link,
    iter_items,
    iter_pages,
    validate_continuation_token,
)
from servicebus_admin.exceptions.clients import (
    InvalidContinuationTokenError,
    ManagementParseError,
)
from servicebus_admin.models.queue import QueueDescription, build_queue
from servicebus_admin.tests.conftest import (
    atom_entry,
    atom_feed,
    list_url,
    queue_entry,
)

QUEUES_PATH = "$Resources/Queues"


def _queue_fetcher(http_client: HTTPBaseClient) -> PageFetcher[QueueDescription]:
    return PageFetcher(http_client, QUEUES_PATH, build_queue, "queues")


def _register_five_queues(httpx_mock: HTTPXMock) -> None:
    """Records A..E served two at a time."""
    httpx_mock.add_response(
        url=list_url(QUEUES_PATH, **{"$top": 2}),
        text=atom_feed([queue_entry("A"), queue_entry("B")], QUEUES_PATH, 2, 2),
    )
    httpx_mock.add_response(
        url=list_url(QUEUES_PATH, **{"$skip": 2, "$top": 2}),
        text=atom_feed([queue_entry("C"), queue_entry("D")], QUEUES_PATH, 4, 2),
    )
    httpx_mock.add_response(
        url=list_url(QUEUES_PATH, **{"$skip": 4, "$top": 2}),
        text=atom_feed([queue_entry("E")], QUEUES_PATH),
    )


@pytest.mark.parametrize(
    "token, expected",
    [(None, None), ("0", 0), ("2", 2), ("100", 100)],
)
def test_validate_continuation_token_accepts_offsets(
    token: str | None, expected: int | None
) -> None:
    assert validate_continuation_token(token) == expected


@pytest.mark.parametrize("token", ["-1", "abc", "", "1.5", 5, True, ["2"]])
def test_validate_continuation_token_rejects_everything_else(token: Any) -> None:
    with pytest.raises(InvalidContinuationTokenError) as exc_info:
        validate_continuation_token(token)
    assert exc_info.value.token == token
    assert isinstance(exc_info.value, ValueError)


@pytest.mark.parametrize(
    "next_link, expected",
    [
        (None, None),
        ("", None),
        (f"https://ns/{QUEUES_PATH}?$skip=100&$top=100&api-version=2017-04", "100"),
        (f"https://ns/{QUEUES_PATH}?%24skip=4&api-version=2017-04", "4"),
        (f"https://ns/{QUEUES_PATH}?api-version=2017-04", None),
    ],
)
def test_get_marker_from_next_link(next_link: str | None, expected: str | None) -> None:
    assert get_marker_from_next_link(next_link) == expected


def test_get_marker_from_next_link_with_bad_offset() -> None:
    with pytest.raises(ManagementParseError):
        get_marker_from_next_link(f"https://ns/{QUEUES_PATH}?$skip=next")


async def test_pages_follow_the_skip_marker(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    _register_five_queues(httpx_mock)

    pages = [
        page
        async for page in iter_pages(_queue_fetcher(http_client), max_page_size=2)
    ]

    assert [[queue.name for queue in page] for page in pages] == [
        ["A", "B"],
        ["C", "D"],
        ["E"],
    ]
    assert [page.continuation_token for page in pages] == ["2", "4", None]
    assert pages[-1].is_last
    assert len(httpx_mock.get_requests()) == 3


async def test_flat_iteration_is_the_concatenation_of_pages(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    _register_five_queues(httpx_mock)
    _register_five_queues(httpx_mock)
    sequence = PagedSequence(_queue_fetcher(http_client), max_page_size=2)

    by_page = [queue.name async for page in sequence.by_page() for queue in page]
    flat = [queue.name async for queue in sequence]

    assert flat == by_page == ["A", "B", "C", "D", "E"]


async def test_resume_from_a_captured_token(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    httpx_mock.add_response(
        url=list_url(QUEUES_PATH, **{"$skip": 2, "$top": 2}),
        text=atom_feed([queue_entry("C"), queue_entry("D")], QUEUES_PATH, 4, 2),
    )
    httpx_mock.add_response(
        url=list_url(QUEUES_PATH, **{"$skip": 4, "$top": 2}),
        text=atom_feed([queue_entry("E")], QUEUES_PATH),
    )
    sequence = PagedSequence(_queue_fetcher(http_client))

    pages = [page async for page in sequence.by_page("2", max_page_size=2)]

    assert [queue.name for page in pages for queue in page] == ["C", "D", "E"]


@pytest.mark.parametrize("token", ["-1", "abc", "", 7])
async def test_invalid_token_fails_before_any_request(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient, token: Any
) -> None:
    sequence = PagedSequence(_queue_fetcher(http_client))

    with pytest.raises(InvalidContinuationTokenError):
        sequence.by_page(continuation_token=token)

    assert httpx_mock.get_requests() == []


@pytest.mark.parametrize("max_page_size", [0, -5, True, "10"])
async def test_invalid_page_size_fails_before_any_request(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient, max_page_size: Any
) -> None:
    with pytest.raises(ValueError):
        iter_pages(_queue_fetcher(http_client), max_page_size=max_page_size)

    assert httpx_mock.get_requests() == []


async def test_first_request_carries_no_paging_params(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    httpx_mock.add_response(
        url=list_url(QUEUES_PATH),
        text=atom_feed([queue_entry("A")], QUEUES_PATH),
    )

    page = await _queue_fetcher(http_client).fetch(skip=0)

    request = httpx_mock.get_request()
    assert request is not None
    assert dict(request.url.params) == {"api-version": "2017-04"}
    assert [queue.name for queue in page] == ["A"]


async def test_empty_feed_is_a_single_empty_page(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    httpx_mock.add_response(url=list_url(QUEUES_PATH), text=atom_feed([], QUEUES_PATH))

    pages = [page async for page in iter_pages(_queue_fetcher(http_client))]

    assert len(pages) == 1
    assert pages[0].items == []
    assert pages[0].continuation_token is None


async def test_entry_body_on_a_list_request_is_a_parse_error(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    httpx_mock.add_response(url=list_url(QUEUES_PATH), text=queue_entry("A"))

    with pytest.raises(ManagementParseError) as exc_info:
        await _queue_fetcher(http_client).fetch()

    error = exc_info.value
    assert error.code == "PARSE_ERROR"
    assert error.status_code == 200
    assert error.request is not None
    assert error.request["method"] == "GET"
    assert "Resources/Queues" in error.request["url"]
    assert error.response is not None
    assert error.response["status_code"] == 200


async def test_malformed_xml_is_a_parse_error(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    httpx_mock.add_response(url=list_url(QUEUES_PATH), text="<feed><entry>")

    with pytest.raises(ManagementParseError):
        await _queue_fetcher(http_client).fetch()


async def test_records_that_fail_to_decode_are_dropped(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient, warning_logs: StringIO
) -> None:
    broken_entries = [
        # another kind of entity
        atom_entry("not-a-queue", "TopicDescription"),
        # an invalid field value
        atom_entry(
            "bad-size",
            "QueueDescription",
            "<MaxSizeInMegabytes>lots</MaxSizeInMegabytes>",
        ),
    ]
    httpx_mock.add_response(
        url=list_url(QUEUES_PATH),
        text=atom_feed(
            [queue_entry("A"), *broken_entries, queue_entry("B")], QUEUES_PATH
        ),
    )

    page = await _queue_fetcher(http_client).fetch()

    assert [queue.name for queue in page] == ["A", "B"]
    logged = warning_logs.getvalue()
    assert "position 1" in logged
    assert "position 2" in logged


async def test_http_errors_propagate(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    httpx_mock.add_response(url=list_url(QUEUES_PATH), status_code=500)

    with pytest.raises(httpx.HTTPStatusError):
        await _queue_fetcher(http_client).fetch()


async def test_iter_items_flattens_pages_in_order(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    _register_five_queues(httpx_mock)

    items = iter_items(iter_pages(_queue_fetcher(http_client), max_page_size=2))

    assert [queue.name async for queue in items] == ["A", "B", "C", "D", "E"]


async def test_each_iteration_starts_its_own_cursor(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient
) -> None:
    for _ in range(2):
        httpx_mock.add_response(
            url=list_url(QUEUES_PATH),
            text=atom_feed([queue_entry("A"), queue_entry("B")], QUEUES_PATH),
        )
    sequence = PagedSequence(_queue_fetcher(http_client))

    first = await sequence.to_list()
    second = await sequence.to_list()

    assert [queue.name for queue in first] == [queue.name for queue in second]
    assert len(httpx_mock.get_requests()) == 2


QUEUE_NAMES = [f"queue-{index:02d}" for index in range(23)]


def _register_walk(httpx_mock: HTTPXMock, start: int, page_size: int) -> None:
    """Registers the pages a client reading from `start`, `page_size` at a time, will request."""
    skip = start
    while True:
        names = QUEUE_NAMES[skip : skip + page_size]
        next_skip = skip + page_size if skip + page_size < len(QUEUE_NAMES) else None
        query: dict[str, int] = {"$top": page_size}
        if skip:
            query["$skip"] = skip
        httpx_mock.add_response(
            url=list_url(QUEUES_PATH, **query),
            text=atom_feed(
                [queue_entry(name) for name in names], QUEUES_PATH, next_skip, page_size
            ),
        )
        if next_skip is None:
            break
        skip = next_skip


@pytest.mark.parametrize("start", ["0", "5", "100"])
@pytest.mark.parametrize("page_size", [1, 3, 7])
async def test_pages_from_any_start_cover_the_rest_of_the_collection(
    httpx_mock: HTTPXMock, http_client: HTTPBaseClient, start: str, page_size: int
) -> None:
    _register_walk(httpx_mock, int(start), page_size)
    _register_walk(httpx_mock, 0, page_size)
    sequence = PagedSequence(_queue_fetcher(http_client), max_page_size=page_size)

    pages = [page async for page in sequence.by_page(start)]
    flat = [queue.name async for queue in sequence]

    from_pages = [queue.name for page in pages for queue in page]
    assert from_pages == QUEUE_NAMES[int(start) :]
    assert len(set(from_pages)) == len(from_pages)
    assert flat == QUEUE_NAMES
    assert flat[int(start) :] == from_pages
    assert all(len(page) == page_size for page in pages[:-1])
    assert pages[-1].is_last
