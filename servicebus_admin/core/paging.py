"""
Paginated listing over the management api.

A `PageFetcher` performs exactly one list request per call and turns the Atom feed into a `Page`.
The continuation token of a page is the `$skip` marker of the feed's next link, so a listing can be
resumed from any token previously handed out without any server side session.

`iter_pages` drives the fetcher page after page, `iter_items` flattens those pages into single
entities and `PagedSequence` bundles both views for a given resource collection.
"""

import re
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Generic, Iterator, Optional, TypeVar

import httpx
from defusedxml import ElementTree
from loguru import logger

from servicebus_admin.clients.http_client import HTTPBaseClient
from servicebus_admin.clients.utils import build_parse_error
from servicebus_admin.core.atom import AtomFeed, parse_atom_response
from servicebus_admin.exceptions.clients import (
    InvalidContinuationTokenError,
    ManagementParseError,
)

T = TypeVar("T")

Decoder = Callable[[dict[str, Any]], Optional[T]]
ContinuationToken = Optional[str]

XML_METADATA_MARKER = "$"
SKIP_QUERY_KEY = f"{XML_METADATA_MARKER}skip"
TOP_QUERY_KEY = f"{XML_METADATA_MARKER}top"

_MARKER_PATTERN = re.compile(r"[0-9]+")

# Errors a decoder may raise to reject a single record, pydantic's ValidationError is a ValueError
RECORD_DECODE_ERRORS = (ValueError, KeyError, TypeError)


@dataclass
class Page(Generic[T]):
    items: list[T]
    continuation_token: ContinuationToken = None
    response: httpx.Response | None = field(default=None, repr=False, compare=False)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_last(self) -> bool:
        return not self.continuation_token


def validate_continuation_token(token: Any) -> int | None:
    """
    Returns the skip offset a continuation token stands for, None meaning "start from the beginning".
    Anything but None or the base-10 text of a non-negative integer is rejected.
    """
    if token is None:
        return None
    if not isinstance(token, str) or not _MARKER_PATTERN.fullmatch(token.strip()):
        raise InvalidContinuationTokenError(token)
    return int(token)


def get_marker_from_next_link(next_link: str | None) -> ContinuationToken:
    if not next_link:
        return None
    try:
        marker = httpx.URL(next_link).params.get(SKIP_QUERY_KEY)
    except (httpx.InvalidURL, TypeError) as e:
        raise ManagementParseError(
            f"Unable to parse the '{SKIP_QUERY_KEY}' from the next-link in the response {e}"
        ) from e
    if marker is not None and not _MARKER_PATTERN.fullmatch(marker):
        raise ManagementParseError(
            f"The '{SKIP_QUERY_KEY}' of the next-link in the response is not a valid offset: {marker}"
        )
    return marker


def decode_records(
    records: list[dict[str, Any]], decoder: Decoder[T], entity_label: str
) -> list[T]:
    items: list[T] = []
    for index, record in enumerate(records):
        try:
            item = decoder(record)
        except RECORD_DECODE_ERRORS as e:
            logger.warning(
                f"Dropping {entity_label} record at position {index} that couldn't be decoded: {e}"
            )
            continue
        if item is None:
            logger.warning(
                f"Dropping empty {entity_label} record at position {index}"
            )
            continue
        items.append(item)
    return items


def parse_response_body(response: httpx.Response, entity_label: str) -> Any:
    try:
        return parse_atom_response(response.content)
    except (ValueError, ElementTree.ParseError) as e:
        raise build_parse_error(
            f"cannot form {entity_label} using the response from the service: {e}",
            response,
        ) from e


class PageFetcher(Generic[T]):
    def __init__(
        self,
        http_client: HTTPBaseClient,
        resource_path: str,
        decoder: Decoder[T],
        entity_label: str,
    ) -> None:
        self.http_client = http_client
        self.resource_path = resource_path
        self.decoder = decoder
        self.entity_label = entity_label

    async def fetch(self, skip: int | None = None, limit: int | None = None) -> Page[T]:
        params: dict[str, str] = {}
        if skip:
            params[SKIP_QUERY_KEY] = str(skip)
        if limit:
            params[TOP_QUERY_KEY] = str(limit)

        response = await self.http_client.send_request(
            "GET", self.resource_path, params=params
        )
        page = self.build_page(response)
        logger.debug(
            f"Found {len(page)} {self.entity_label} in {self.resource_path} with params: {params}"
        )
        return page

    def build_page(self, response: httpx.Response) -> Page[T]:
        body = parse_response_body(response, f"a list of {self.entity_label}")
        if not isinstance(body, AtomFeed):
            raise build_parse_error(
                f"cannot form a list of {self.entity_label} using the response from the service: "
                f"{type(body).__name__} was expected to be a feed",
                response,
            )
        continuation_token = get_marker_from_next_link(body.next_link)
        items = decode_records(body.entries, self.decoder, self.entity_label)
        return Page(items=items, continuation_token=continuation_token, response=response)


async def _page_generator(
    fetcher: PageFetcher[T], marker: int | None, max_page_size: int | None
) -> AsyncIterator[Page[T]]:
    while True:
        page = await fetcher.fetch(skip=marker, limit=max_page_size)
        yield page
        if page.is_last:
            break
        marker = int(page.continuation_token)  # type: ignore[arg-type]


def iter_pages(
    fetcher: PageFetcher[T],
    continuation_token: ContinuationToken = None,
    max_page_size: int | None = None,
) -> AsyncIterator[Page[T]]:
    """
    Lazily lists a collection a page at a time, starting from `continuation_token` when given.

    The token and page size are validated here, before any request is made, rather than on the
    first iteration of the returned iterator.
    """
    marker = validate_continuation_token(continuation_token)
    if max_page_size is not None and (
        isinstance(max_page_size, bool)
        or not isinstance(max_page_size, int)
        or max_page_size <= 0
    ):
        raise ValueError(f"max_page_size must be a positive integer, got {max_page_size!r}")
    return _page_generator(fetcher, marker, max_page_size)


async def iter_items(pages: AsyncIterator[Page[T]]) -> AsyncIterator[T]:
    async for page in pages:
        for item in page.items:
            yield item


class PagedSequence(Generic[T]):
    """
    A listing of one resource collection.

    `by_page()` gives a page iterator that can be resumed from a continuation token and `items()`
    gives an entity iterator built by flattening a fresh page iterator. Every call starts its own
    cursor, so several iterations over the same sequence don't interfere.
    """

    def __init__(self, fetcher: PageFetcher[T], max_page_size: int | None = None) -> None:
        self.fetcher = fetcher
        self.max_page_size = max_page_size

    def by_page(
        self,
        continuation_token: ContinuationToken = None,
        max_page_size: int | None = None,
    ) -> AsyncIterator[Page[T]]:
        return iter_pages(
            self.fetcher,
            continuation_token=continuation_token,
            max_page_size=(
                max_page_size if max_page_size is not None else self.max_page_size
            ),
        )

    def items(self) -> AsyncIterator[T]:
        return iter_items(self.by_page())

    def __aiter__(self) -> AsyncIterator[T]:
        return self.items()

    async def to_list(self) -> list[T]:
        return [item async for item in self.items()]
