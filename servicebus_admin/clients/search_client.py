from typing import Any, Callable, TypeVar

import httpx
from loguru import logger

from servicebus_admin.clients.http_client import HTTPBaseClient
from servicebus_admin.clients.utils import build_parse_error
from servicebus_admin.config.settings import SEARCH_API_VERSION, ManagementSettings
from servicebus_admin.core.paging import decode_records
from servicebus_admin.helpers.async_client import MANAGEMENT_HTTP_TIMEOUT
from servicebus_admin.log.sensetive import sensitive_log_filter
from servicebus_admin.models.search import (
    SearchIndexer,
    SynonymMap,
    build_indexer,
    build_synonym_map,
)

T = TypeVar("T")

INDEXERS_PATH = "indexers"
SYNONYM_MAPS_PATH = "synonymmaps"


class SearchServiceClient(HTTPBaseClient):
    def __init__(
        self,
        endpoint: str,
        api_key: str,
        api_version: str = SEARCH_API_VERSION,
        timeout: float = MANAGEMENT_HTTP_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not endpoint or not api_key:
            raise ValueError("Both the search endpoint and api key are required.")
        sensitive_log_filter.hide_sensitive_strings(api_key)
        super().__init__(
            base_url=endpoint.rstrip("/"),
            params={"api-version": api_version},
            headers={"api-key": api_key, "Accept": "application/json"},
            timeout=timeout,
            http_client=http_client,
        )

    @classmethod
    def from_settings(
        cls, settings: ManagementSettings, **kwargs: Any
    ) -> "SearchServiceClient":
        if not settings.search_endpoint or not settings.search_api_key:
            raise ValueError(
                "search_endpoint and search_api_key must be configured to use the search client."
            )
        return cls(
            settings.search_endpoint,
            settings.search_api_key,
            api_version=settings.search_api_version,
            timeout=settings.client_timeout,
            **kwargs,
        )

    async def list_indexers(self) -> list[SearchIndexer]:
        logger.debug("Performing search operation - list_indexers()")
        return await self._list_values(INDEXERS_PATH, build_indexer, "indexers")

    async def list_synonym_maps(self) -> list[SynonymMap]:
        logger.debug("Performing search operation - list_synonym_maps()")
        return await self._list_values(
            SYNONYM_MAPS_PATH, build_synonym_map, "synonym maps"
        )

    async def _list_values(
        self,
        path: str,
        decoder: Callable[[dict[str, Any]], T],
        entity_label: str,
    ) -> list[T]:
        response = await self.send_request("GET", path)
        try:
            body = response.json()
        except ValueError as e:
            raise build_parse_error(
                f"cannot form a list of {entity_label} using the response from the service: {e}",
                response,
            ) from e

        records = body.get("value") if isinstance(body, dict) else None
        if not isinstance(records, list):
            raise build_parse_error(
                f"cannot form a list of {entity_label} using the response from the service: "
                f"'value' was expected to be a list",
                response,
            )
        items = decode_records(records, decoder, entity_label)
        logger.info(f"Found {len(items)} {entity_label} in the search service")
        return items
