"""
Async client for the Service Bus management api.

Entities are created, read, updated and deleted through Atom entries and listed through Atom
feeds that are paged with `$skip`/`$top`, see `servicebus_admin.core.paging`.
"""

from functools import partial
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel

from servicebus_admin.clients.auth.auth_client import AuthClient
from servicebus_admin.clients.auth.sas_client import SharedKeyCredential
from servicebus_admin.clients.http_client import HTTPBaseClient
from servicebus_admin.clients.utils import (
    build_parse_error,
    strip_request,
    strip_response,
)
from servicebus_admin.config.settings import SERVICEBUS_API_VERSION, ManagementSettings
from servicebus_admin.core.atom import ATOM_ENTRY_CONTENT_TYPE, AtomFeed, serialize_entry
from servicebus_admin.core.paging import (
    RECORD_DECODE_ERRORS,
    PageFetcher,
    PagedSequence,
    parse_response_body,
)
from servicebus_admin.exceptions.clients import MessageEntityNotFoundError
from servicebus_admin.helpers.async_client import MANAGEMENT_HTTP_TIMEOUT
from servicebus_admin.models.common import ATOM_WIRE_CONTEXT
from servicebus_admin.models.namespace import NamespaceProperties, build_namespace
from servicebus_admin.models.queue import (
    QUEUE_CONTENT_ROOT,
    QueueDescription,
    QueueRuntimeProperties,
    build_queue,
    build_queue_runtime_properties,
)
from servicebus_admin.models.rule import RULE_CONTENT_ROOT, RuleDescription, build_rule
from servicebus_admin.models.subscription import (
    SUBSCRIPTION_CONTENT_ROOT,
    SubscriptionDescription,
    SubscriptionRuntimeProperties,
    build_subscription,
    build_subscription_runtime_properties,
)
from servicebus_admin.models.topic import (
    TOPIC_CONTENT_ROOT,
    TopicDescription,
    TopicRuntimeProperties,
    build_topic,
    build_topic_runtime_properties,
)
from servicebus_admin.utils.connection_string import parse_connection_string
from servicebus_admin.utils.misc import is_absolute_url

T = TypeVar("T")

NAMESPACE_INFO_PATH = "$namespaceinfo"
QUEUES_PATH = "$Resources/Queues"
TOPICS_PATH = "$Resources/Topics"

SUPPLEMENTARY_AUTHORIZATION_HEADER = "ServiceBusSupplementaryAuthorization"
DLQ_SUPPLEMENTARY_AUTHORIZATION_HEADER = "ServiceBusDlqSupplementaryAuthorization"

# Fields that are part of the entity path rather than of the Atom content
QUEUE_PATH_FIELDS = {"name"}
TOPIC_PATH_FIELDS = {"name"}
SUBSCRIPTION_PATH_FIELDS = {"topic_name", "subscription_name"}


def get_subscriptions_path(topic_name: str) -> str:
    return f"{topic_name}/Subscriptions/"


def get_subscription_path(topic_name: str, subscription_name: str) -> str:
    return f"{topic_name}/Subscriptions/{subscription_name}"


def get_rules_path(topic_name: str, subscription_name: str) -> str:
    return f"{topic_name}/Subscriptions/{subscription_name}/Rules/"


def get_rule_path(topic_name: str, subscription_name: str, rule_name: str) -> str:
    return f"{topic_name}/Subscriptions/{subscription_name}/Rules/{rule_name}"


def _to_wire_fields(model: BaseModel, exclude: set[str] | None = None) -> dict[str, Any]:
    return model.model_dump(
        by_alias=True, exclude_none=True, exclude=exclude, context=ATOM_WIRE_CONTEXT
    )


class ServiceBusManagementClient(HTTPBaseClient):
    def __init__(
        self,
        fully_qualified_namespace: str,
        credential: AuthClient,
        api_version: str = SERVICEBUS_API_VERSION,
        max_page_size: int | None = None,
        timeout: float = MANAGEMENT_HTTP_TIMEOUT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        namespace = fully_qualified_namespace.strip().rstrip("/")
        if "://" in namespace:
            namespace = namespace.split("://", 1)[1]
        self.fully_qualified_namespace = namespace
        self.endpoint_with_protocol = f"sb://{namespace}/"
        self.credential = credential
        self.max_page_size = max_page_size
        super().__init__(
            base_url=f"https://{namespace}/",
            auth=credential,
            params={"api-version": api_version},
            timeout=timeout,
            http_client=http_client,
        )

    @classmethod
    def from_connection_string(
        cls, connection_string: str, **kwargs: Any
    ) -> "ServiceBusManagementClient":
        properties = parse_connection_string(connection_string)
        if not properties.shared_access_key_name or not properties.shared_access_key:
            raise ValueError(
                "Connection string must contain both SharedAccessKeyName and SharedAccessKey."
            )
        credential = SharedKeyCredential(
            properties.shared_access_key_name, properties.shared_access_key
        )
        return cls(properties.fully_qualified_namespace, credential, **kwargs)

    @classmethod
    def from_settings(
        cls,
        settings: ManagementSettings,
        credential: AuthClient | None = None,
        **kwargs: Any,
    ) -> "ServiceBusManagementClient":
        options: dict[str, Any] = {
            "api_version": settings.api_version,
            "max_page_size": settings.max_page_size,
            "timeout": settings.client_timeout,
            **kwargs,
        }
        if settings.connection_string:
            return cls.from_connection_string(settings.connection_string, **options)
        if settings.fully_qualified_namespace and credential is not None:
            return cls(settings.fully_qualified_namespace, credential, **options)
        raise ValueError(
            "Either a connection string or a fully qualified namespace together with a credential is required."
        )

    async def get_namespace_properties(self) -> NamespaceProperties:
        logger.debug("Performing management operation - get_namespace_properties()")
        return await self._get_resource(NAMESPACE_INFO_PATH, build_namespace, "namespace")

    async def create_queue(self, queue: str | QueueDescription) -> QueueDescription:
        if isinstance(queue, str):
            queue = QueueDescription(name=queue)
        logger.debug(
            f'Performing management operation - create_queue() for "{queue.name}"'
        )
        return await self._put_resource(
            queue.name,
            QUEUE_CONTENT_ROOT,
            _to_wire_fields(queue, QUEUE_PATH_FIELDS),
            build_queue,
            "queue",
        )

    async def get_queue(self, queue_name: str) -> QueueDescription:
        logger.debug(f'Performing management operation - get_queue() for "{queue_name}"')
        return await self._get_resource(queue_name, build_queue, "queue")

    async def get_queue_runtime_properties(
        self, queue_name: str
    ) -> QueueRuntimeProperties:
        logger.debug(
            f'Performing management operation - get_queue_runtime_properties() for "{queue_name}"'
        )
        return await self._get_resource(
            queue_name, build_queue_runtime_properties, "queue"
        )

    def list_queues(
        self, max_page_size: int | None = None
    ) -> PagedSequence[QueueDescription]:
        logger.debug("Performing management operation - list_queues()")
        return self._list_resources(QUEUES_PATH, build_queue, "queues", max_page_size)

    def list_queues_runtime_properties(
        self, max_page_size: int | None = None
    ) -> PagedSequence[QueueRuntimeProperties]:
        logger.debug(
            "Performing management operation - list_queues_runtime_properties()"
        )
        return self._list_resources(
            QUEUES_PATH, build_queue_runtime_properties, "queues", max_page_size
        )

    async def update_queue(self, queue: QueueDescription) -> QueueDescription:
        if not isinstance(queue, QueueDescription):
            raise TypeError(
                'Parameter "queue" must be an object of type "QueueDescription".'
            )
        if not queue.name:
            raise TypeError('"name" attribute of the parameter "queue" cannot be empty.')
        logger.debug(
            f'Performing management operation - update_queue() for "{queue.name}"'
        )
        return await self._put_resource(
            queue.name,
            QUEUE_CONTENT_ROOT,
            _to_wire_fields(queue, QUEUE_PATH_FIELDS),
            build_queue,
            "queue",
            is_update=True,
        )

    async def delete_queue(self, queue_name: str) -> httpx.Response:
        logger.debug(
            f'Performing management operation - delete_queue() for "{queue_name}"'
        )
        return await self.send_request("DELETE", queue_name)

    async def queue_exists(self, queue_name: str) -> bool:
        logger.debug(
            f'Performing management operation - queue_exists() for "{queue_name}"'
        )
        return await self._entity_exists(lambda: self.get_queue(queue_name))

    async def create_topic(self, topic: str | TopicDescription) -> TopicDescription:
        if isinstance(topic, str):
            topic = TopicDescription(name=topic)
        logger.debug(
            f'Performing management operation - create_topic() for "{topic.name}"'
        )
        return await self._put_resource(
            topic.name,
            TOPIC_CONTENT_ROOT,
            _to_wire_fields(topic, TOPIC_PATH_FIELDS),
            build_topic,
            "topic",
        )

    async def get_topic(self, topic_name: str) -> TopicDescription:
        logger.debug(f'Performing management operation - get_topic() for "{topic_name}"')
        return await self._get_resource(topic_name, build_topic, "topic")

    async def get_topic_runtime_properties(
        self, topic_name: str
    ) -> TopicRuntimeProperties:
        logger.debug(
            f'Performing management operation - get_topic_runtime_properties() for "{topic_name}"'
        )
        return await self._get_resource(
            topic_name, build_topic_runtime_properties, "topic"
        )

    def list_topics(
        self, max_page_size: int | None = None
    ) -> PagedSequence[TopicDescription]:
        logger.debug("Performing management operation - list_topics()")
        return self._list_resources(TOPICS_PATH, build_topic, "topics", max_page_size)

    def list_topics_runtime_properties(
        self, max_page_size: int | None = None
    ) -> PagedSequence[TopicRuntimeProperties]:
        logger.debug(
            "Performing management operation - list_topics_runtime_properties()"
        )
        return self._list_resources(
            TOPICS_PATH, build_topic_runtime_properties, "topics", max_page_size
        )

    async def update_topic(self, topic: TopicDescription) -> TopicDescription:
        if not isinstance(topic, TopicDescription):
            raise TypeError(
                'Parameter "topic" must be an object of type "TopicDescription".'
            )
        if not topic.name:
            raise TypeError('"name" attribute of the parameter "topic" cannot be empty.')
        logger.debug(
            f'Performing management operation - update_topic() for "{topic.name}"'
        )
        return await self._put_resource(
            topic.name,
            TOPIC_CONTENT_ROOT,
            _to_wire_fields(topic, TOPIC_PATH_FIELDS),
            build_topic,
            "topic",
            is_update=True,
        )

    async def delete_topic(self, topic_name: str) -> httpx.Response:
        logger.debug(
            f'Performing management operation - delete_topic() for "{topic_name}"'
        )
        return await self.send_request("DELETE", topic_name)

    async def topic_exists(self, topic_name: str) -> bool:
        logger.debug(
            f'Performing management operation - topic_exists() for "{topic_name}"'
        )
        return await self._entity_exists(lambda: self.get_topic(topic_name))

    async def create_subscription(
        self, topic_name: str, subscription: str | SubscriptionDescription
    ) -> SubscriptionDescription:
        if not topic_name or not isinstance(topic_name, str):
            raise TypeError("Topic name provided is invalid")
        if isinstance(subscription, str):
            subscription = SubscriptionDescription(
                topic_name=topic_name, subscription_name=subscription
            )
        elif subscription.topic_name != topic_name:
            subscription = subscription.model_copy(update={"topic_name": topic_name})
        logger.debug(
            f'Performing management operation - create_subscription() for "{subscription.subscription_name}"'
        )
        return await self._put_resource(
            get_subscription_path(topic_name, subscription.subscription_name),
            SUBSCRIPTION_CONTENT_ROOT,
            _to_wire_fields(subscription, SUBSCRIPTION_PATH_FIELDS),
            partial(build_subscription, topic_name=topic_name),
            "subscription",
        )

    async def get_subscription(
        self, topic_name: str, subscription_name: str
    ) -> SubscriptionDescription:
        logger.debug(
            f'Performing management operation - get_subscription() for "{subscription_name}"'
        )
        return await self._get_resource(
            get_subscription_path(topic_name, subscription_name),
            partial(build_subscription, topic_name=topic_name),
            "subscription",
        )

    async def get_subscription_runtime_properties(
        self, topic_name: str, subscription_name: str
    ) -> SubscriptionRuntimeProperties:
        logger.debug(
            f'Performing management operation - get_subscription_runtime_properties() for "{subscription_name}"'
        )
        return await self._get_resource(
            get_subscription_path(topic_name, subscription_name),
            partial(build_subscription_runtime_properties, topic_name=topic_name),
            "subscription",
        )

    def list_subscriptions(
        self, topic_name: str, max_page_size: int | None = None
    ) -> PagedSequence[SubscriptionDescription]:
        logger.debug(
            f'Performing management operation - list_subscriptions() for "{topic_name}"'
        )
        return self._list_resources(
            get_subscriptions_path(topic_name),
            partial(build_subscription, topic_name=topic_name),
            "subscriptions",
            max_page_size,
        )

    def list_subscriptions_runtime_properties(
        self, topic_name: str, max_page_size: int | None = None
    ) -> PagedSequence[SubscriptionRuntimeProperties]:
        logger.debug(
            f'Performing management operation - list_subscriptions_runtime_properties() for "{topic_name}"'
        )
        return self._list_resources(
            get_subscriptions_path(topic_name),
            partial(build_subscription_runtime_properties, topic_name=topic_name),
            "subscriptions",
            max_page_size,
        )

    async def update_subscription(
        self, subscription: SubscriptionDescription
    ) -> SubscriptionDescription:
        if not isinstance(subscription, SubscriptionDescription):
            raise TypeError(
                'Parameter "subscription" must be an object of type "SubscriptionDescription".'
            )
        if not subscription.topic_name or not subscription.subscription_name:
            raise TypeError(
                'The attributes "topic_name" and "subscription_name" of the parameter "subscription" cannot be empty.'
            )
        logger.debug(
            f'Performing management operation - update_subscription() for "{subscription.subscription_name}"'
        )
        return await self._put_resource(
            get_subscription_path(
                subscription.topic_name, subscription.subscription_name
            ),
            SUBSCRIPTION_CONTENT_ROOT,
            _to_wire_fields(subscription, SUBSCRIPTION_PATH_FIELDS),
            partial(build_subscription, topic_name=subscription.topic_name),
            "subscription",
            is_update=True,
        )

    async def delete_subscription(
        self, topic_name: str, subscription_name: str
    ) -> httpx.Response:
        logger.debug(
            f'Performing management operation - delete_subscription() for "{subscription_name}"'
        )
        return await self.send_request(
            "DELETE", get_subscription_path(topic_name, subscription_name)
        )

    async def subscription_exists(
        self, topic_name: str, subscription_name: str
    ) -> bool:
        logger.debug(
            f'Performing management operation - subscription_exists() for "{topic_name}" and "{subscription_name}"'
        )
        return await self._entity_exists(
            lambda: self.get_subscription(topic_name, subscription_name)
        )

    async def create_rule(
        self, topic_name: str, subscription_name: str, rule: RuleDescription
    ) -> RuleDescription:
        if not isinstance(rule, RuleDescription):
            raise TypeError(
                'Parameter "rule" must be an object of type "RuleDescription".'
            )
        if not rule.name:
            raise TypeError('"name" attribute of the parameter "rule" cannot be empty.')
        logger.debug(
            f'Performing management operation - create_rule() for "{rule.name}"'
        )
        return await self._put_resource(
            get_rule_path(topic_name, subscription_name, rule.name),
            RULE_CONTENT_ROOT,
            _to_wire_fields(rule),
            build_rule,
            "rule",
        )

    async def get_rule(
        self, topic_name: str, subscription_name: str, rule_name: str
    ) -> RuleDescription:
        logger.debug(f'Performing management operation - get_rule() for "{rule_name}"')
        return await self._get_resource(
            get_rule_path(topic_name, subscription_name, rule_name), build_rule, "rule"
        )

    def list_rules(
        self,
        topic_name: str,
        subscription_name: str,
        max_page_size: int | None = None,
    ) -> PagedSequence[RuleDescription]:
        logger.debug(
            f'Performing management operation - list_rules() for "{topic_name}" and "{subscription_name}"'
        )
        return self._list_resources(
            get_rules_path(topic_name, subscription_name),
            build_rule,
            "rules",
            max_page_size,
        )

    async def update_rule(
        self, topic_name: str, subscription_name: str, rule: RuleDescription
    ) -> RuleDescription:
        if not isinstance(rule, RuleDescription):
            raise TypeError(
                'Parameter "rule" must be an object of type "RuleDescription".'
            )
        if not rule.name:
            raise TypeError('"name" attribute of the parameter "rule" cannot be empty.')
        logger.debug(
            f'Performing management operation - update_rule() for "{rule.name}"'
        )
        return await self._put_resource(
            get_rule_path(topic_name, subscription_name, rule.name),
            RULE_CONTENT_ROOT,
            _to_wire_fields(rule),
            build_rule,
            "rule",
            is_update=True,
        )

    async def delete_rule(
        self, topic_name: str, subscription_name: str, rule_name: str
    ) -> httpx.Response:
        logger.debug(
            f'Performing management operation - delete_rule() for "{rule_name}"'
        )
        return await self.send_request(
            "DELETE", get_rule_path(topic_name, subscription_name, rule_name)
        )

    async def rule_exists(
        self, topic_name: str, subscription_name: str, rule_name: str
    ) -> bool:
        logger.debug(
            f'Performing management operation - rule_exists() for "{rule_name}"'
        )
        return await self._entity_exists(
            lambda: self.get_rule(topic_name, subscription_name, rule_name)
        )

    def _absolute_entity_url(self, entity: str) -> str:
        if is_absolute_url(entity):
            return entity
        return f"{self.endpoint_with_protocol}{entity}"

    def _apply_forwarding(
        self, fields: dict[str, Any], headers: dict[str, str]
    ) -> dict[str, Any]:
        forward_to = fields.get("ForwardTo")
        forward_dead_letters_to = fields.get("ForwardDeadLetteredMessagesTo")
        if not forward_to and not forward_dead_letters_to:
            return fields

        # The forwarding target has to be authorized separately from the entity itself
        token = self.credential.get_token(self.fully_qualified_namespace)
        fields = dict(fields)
        if forward_to:
            headers[SUPPLEMENTARY_AUTHORIZATION_HEADER] = token
            fields["ForwardTo"] = self._absolute_entity_url(forward_to)
        if forward_dead_letters_to:
            headers[DLQ_SUPPLEMENTARY_AUTHORIZATION_HEADER] = token
            fields["ForwardDeadLetteredMessagesTo"] = self._absolute_entity_url(
                forward_dead_letters_to
            )
        return fields

    async def _put_resource(
        self,
        path: str,
        content_root: str,
        fields: dict[str, Any],
        decoder: Callable[[dict[str, Any]], T],
        entity_label: str,
        is_update: bool = False,
    ) -> T:
        headers = {"Content-Type": ATOM_ENTRY_CONTENT_TYPE}
        if is_update:
            headers["If-Match"] = "*"
        fields = self._apply_forwarding(fields, headers)

        response = await self.send_request(
            "PUT",
            path,
            content=serialize_entry(content_root, fields),
            headers=headers,
        )
        body = parse_response_body(response, f"a {entity_label} object")
        return self._build_entity(response, body, decoder, entity_label)

    async def _get_resource(
        self,
        path: str,
        decoder: Callable[[dict[str, Any]], T],
        entity_label: str,
    ) -> T:
        try:
            response = await self.send_request("GET", path)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise MessageEntityNotFoundError(
                    path,
                    request=strip_request(e.request),
                    response=strip_response(e.response),
                ) from e
            raise

        body = parse_response_body(response, f"a {entity_label} object")
        if body is None or (isinstance(body, AtomFeed) and not body.entries):
            raise MessageEntityNotFoundError(
                path,
                request=strip_request(response.request),
                response=strip_response(response),
            )
        return self._build_entity(response, body, decoder, entity_label)

    def _build_entity(
        self,
        response: httpx.Response,
        body: Any,
        decoder: Callable[[dict[str, Any]], T],
        entity_label: str,
    ) -> T:
        if not isinstance(body, dict):
            raise build_parse_error(
                f"cannot form a {entity_label} object using the response from the service: "
                f"expected a single entry",
                response,
            )
        try:
            return decoder(body)
        except RECORD_DECODE_ERRORS as e:
            raise build_parse_error(
                f"cannot form a {entity_label} object using the response from the service: {e}",
                response,
            ) from e

    def _list_resources(
        self,
        path: str,
        decoder: Callable[[dict[str, Any]], T],
        entity_label: str,
        max_page_size: int | None = None,
    ) -> PagedSequence[T]:
        fetcher: PageFetcher[T] = PageFetcher(self, path, decoder, entity_label)
        return PagedSequence(
            fetcher,
            max_page_size=(
                max_page_size if max_page_size is not None else self.max_page_size
            ),
        )

    @staticmethod
    async def _entity_exists(get_entity: Callable[[], Awaitable[Any]]) -> bool:
        try:
            await get_entity()
        except MessageEntityNotFoundError:
            return False
        return True
