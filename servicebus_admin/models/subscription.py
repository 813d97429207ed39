from datetime import datetime
from typing import Any

from pydantic import Field

from servicebus_admin.models.common import (
    ManagementModel,
    MessageCountDetails,
    get_entry_content,
    get_entry_name,
    get_entry_path_segments,
)

SUBSCRIPTION_CONTENT_ROOT = "SubscriptionDescription"


class SubscriptionDescription(ManagementModel):
    topic_name: str
    subscription_name: str
    lock_duration: str | None = Field(None, alias="LockDuration")
    requires_session: bool | None = Field(None, alias="RequiresSession")
    default_message_time_to_live: str | None = Field(
        None, alias="DefaultMessageTimeToLive"
    )
    dead_lettering_on_message_expiration: bool | None = Field(
        None, alias="DeadLetteringOnMessageExpiration"
    )
    dead_lettering_on_filter_evaluation_exceptions: bool | None = Field(
        None, alias="DeadLetteringOnFilterEvaluationExceptions"
    )
    max_delivery_count: int | None = Field(None, alias="MaxDeliveryCount")
    enable_batched_operations: bool | None = Field(
        None, alias="EnableBatchedOperations"
    )
    status: str | None = Field(None, alias="Status")
    forward_to: str | None = Field(None, alias="ForwardTo")
    user_metadata: str | None = Field(None, alias="UserMetadata")
    forward_dead_lettered_messages_to: str | None = Field(
        None, alias="ForwardDeadLetteredMessagesTo"
    )
    auto_delete_on_idle: str | None = Field(None, alias="AutoDeleteOnIdle")
    entity_availability_status: str | None = Field(
        None, alias="EntityAvailabilityStatus"
    )


class SubscriptionRuntimeProperties(ManagementModel):
    topic_name: str
    subscription_name: str
    message_count: int | None = Field(None, alias="MessageCount")
    message_count_details: MessageCountDetails | None = Field(
        None, alias="CountDetails"
    )
    created_at: datetime | None = Field(None, alias="CreatedAt")
    updated_at: datetime | None = Field(None, alias="UpdatedAt")
    accessed_at: datetime | None = Field(None, alias="AccessedAt")


def _subscription_fields(entry: dict[str, Any], topic_name: str | None) -> dict[str, Any]:
    if topic_name is None:
        # https://<namespace>/<topic>/Subscriptions/<subscription>
        topic_name = get_entry_path_segments(entry)[0]
    return {
        **get_entry_content(entry, SUBSCRIPTION_CONTENT_ROOT),
        "topic_name": topic_name,
        "subscription_name": get_entry_name(entry),
    }


def build_subscription(
    entry: dict[str, Any], topic_name: str | None = None
) -> SubscriptionDescription:
    return SubscriptionDescription.model_validate(
        _subscription_fields(entry, topic_name)
    )


def build_subscription_runtime_properties(
    entry: dict[str, Any], topic_name: str | None = None
) -> SubscriptionRuntimeProperties:
    return SubscriptionRuntimeProperties.model_validate(
        _subscription_fields(entry, topic_name)
    )
