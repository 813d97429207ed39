from datetime import datetime
from typing import Any

from pydantic import Field

from servicebus_admin.models.common import (
    ManagementModel,
    MessageCountDetails,
    get_entry_content,
    get_entry_name,
)

QUEUE_CONTENT_ROOT = "QueueDescription"


class QueueDescription(ManagementModel):
    name: str
    lock_duration: str | None = Field(None, alias="LockDuration")
    max_size_in_megabytes: int | None = Field(None, alias="MaxSizeInMegabytes")
    requires_duplicate_detection: bool | None = Field(
        None, alias="RequiresDuplicateDetection"
    )
    requires_session: bool | None = Field(None, alias="RequiresSession")
    default_message_time_to_live: str | None = Field(
        None, alias="DefaultMessageTimeToLive"
    )
    dead_lettering_on_message_expiration: bool | None = Field(
        None, alias="DeadLetteringOnMessageExpiration"
    )
    duplicate_detection_history_time_window: str | None = Field(
        None, alias="DuplicateDetectionHistoryTimeWindow"
    )
    max_delivery_count: int | None = Field(None, alias="MaxDeliveryCount")
    enable_batched_operations: bool | None = Field(
        None, alias="EnableBatchedOperations"
    )
    status: str | None = Field(None, alias="Status")
    forward_to: str | None = Field(None, alias="ForwardTo")
    user_metadata: str | None = Field(None, alias="UserMetadata")
    auto_delete_on_idle: str | None = Field(None, alias="AutoDeleteOnIdle")
    enable_partitioning: bool | None = Field(None, alias="EnablePartitioning")
    forward_dead_lettered_messages_to: str | None = Field(
        None, alias="ForwardDeadLetteredMessagesTo"
    )
    entity_availability_status: str | None = Field(
        None, alias="EntityAvailabilityStatus"
    )
    enable_express: bool | None = Field(None, alias="EnableExpress")


class QueueRuntimeProperties(ManagementModel):
    name: str
    size_in_bytes: int | None = Field(None, alias="SizeInBytes")
    message_count: int | None = Field(None, alias="MessageCount")
    message_count_details: MessageCountDetails | None = Field(
        None, alias="CountDetails"
    )
    created_at: datetime | None = Field(None, alias="CreatedAt")
    updated_at: datetime | None = Field(None, alias="UpdatedAt")
    accessed_at: datetime | None = Field(None, alias="AccessedAt")


def build_queue(entry: dict[str, Any]) -> QueueDescription:
    return QueueDescription.model_validate(
        {**get_entry_content(entry, QUEUE_CONTENT_ROOT), "name": get_entry_name(entry)}
    )


def build_queue_runtime_properties(entry: dict[str, Any]) -> QueueRuntimeProperties:
    return QueueRuntimeProperties.model_validate(
        {**get_entry_content(entry, QUEUE_CONTENT_ROOT), "name": get_entry_name(entry)}
    )
