from datetime import datetime
from typing import Any

from pydantic import Field

from servicebus_admin.models.common import (
    ManagementModel,
    MessageCountDetails,
    get_entry_content,
    get_entry_name,
)

TOPIC_CONTENT_ROOT = "TopicDescription"


class TopicDescription(ManagementModel):
    name: str
    default_message_time_to_live: str | None = Field(
        None, alias="DefaultMessageTimeToLive"
    )
    max_size_in_megabytes: int | None = Field(None, alias="MaxSizeInMegabytes")
    requires_duplicate_detection: bool | None = Field(
        None, alias="RequiresDuplicateDetection"
    )
    duplicate_detection_history_time_window: str | None = Field(
        None, alias="DuplicateDetectionHistoryTimeWindow"
    )
    enable_batched_operations: bool | None = Field(
        None, alias="EnableBatchedOperations"
    )
    status: str | None = Field(None, alias="Status")
    user_metadata: str | None = Field(None, alias="UserMetadata")
    support_ordering: bool | None = Field(None, alias="SupportOrdering")
    auto_delete_on_idle: str | None = Field(None, alias="AutoDeleteOnIdle")
    enable_partitioning: bool | None = Field(None, alias="EnablePartitioning")
    entity_availability_status: str | None = Field(
        None, alias="EntityAvailabilityStatus"
    )
    enable_express: bool | None = Field(None, alias="EnableExpress")


class TopicRuntimeProperties(ManagementModel):
    name: str
    size_in_bytes: int | None = Field(None, alias="SizeInBytes")
    subscription_count: int | None = Field(None, alias="SubscriptionCount")
    message_count_details: MessageCountDetails | None = Field(
        None, alias="CountDetails"
    )
    created_at: datetime | None = Field(None, alias="CreatedAt")
    updated_at: datetime | None = Field(None, alias="UpdatedAt")
    accessed_at: datetime | None = Field(None, alias="AccessedAt")


def build_topic(entry: dict[str, Any]) -> TopicDescription:
    return TopicDescription.model_validate(
        {**get_entry_content(entry, TOPIC_CONTENT_ROOT), "name": get_entry_name(entry)}
    )


def build_topic_runtime_properties(entry: dict[str, Any]) -> TopicRuntimeProperties:
    return TopicRuntimeProperties.model_validate(
        {**get_entry_content(entry, TOPIC_CONTENT_ROOT), "name": get_entry_name(entry)}
    )
