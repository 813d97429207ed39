from datetime import datetime
from typing import Any

from pydantic import Field

from servicebus_admin.models.common import ManagementModel, get_entry_content

NAMESPACE_CONTENT_ROOT = "NamespaceInfo"


class NamespaceProperties(ManagementModel):
    created_at: datetime | None = Field(None, alias="CreatedTime")
    messaging_sku: str | None = Field(None, alias="MessagingSKU")
    messaging_units: int | None = Field(None, alias="MessagingUnits")
    modified_at: datetime | None = Field(None, alias="ModifiedTime")
    name: str = Field(alias="Name")
    namespace_type: str | None = Field(None, alias="NamespaceType")


def build_namespace(entry: dict[str, Any]) -> NamespaceProperties:
    return NamespaceProperties.model_validate(
        get_entry_content(entry, NAMESPACE_CONTENT_ROOT)
    )
