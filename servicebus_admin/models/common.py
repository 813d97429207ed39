from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, SerializationInfo

# Passed as `context` to `model_dump` when the dump is written into an Atom entry
ATOM_WIRE_CONTEXT = {"wire": "atom"}


class ManagementModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MessageCountDetails(ManagementModel):
    active_message_count: int = Field(0, alias="ActiveMessageCount")
    dead_letter_message_count: int = Field(0, alias="DeadLetterMessageCount")
    scheduled_message_count: int = Field(0, alias="ScheduledMessageCount")
    transfer_message_count: int = Field(0, alias="TransferMessageCount")
    transfer_dead_letter_message_count: int = Field(
        0, alias="TransferDeadLetterMessageCount"
    )


def get_entry_content(entry: dict[str, Any], content_root: str) -> dict[str, Any]:
    """Returns the `<content>` payload of an Atom entry, raising KeyError when it holds another kind."""
    content = entry.get("content") or {}
    if content_root not in content:
        raise KeyError(f"Expected a {content_root} in the entry content")
    return content[content_root] or {}


def get_entry_name(entry: dict[str, Any]) -> str:
    name = entry.get("title")
    if not name:
        raise KeyError("The entry has no title to read the entity name from")
    return name


def get_entry_path_segments(entry: dict[str, Any]) -> list[str]:
    """Splits the entry id, e.g. https://ns.servicebus.windows.net/topic/Subscriptions/sub, into its path."""
    entry_id = entry.get("id") or ""
    return [segment for segment in urlparse(entry_id).path.split("/") if segment]


def is_atom_wire(info: SerializationInfo) -> bool:
    return isinstance(info.context, dict) and info.context.get("wire") == "atom"
