from typing import Annotated, Any, Literal, Union

from pydantic import BeforeValidator, Field, PlainSerializer, SerializationInfo

from servicebus_admin.core.atom import decode_key_value_map, encode_key_value_map
from servicebus_admin.models.common import (
    ManagementModel,
    get_entry_content,
    is_atom_wire,
)

RULE_CONTENT_ROOT = "RuleDescription"
DEFAULT_COMPATIBILITY_LEVEL = 20


def _serialize_key_value_map(
    value: dict[str, Any] | None, info: SerializationInfo
) -> Any:
    if value is None or not is_atom_wire(info):
        return value
    return encode_key_value_map(value)


# User properties of a correlation filter and parameters of sql filters and actions
KeyValueMap = Annotated[
    dict[str, Any] | None,
    BeforeValidator(decode_key_value_map),
    PlainSerializer(_serialize_key_value_map),
]


class SqlRuleFilter(ManagementModel):
    filter_type: Literal["SqlFilter"] = Field("SqlFilter", alias="@type")
    sql_expression: str = Field(alias="SqlExpression")
    compatibility_level: int = Field(
        DEFAULT_COMPATIBILITY_LEVEL, alias="CompatibilityLevel"
    )
    parameters: KeyValueMap = Field(None, alias="Parameters")


class TrueRuleFilter(ManagementModel):
    filter_type: Literal["TrueFilter"] = Field("TrueFilter", alias="@type")
    sql_expression: str = Field("1=1", alias="SqlExpression")
    compatibility_level: int = Field(
        DEFAULT_COMPATIBILITY_LEVEL, alias="CompatibilityLevel"
    )


class FalseRuleFilter(ManagementModel):
    filter_type: Literal["FalseFilter"] = Field("FalseFilter", alias="@type")
    sql_expression: str = Field("1=0", alias="SqlExpression")
    compatibility_level: int = Field(
        DEFAULT_COMPATIBILITY_LEVEL, alias="CompatibilityLevel"
    )


class CorrelationRuleFilter(ManagementModel):
    filter_type: Literal["CorrelationFilter"] = Field(
        "CorrelationFilter", alias="@type"
    )
    correlation_id: str | None = Field(None, alias="CorrelationId")
    message_id: str | None = Field(None, alias="MessageId")
    to: str | None = Field(None, alias="To")
    reply_to: str | None = Field(None, alias="ReplyTo")
    label: str | None = Field(None, alias="Label")
    session_id: str | None = Field(None, alias="SessionId")
    reply_to_session_id: str | None = Field(None, alias="ReplyToSessionId")
    content_type: str | None = Field(None, alias="ContentType")
    properties: KeyValueMap = Field(None, alias="Properties")


class SqlRuleAction(ManagementModel):
    action_type: Literal["SqlRuleAction"] = Field("SqlRuleAction", alias="@type")
    sql_expression: str = Field(alias="SqlExpression")
    compatibility_level: int = Field(
        DEFAULT_COMPATIBILITY_LEVEL, alias="CompatibilityLevel"
    )
    parameters: KeyValueMap = Field(None, alias="Parameters")


class EmptyRuleAction(ManagementModel):
    action_type: Literal["EmptyRuleAction"] = Field("EmptyRuleAction", alias="@type")


RuleFilter = Annotated[
    Union[SqlRuleFilter, TrueRuleFilter, FalseRuleFilter, CorrelationRuleFilter],
    Field(discriminator="filter_type"),
]
RuleAction = Annotated[
    Union[SqlRuleAction, EmptyRuleAction], Field(discriminator="action_type")
]


class RuleDescription(ManagementModel):
    filter: RuleFilter = Field(default_factory=TrueRuleFilter, alias="Filter")
    action: RuleAction = Field(default_factory=EmptyRuleAction, alias="Action")
    name: str = Field(alias="Name")


def build_rule(entry: dict[str, Any]) -> RuleDescription:
    content = dict(get_entry_content(entry, RULE_CONTENT_ROOT))
    # the service leaves Name empty on some entries, the title always carries it
    if not content.get("Name") and entry.get("title"):
        content["Name"] = entry["title"]
    return RuleDescription.model_validate(content)
