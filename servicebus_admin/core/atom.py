"""
Atom/XML codec for the management api.

Responses are turned into plain dicts (one per `<entry>`) so that the typed models can validate them,
and typed models are turned back into Atom entries for create and update requests.

A field key is written in the Service Bus connect namespace unless it is already qualified
(`{namespace}Name`), a list value is written as repeated elements and `#text` sets the text of an
element that also carries an `i:type`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from xml.etree.ElementTree import Element, SubElement, register_namespace, tostring

from defusedxml import ElementTree

ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
SERVICEBUS_NAMESPACE = (
    "http://schemas.microsoft.com/netservices/2010/10/servicebus/connect"
)
XML_SCHEMA_INSTANCE_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
XML_SCHEMA_NAMESPACE = "http://www.w3.org/2001/XMLSchema"
SERIALIZATION_ARRAYS_NAMESPACE = (
    "http://schemas.microsoft.com/2003/10/Serialization/Arrays"
)

XSI_TYPE = f"{{{XML_SCHEMA_INSTANCE_NAMESPACE}}}type"
XSI_NIL = f"{{{XML_SCHEMA_INSTANCE_NAMESPACE}}}nil"
XML_SCHEMA_PREFIX = "xs"
TYPE_KEY = "@type"
TEXT_KEY = "#text"

KEY_VALUE_ITEM = "KeyValueOfstringanyType"

ATOM_ENTRY_CONTENT_TYPE = "application/atom+xml;type=entry;charset=utf-8"

register_namespace("", ATOM_NAMESPACE)
register_namespace("i", XML_SCHEMA_INSTANCE_NAMESPACE)
register_namespace("sb", SERVICEBUS_NAMESPACE)
register_namespace("arr", SERIALIZATION_ARRAYS_NAMESPACE)


@dataclass
class AtomFeed:
    entries: list[dict[str, Any]] = field(default_factory=list)
    next_link: str | None = None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _element_to_value(element: Element) -> Any:
    if element.get(XSI_NIL) == "true":
        return None

    children = list(element)
    type_name = element.get(XSI_TYPE)
    if not children:
        if type_name:
            leaf = {TYPE_KEY: type_name}
            if element.text:
                leaf[TEXT_KEY] = element.text
            return leaf
        return element.text

    value: dict[str, Any] = {}
    if type_name:
        value[TYPE_KEY] = type_name
    for child in children:
        key = _local_name(child.tag)
        child_value = _element_to_value(child)
        if key not in value:
            value[key] = child_value
        elif isinstance(value[key], list):
            value[key].append(child_value)
        else:
            value[key] = [value[key], child_value]
    return value


def _parse_entry(element: Element) -> dict[str, Any]:
    entry: dict[str, Any] = {}
    for child in element:
        name = _local_name(child.tag)
        if name == "content":
            entry["content"] = {
                _local_name(item.tag): _element_to_value(item) for item in child
            }
        elif name == "author":
            entry["author"] = _element_to_value(child)
        elif name != "link":
            entry[name] = child.text
    return entry


def _parse_feed(element: Element) -> AtomFeed:
    feed = AtomFeed()
    for child in element:
        name = _local_name(child.tag)
        if name == "entry":
            feed.entries.append(_parse_entry(child))
        elif name == "link" and child.get("rel") == "next":
            feed.next_link = child.get("href")
    return feed


def parse_atom_response(body: str | bytes | None) -> AtomFeed | dict[str, Any] | None:
    """
    Returns None for an empty body, an AtomFeed for a `<feed>` document and the entry dict for an `<entry>` one.
    Raises ValueError for any other document and `ElementTree.ParseError` for malformed xml.
    """
    if not body or not body.strip():
        return None

    root = ElementTree.fromstring(body)
    root_name = _local_name(root.tag)
    if root_name == "feed":
        return _parse_feed(root)
    if root_name == "entry":
        return _parse_entry(root)
    raise ValueError(f"Unexpected root element <{root_name}> in the atom response")


def _decode_typed_value(value: Any) -> Any:
    if not isinstance(value, dict):
        return value
    type_name = value.get(TYPE_KEY, "").rsplit(":", 1)[-1]
    text = value.get(TEXT_KEY)
    if text is None:
        return None
    if type_name in ("int", "long", "short", "byte", "unsignedInt", "unsignedLong"):
        return int(text)
    if type_name in ("double", "float", "decimal"):
        return float(text)
    if type_name == "boolean":
        return text == "true"
    if type_name == "dateTime":
        return datetime.fromisoformat(text)
    return text


def decode_key_value_map(value: Any) -> Any:
    """
    Turns a `KeyValueOfstringanyType` collection, as used for rule properties and parameters,
    into a plain dict with typed values. Anything else is returned as is.
    """
    if not isinstance(value, dict) or KEY_VALUE_ITEM not in value:
        return value
    items = value[KEY_VALUE_ITEM]
    if not isinstance(items, list):
        items = [items]
    return {item["Key"]: _decode_typed_value(item.get("Value")) for item in items}


def _schema_type(value: Any) -> str:
    # bool first, it is also an int
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "int" if -(2**31) <= value < 2**31 else "long"
    if isinstance(value, float):
        return "double"
    if isinstance(value, datetime):
        return "dateTime"
    if isinstance(value, str):
        return "string"
    raise TypeError(
        f"Unsupported type {type(value).__name__} for a rule property, expected str, int, float, bool or datetime"
    )


def encode_key_value_map(mapping: dict[str, Any]) -> dict[str, Any]:
    """Reverse of `decode_key_value_map`, ready to be passed through `serialize_entry`."""
    item_tag = f"{{{SERIALIZATION_ARRAYS_NAMESPACE}}}{KEY_VALUE_ITEM}"
    key_tag = f"{{{SERIALIZATION_ARRAYS_NAMESPACE}}}Key"
    value_tag = f"{{{SERIALIZATION_ARRAYS_NAMESPACE}}}Value"
    return {
        item_tag: [
            {
                key_tag: key,
                value_tag: {
                    TYPE_KEY: f"{XML_SCHEMA_PREFIX}:{_schema_type(item)}",
                    TEXT_KEY: item,
                },
            }
            for key, item in mapping.items()
        ]
    }


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _qualified_name(key: str) -> str:
    if key.startswith("{"):
        return key
    return f"{{{SERVICEBUS_NAMESPACE}}}{key}"


def _set_type(element: Element, type_name: str) -> None:
    element.set(XSI_TYPE, type_name)
    if type_name.startswith(f"{XML_SCHEMA_PREFIX}:"):
        # the prefix only appears inside the attribute value, so it is declared by hand
        element.set(f"xmlns:{XML_SCHEMA_PREFIX}", XML_SCHEMA_NAMESPACE)


def _append_fields(parent: Element, fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        if key == TYPE_KEY:
            _set_type(parent, value)
            continue
        if key == TEXT_KEY:
            parent.text = _format_value(value)
            continue
        if value is None:
            continue
        for item in value if isinstance(value, list) else [value]:
            child = SubElement(parent, _qualified_name(key))
            if isinstance(item, dict):
                _append_fields(child, item)
            else:
                child.text = _format_value(item)


def serialize_entry(content_root: str, fields: dict[str, Any]) -> bytes:
    entry = Element(f"{{{ATOM_NAMESPACE}}}entry")
    updated = SubElement(entry, f"{{{ATOM_NAMESPACE}}}updated")
    updated.text = datetime.now(timezone.utc).isoformat()
    content = SubElement(entry, f"{{{ATOM_NAMESPACE}}}content", {"type": "application/xml"})
    description = SubElement(content, f"{{{SERVICEBUS_NAMESPACE}}}{content_root}")
    _append_fields(description, fields)
    return tostring(entry, encoding="utf-8", xml_declaration=True)
