import re
from dataclasses import dataclass

ENDPOINT_HOST_PATTERN = r".*://([^/]*)"


@dataclass(frozen=True)
class ConnectionStringProperties:
    endpoint: str
    fully_qualified_namespace: str
    shared_access_key_name: str | None = None
    shared_access_key: str | None = None
    entity_path: str | None = None


def parse_connection_string(connection_string: str) -> ConnectionStringProperties:
    """
    Parses a `Key=Value;Key=Value` Service Bus connection string.

    Only the `=` that follows each key is treated as a separator, base64 keys keep their padding.
    """
    values: dict[str, str] = {}
    for part in connection_string.strip().split(";"):
        if not part.strip():
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise ValueError(
                f"Connection string segment '{key.strip()}' is missing a value."
            )
        values[key.strip().lower()] = value.strip()

    endpoint = values.get("endpoint")
    if not endpoint:
        raise ValueError("Missing Endpoint in connection string.")

    match = re.match(ENDPOINT_HOST_PATTERN, endpoint)
    if not match or not match.group(1):
        raise ValueError("Endpoint in the connection string is not valid.")

    return ConnectionStringProperties(
        endpoint=endpoint,
        fully_qualified_namespace=match.group(1),
        shared_access_key_name=values.get("sharedaccesskeyname"),
        shared_access_key=values.get("sharedaccesskey"),
        entity_path=values.get("entitypath"),
    )
