from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevelType = Literal["ERROR", "WARNING", "INFO", "DEBUG", "CRITICAL"]

SERVICEBUS_API_VERSION = "2017-04"
SEARCH_API_VERSION = "2020-06-30"


class ManagementSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SERVICEBUS_ADMIN__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: LogLevelType = "INFO"
    connection_string: str | None = Field(default=None, json_schema_extra={"sensitive": True})
    fully_qualified_namespace: str | None = None
    client_timeout: int = 60
    api_version: str = SERVICEBUS_API_VERSION
    max_page_size: int | None = Field(default=None, gt=0)

    search_endpoint: str | None = None
    search_api_key: str | None = Field(default=None, json_schema_extra={"sensitive": True})
    search_api_version: str = SEARCH_API_VERSION

    @model_validator(mode="after")
    def strip_namespace(self) -> "ManagementSettings":
        if self.fully_qualified_namespace:
            self.fully_qualified_namespace = self.fully_qualified_namespace.rstrip("/")
        return self
