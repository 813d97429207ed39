from typing import Any

from pydantic import Field, field_validator

from servicebus_admin.models.common import ManagementModel


class IndexingSchedule(ManagementModel):
    interval: str
    start_time: str | None = Field(None, alias="startTime")


class SearchIndexer(ManagementModel):
    name: str
    description: str | None = None
    data_source_name: str = Field(alias="dataSourceName")
    skillset_name: str | None = Field(None, alias="skillsetName")
    target_index_name: str = Field(alias="targetIndexName")
    schedule: IndexingSchedule | None = None
    parameters: dict[str, Any] | None = None
    is_disabled: bool | None = Field(None, alias="disabled")
    etag: str | None = Field(None, alias="@odata.etag")


class SynonymMap(ManagementModel):
    name: str
    format: str = "solr"
    synonyms: list[str] = Field(default_factory=list)
    etag: str | None = Field(None, alias="@odata.etag")

    @field_validator("synonyms", mode="before")
    @classmethod
    def split_synonyms(cls, value: Any) -> Any:
        # the service sends the rules as one newline separated string
        if isinstance(value, str):
            return [line for line in value.splitlines() if line.strip()]
        return value


def build_indexer(record: dict[str, Any]) -> SearchIndexer:
    return SearchIndexer.model_validate(record)


def build_synonym_map(record: dict[str, Any]) -> SynonymMap:
    return SynonymMap.model_validate(record)
