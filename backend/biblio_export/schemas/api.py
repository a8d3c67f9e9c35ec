"""Response payloads of the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SpecificationSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    specification: str
    family: str
    dialect: str
    content_type: str
    file_extension: str
    required_fields: list[str]
