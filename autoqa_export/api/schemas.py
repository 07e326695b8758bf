from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from autoqa_export.models.spec import MarkdownSpec


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExportRequest(_ApiModel):
    run_id: str
    spec_path: str
    spec: MarkdownSpec
    base_url: str
    login_base_url: Optional[str] = None
    raw_spec_content: Optional[str] = None
    export_dir: Optional[str] = None


class ExportResponse(_ApiModel):
    relative_path: str


class MissingLocatorRead(_ApiModel):
    tool_name: str
    step_index: Optional[int] = None


class ExportErrorDetail(_ApiModel):
    code: str
    reason: str
    missing_locators: list[MissingLocatorRead] = []


class ExportabilityRead(_ApiModel):
    exportable: bool
    reason: Optional[str] = None
