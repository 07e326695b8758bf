from dataclasses import dataclass, field
from typing import Optional, Union

from autoqa_export.errors import ExportErrorCode, MissingLocator


@dataclass(frozen=True)
class ExportSuccess:
    export_path: str
    relative_path: str
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ExportFailure:
    code: ExportErrorCode
    reason: str
    missing_locators: list[MissingLocator] = field(default_factory=list)
    ok: bool = field(default=False, init=False)


ExportResult = Union[ExportSuccess, ExportFailure]


@dataclass(frozen=True)
class Exportability:
    exportable: bool
    reason: Optional[str] = None
