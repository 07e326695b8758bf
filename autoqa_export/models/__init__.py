from autoqa_export.models.action_record import (
    ELEMENT_TOOLS,
    ActionOutcome,
    ActionRecord,
    ChosenLocator,
    ElementFingerprint,
    ElementInfo,
    FillValue,
    LiteralFillValue,
    LocatorValidation,
    RedactedFillValue,
    TemplateVarFillValue,
    ToolName,
)
from autoqa_export.models.export import ExportFailure, ExportResult, ExportSuccess, Exportability
from autoqa_export.models.spec import MarkdownSpec, MarkdownSpecStep

__all__ = [
    "ELEMENT_TOOLS",
    "ActionOutcome",
    "ActionRecord",
    "ChosenLocator",
    "ElementFingerprint",
    "ElementInfo",
    "ExportFailure",
    "ExportResult",
    "ExportSuccess",
    "Exportability",
    "FillValue",
    "LiteralFillValue",
    "LocatorValidation",
    "MarkdownSpec",
    "MarkdownSpecStep",
    "RedactedFillValue",
    "TemplateVarFillValue",
    "ToolName",
]
