from enum import Enum
from typing import NamedTuple, Optional


class ExportErrorCode(str, Enum):
    IR_READ_FAILED = "IR_READ_FAILED"
    NO_IR_RECORDS = "NO_IR_RECORDS"
    MISSING_LOCATOR = "MISSING_LOCATOR"
    CODEGEN_ERROR = "CODEGEN_ERROR"
    WRITE_FAILED = "WRITE_FAILED"


class MissingLocator(NamedTuple):
    """An element-targeting action recorded without a usable chosen locator."""

    tool_name: str
    step_index: Optional[int]

    def describe(self) -> str:
        step_info = f"step {self.step_index}" if self.step_index is not None else "unknown step"
        return f"{self.tool_name} at {step_info}"


class ExportError(Exception):
    """Base class for failures that abort an export before anything is written."""

    code: ExportErrorCode = ExportErrorCode.CODEGEN_ERROR

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class TraceReadError(ExportError):
    code = ExportErrorCode.IR_READ_FAILED


class NoRecordsError(ExportError):
    code = ExportErrorCode.NO_IR_RECORDS


class MissingLocatorError(ExportError):
    code = ExportErrorCode.MISSING_LOCATOR

    def __init__(self, missing: list[MissingLocator]):
        super().__init__(f"Export failed: {len(missing)} action(s) missing valid chosenLocator")
        self.missing = missing


class CodegenError(ExportError):
    code = ExportErrorCode.CODEGEN_ERROR

    def __init__(self, errors: list[str]):
        super().__init__(f"Export failed: {'; '.join(errors)}")
        self.errors = errors


class ExportWriteError(ExportError):
    code = ExportErrorCode.WRITE_FAILED


class SpecParseError(ValueError):
    """Raised when a Markdown spec has no usable Steps section."""
