import json
import logging
import os

from pydantic import ValidationError

from autoqa_export.config import IR_FILE_NAME, RUNS_DIR
from autoqa_export.errors import MissingLocator, TraceReadError
from autoqa_export.models.action_record import ActionRecord
from autoqa_export.utils.export_paths import sanitize_path_segment, to_safe_relative_path

logger = logging.getLogger(__name__)


def build_ir_path(cwd: str, run_id: str) -> str:
    """Location of a run's trace: ``<cwd>/.autoqa/runs/<run_id>/ir.jsonl``."""
    return os.path.join(os.path.abspath(cwd), RUNS_DIR, sanitize_path_segment(run_id), IR_FILE_NAME)


def read_action_records(cwd: str, run_id: str) -> list[ActionRecord]:
    ir_path = build_ir_path(cwd, run_id)
    safe_path = to_safe_relative_path(ir_path, cwd)

    try:
        with open(ir_path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise TraceReadError(f"Failed to read IR file {safe_path}: {e.strerror or type(e).__name__}") from e

    records = []
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            records.append(ActionRecord.model_validate(json.loads(line)))
        except json.JSONDecodeError as e:
            raise TraceReadError(f"Failed to read IR file {safe_path}: invalid JSON on line {line_number}") from e
        except ValidationError as e:
            raise TraceReadError(
                f"Failed to read IR file {safe_path}: malformed record on line {line_number} "
                f"({e.error_count()} validation error(s))"
            ) from e

    logger.debug(f"Loaded {len(records)} IR record(s) from {safe_path}")
    return records


def _same_spec(record_spec_path: str, spec_path: str, cwd: str) -> bool:
    return os.path.abspath(os.path.join(cwd, record_spec_path)) == os.path.abspath(os.path.join(cwd, spec_path))


def get_spec_action_records(cwd: str, run_id: str, spec_path: str) -> list[ActionRecord]:
    """Records belonging to one spec, in the order they were recorded."""
    records = read_action_records(cwd, run_id)
    return [record for record in records if _same_spec(record.spec_path, spec_path, cwd)]


def find_missing_locators(records: list[ActionRecord]) -> list[MissingLocator]:
    """Every successful element action that lacks a usable chosen locator."""
    return [
        MissingLocator(tool_name=record.tool_name, step_index=record.step_index)
        for record in records
        if record.outcome.ok and record.targets_element and not record.has_valid_chosen_locator()
    ]
