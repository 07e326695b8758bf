import json
import os
from typing import Any

from autoqa_export.models.action_record import ActionRecord
from autoqa_export.models.spec import MarkdownSpec, MarkdownSpecStep

RUN_ID = "test-run"
SPEC_PATH = "specs/test.md"
BASE_URL = "https://example.com"


def make_record(**overrides: Any) -> dict[str, Any]:
    """Raw IR record as written to ir.jsonl (camelCase keys)."""
    record = {
        "runId": RUN_ID,
        "specPath": SPEC_PATH,
        "stepIndex": 1,
        "toolName": "click",
        "toolInput": {},
        "outcome": {"ok": True},
        "timestamp": 1700000000000,
    }
    record.update(overrides)
    return record


def make_element(code: str, **fingerprint: Any) -> dict[str, Any]:
    return {
        "fingerprint": fingerprint,
        "locatorCandidates": [],
        "chosenLocator": {
            "kind": "getByTestId",
            "value": "",
            "code": code,
            "validation": {"unique": True},
        },
    }


def to_record(raw: dict[str, Any]) -> ActionRecord:
    return ActionRecord.model_validate(raw)


def make_spec(*steps: tuple[int, str, str]) -> MarkdownSpec:
    return MarkdownSpec(
        preconditions=["Base URL accessible"],
        steps=[MarkdownSpecStep(index=index, text=text, kind=kind) for index, text, kind in steps],
    )


def write_trace(project_dir: str, records: list[dict[str, Any]], run_id: str = RUN_ID) -> str:
    ir_dir = os.path.join(project_dir, ".autoqa", "runs", run_id)
    os.makedirs(ir_dir, exist_ok=True)
    ir_path = os.path.join(ir_dir, "ir.jsonl")
    with open(ir_path, "w", encoding="utf-8") as f:
        f.write("\n".join(json.dumps(record, ensure_ascii=False) for record in records))
    return ir_path

