import os

import pytest

from autoqa_export.errors import ExportErrorCode, MissingLocator, TraceReadError
from autoqa_export.parser import (
    build_ir_path,
    find_missing_locators,
    get_spec_action_records,
    read_action_records,
)

from tests.factories import RUN_ID, SPEC_PATH, make_element, make_record, to_record, write_trace


def test_build_ir_path_sanitizes_run_id(project_dir):
    assert build_ir_path(project_dir, "run-123") == os.path.join(project_dir, ".autoqa", "runs", "run-123", "ir.jsonl")
    assert build_ir_path(project_dir, "../../etc") == os.path.join(project_dir, ".autoqa", "runs", "etc", "ir.jsonl")


def test_read_action_records_skips_blank_lines(project_dir):
    ir_path = write_trace(project_dir, [make_record(stepIndex=1), make_record(stepIndex=2)])
    with open(ir_path, "a", encoding="utf-8") as f:
        f.write("\n\n")

    records = read_action_records(project_dir, RUN_ID)
    assert [record.step_index for record in records] == [1, 2]
    assert records[0].spec_path == SPEC_PATH


def test_read_action_records_ignores_unknown_keys(project_dir):
    write_trace(project_dir, [make_record(pageUrl="https://example.com", extra={"a": 1})])
    assert len(read_action_records(project_dir, RUN_ID)) == 1


def test_missing_trace_is_a_read_error(project_dir):
    with pytest.raises(TraceReadError) as exc_info:
        read_action_records(project_dir, "no-such-run")
    assert exc_info.value.code == ExportErrorCode.IR_READ_FAILED
    assert project_dir not in exc_info.value.reason
    assert ".autoqa/runs/no-such-run/ir.jsonl" in exc_info.value.reason


def test_invalid_json_is_a_read_error(project_dir):
    ir_path = write_trace(project_dir, [make_record()])
    with open(ir_path, "a", encoding="utf-8") as f:
        f.write("\n{not json")

    with pytest.raises(TraceReadError, match="invalid JSON on line 2"):
        read_action_records(project_dir, RUN_ID)


def test_malformed_record_is_a_read_error(project_dir):
    write_trace(project_dir, [{"toolName": "click"}])
    with pytest.raises(TraceReadError, match="malformed record on line 1"):
        read_action_records(project_dir, RUN_ID)


def test_records_are_filtered_by_resolved_spec_path(project_dir):
    write_trace(
        project_dir,
        [
            make_record(stepIndex=1),
            make_record(stepIndex=2, specPath=os.path.join(project_dir, SPEC_PATH)),
            make_record(stepIndex=3, specPath="specs/other.md"),
            make_record(stepIndex=4, specPath="./specs/../specs/test.md"),
        ],
    )
    records = get_spec_action_records(project_dir, RUN_ID, SPEC_PATH)
    assert [record.step_index for record in records] == [1, 2, 4]


def test_find_missing_locators():
    records = [
        to_record(make_record(stepIndex=1, element=make_element("page.getByTestId('ok')"))),
        to_record(make_record(stepIndex=2, toolName="fill")),
        to_record(make_record(stepIndex=3, element=make_element("   "))),
        to_record(make_record(stepIndex=4, toolName="navigate", toolInput={"url": "/"})),
        to_record(make_record(stepIndex=5, outcome={"ok": False})),
        to_record(make_record(stepIndex=None, toolName="select_option")),
    ]
    not_unique = make_element("page.getByText('Row')")
    not_unique["chosenLocator"]["validation"] = {"unique": False}
    records.append(to_record(make_record(stepIndex=6, toolName="assertElementVisible", element=not_unique)))

    missing = find_missing_locators(records)
    assert missing == [
        MissingLocator("fill", 2),
        MissingLocator("click", 3),
        MissingLocator("select_option", None),
        MissingLocator("assertElementVisible", 6),
    ]
    assert missing[2].describe() == "select_option at unknown step"
