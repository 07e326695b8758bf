import logging
import os

import pytest

from autoqa_export.cli.export_spec import build_parser, main, run_export

from tests.factories import BASE_URL, RUN_ID, SPEC_PATH, make_element, make_record, write_trace

SPEC_MARKDOWN = """# Test

## Steps
1. Navigate to {{BASE_URL}}/login
2. Fill the password field with {{PASSWORD}}
"""


@pytest.fixture(name="spec_file")
def spec_file_fixture(project_dir: str) -> str:
    os.makedirs(os.path.join(project_dir, "specs"), exist_ok=True)
    with open(os.path.join(project_dir, SPEC_PATH), "w", encoding="utf-8") as f:
        f.write(SPEC_MARKDOWN)
    write_trace(
        project_dir,
        [
            make_record(stepIndex=1, toolName="navigate", toolInput={"url": "https://example.com/login"}),
            make_record(
                stepIndex=2,
                toolName="fill",
                toolInput={"textLength": 8, "fillValue": {"kind": "redacted"}},
                element=make_element("page.getByTestId('password')"),
            ),
        ],
    )
    return SPEC_PATH


def parse(project_dir, *extra):
    return build_parser().parse_args(["--run-id", RUN_ID, "--spec", SPEC_PATH, "--cwd", project_dir, *extra])


def test_run_export_writes_file(project_dir, spec_file, capsys):
    assert run_export(parse(project_dir, "--base-url", BASE_URL)) == 0
    assert capsys.readouterr().out.strip() == "tests/autoqa/specs-test.spec.ts"

    with open(os.path.join(project_dir, "tests", "autoqa", "specs-test.spec.ts"), encoding="utf-8") as f:
        content = f.read()
    assert "const password = getEnvVar('AUTOQA_PASSWORD')" in content
    assert "await page.getByTestId('password').fill(password);" in content


def test_run_export_requires_base_url(project_dir, spec_file):
    args = parse(project_dir)
    args.base_url = None
    assert run_export(args) == 1


def test_run_export_reports_missing_spec(project_dir, caplog):
    with caplog.at_level(logging.ERROR):
        assert run_export(parse(project_dir, "--base-url", BASE_URL)) == 1
    assert "Could not read spec specs/test.md" in caplog.text
    assert project_dir not in caplog.text


def test_run_export_reports_failures(project_dir, spec_file, caplog):
    write_trace(project_dir, [make_record(stepIndex=2, toolName="fill")])
    with caplog.at_level(logging.ERROR):
        assert run_export(parse(project_dir, "--base-url", BASE_URL)) == 1
    assert "[MISSING_LOCATOR]" in caplog.text
    assert "fill at step 2" in caplog.text


def test_check_mode_does_not_write(project_dir, spec_file):
    assert run_export(parse(project_dir, "--check")) == 0
    assert not os.path.exists(os.path.join(project_dir, "tests"))


def test_main_exits_with_status(project_dir, spec_file):
    with pytest.raises(SystemExit) as exc_info:
        main(["-r", "other-run", "-s", SPEC_PATH, "--cwd", project_dir, "--check"])
    assert exc_info.value.code == 1
