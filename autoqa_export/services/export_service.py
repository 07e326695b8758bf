"""Export a Playwright test for one spec from a run's IR trace.

Everything up to the final write is pure computation; the export either
passes every check and writes exactly one file, or fails without touching
the export directory.
"""

import logging
import os
import re
from dataclasses import dataclass
from typing import Optional

from autoqa_export.errors import (
    CodegenError,
    ExportError,
    ExportWriteError,
    MissingLocatorError,
    NoRecordsError,
)
from autoqa_export.models.action_record import ActionRecord
from autoqa_export.models.export import ExportFailure, ExportResult, ExportSuccess, Exportability
from autoqa_export.models.spec import MarkdownSpec
from autoqa_export.parser import find_missing_locators, get_spec_action_records
from autoqa_export.utils.export_paths import (
    ensure_export_dir,
    get_env_helper_import_path,
    get_export_path,
    get_relative_export_path,
)
from autoqa_export.utils.generator import PlaywrightScriptGenerator

logger = logging.getLogger(__name__)


@dataclass
class ExportOptions:
    cwd: str
    run_id: str
    spec_path: str
    spec: MarkdownSpec
    base_url: str
    login_base_url: Optional[str] = None
    # Un-rendered spec text; the only way to tell which values were {{VAR}}s.
    raw_spec_content: Optional[str] = None
    export_dir: Optional[str] = None


def derive_test_name(spec_path: str) -> str:
    file_name = re.split(r"[\\/]", spec_path)[-1]
    name = re.sub(r"\.md$", "", file_name, flags=re.IGNORECASE).replace("-", " ")
    return name or "Exported Test"


def load_validated_records(cwd: str, run_id: str, spec_path: str) -> list[ActionRecord]:
    """Read the spec's records and enforce the locator gate."""
    records = get_spec_action_records(cwd, run_id, spec_path)
    if not records:
        raise NoRecordsError("Export failed: No IR records found for spec")

    missing = find_missing_locators(records)
    if missing:
        raise MissingLocatorError(missing)
    return records


def render_test_file(options: ExportOptions, records: list[ActionRecord]) -> str:
    generator = PlaywrightScriptGenerator(
        spec=options.spec,
        records=records,
        base_url=options.base_url,
        login_base_url=options.login_base_url,
        raw_spec_content=options.raw_spec_content,
        test_name=derive_test_name(options.spec_path),
        env_helper_import=get_env_helper_import_path(options.cwd, options.export_dir),
    )
    script = generator.generate_script_content()
    if script.errors:
        raise CodegenError(script.errors)
    return script.content


def write_test_file(options: ExportOptions, content: str) -> ExportSuccess:
    try:
        ensure_export_dir(options.cwd, options.export_dir)
    except OSError as e:
        raise ExportWriteError(f"Failed to create export directory: {e.strerror or type(e).__name__}") from e

    export_path = get_export_path(options.cwd, options.spec_path, options.export_dir)
    relative_path = get_relative_export_path(options.cwd, options.spec_path, options.export_dir)
    try:
        with open(export_path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
    except OSError as e:
        raise ExportWriteError(f"Failed to write export file {relative_path}: {e.strerror or type(e).__name__}") from e

    return ExportSuccess(export_path=export_path, relative_path=relative_path)


def export_from_trace(options: ExportOptions) -> ExportResult:
    """Compile the run's IR records for ``options.spec_path`` into a test file."""
    try:
        records = load_validated_records(options.cwd, options.run_id, options.spec_path)
        content = render_test_file(options, records)
        result = write_test_file(options, content)
    except MissingLocatorError as e:
        logger.warning(f"{e.reason}: {', '.join(m.describe() for m in e.missing)}")
        return ExportFailure(code=e.code, reason=e.reason, missing_locators=list(e.missing))
    except ExportError as e:
        logger.warning(f"Export of run {options.run_id} failed [{e.code.value}]: {e.reason}")
        return ExportFailure(code=e.code, reason=e.reason)

    logger.info(f"Exported {len(records)} IR record(s) to {result.relative_path}")
    return result


def is_spec_exportable(cwd: str, run_id: str, spec_path: str) -> Exportability:
    """Check the export preconditions without generating or writing anything."""
    try:
        load_validated_records(cwd, run_id, spec_path)
    except MissingLocatorError as e:
        return Exportability(exportable=False, reason=f"{len(e.missing)} action(s) missing valid chosenLocator")
    except ExportError as e:
        return Exportability(exportable=False, reason=e.reason)
    return Exportability(exportable=True)


def spec_path_for_display(spec_path: str, cwd: str) -> str:
    absolute = os.path.abspath(os.path.join(cwd, spec_path))
    root = os.path.abspath(cwd)
    if absolute.startswith(root.rstrip(os.sep) + os.sep):
        return os.path.relpath(absolute, root).replace(os.sep, "/")
    return os.path.basename(spec_path)
