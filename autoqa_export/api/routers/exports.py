import logging
import os
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from autoqa_export.api.schemas import (
    ExportabilityRead,
    ExportErrorDetail,
    ExportRequest,
    ExportResponse,
    MissingLocatorRead,
)
from autoqa_export.config import PROJECT_ROOT
from autoqa_export.errors import ExportErrorCode
from autoqa_export.models.export import ExportFailure
from autoqa_export.services.export_service import ExportOptions, export_from_trace, is_spec_exportable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/exports", tags=["exports"])


def get_project_root() -> str:
    return PROJECT_ROOT


def validate_export_dir(export_dir: Optional[str]) -> None:
    if export_dir is None:
        return
    normalized = os.path.normpath(export_dir)
    if os.path.isabs(export_dir) or normalized == ".." or normalized.startswith(".." + os.sep):
        logger.warning("Rejected export directory outside the project root")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="exportDir must be a relative path inside the project",
        )


def _failure_detail(result: ExportFailure) -> dict[str, Any]:
    detail = ExportErrorDetail(
        code=result.code.value,
        reason=result.reason,
        missing_locators=[
            MissingLocatorRead(tool_name=missing.tool_name, step_index=missing.step_index)
            for missing in result.missing_locators
        ],
    )
    return detail.model_dump(by_alias=True)


@router.post("", response_model=ExportResponse)
async def create_export(
    request: ExportRequest,
    project_root: str = Depends(get_project_root),
) -> Any:
    validate_export_dir(request.export_dir)

    options = ExportOptions(
        cwd=project_root,
        run_id=request.run_id,
        spec_path=request.spec_path,
        spec=request.spec,
        base_url=request.base_url,
        login_base_url=request.login_base_url,
        raw_spec_content=request.raw_spec_content,
        export_dir=request.export_dir,
    )
    result = export_from_trace(options)

    if not result.ok:
        status_code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR
            if result.code == ExportErrorCode.WRITE_FAILED
            else status.HTTP_422_UNPROCESSABLE_ENTITY
        )
        raise HTTPException(status_code=status_code, detail=_failure_detail(result))

    logger.info(f"Export created for run {request.run_id}: {result.relative_path}")
    return ExportResponse(relative_path=result.relative_path)


@router.get("/exportable", response_model=ExportabilityRead)
async def get_exportability(
    run_id: str = Query(..., alias="runId"),
    spec_path: str = Query(..., alias="specPath"),
    project_root: str = Depends(get_project_root),
) -> Any:
    exportability = is_spec_exportable(project_root, run_id, spec_path)
    return ExportabilityRead(exportable=exportability.exportable, reason=exportability.reason)
