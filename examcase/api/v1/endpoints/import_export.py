"""
CSV import/export endpoints

Imports run in two steps: POST /import/{type}/validate is a dry run that
classifies every row, POST /import/{type}/commit writes the valid and
duplicate rows and refuses the whole file when any row is an error.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from examcase.core.config import settings
from examcase.core.database import get_db
from examcase.core.exceptions import CSVImportError
from examcase.core.logging_config import logger
from examcase.modules.auth.dependencies import AuthContext, get_auth_context, get_current_admin
from examcase.schemas.import_export import ImportValidationResponse, ImportCommitResponse
from examcase.services.import_export_service import (
    import_export_service,
    export_filename,
    template_csv,
)

router = APIRouter()


def _csv_response(content: str, name: str) -> StreamingResponse:
    filename = export_filename(name)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


async def _read_upload(file: UploadFile) -> str:
    raw = await file.read()
    if len(raw) > settings.MAX_UPLOAD_SIZE:
        raise CSVImportError(f"File exceeds the {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB upload limit")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise CSVImportError("File must be UTF-8 encoded CSV")


@router.get("/templates/{import_type}")
async def download_template(
    import_type: str,
    context: AuthContext = Depends(get_auth_context)
):
    """Header row plus one example row"""
    content = template_csv(import_type)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={import_type}_template.csv"}
    )


@router.post("/import/{import_type}/validate", response_model=ImportValidationResponse)
async def validate_import(
    import_type: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    text = await _read_upload(file)
    return await import_export_service.validate(db, context, import_type, text)


@router.post("/import/{import_type}/commit", response_model=ImportCommitResponse)
async def commit_import(
    import_type: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    text = await _read_upload(file)
    logger.info(f"CSV import of {import_type} ({file.filename}) by {context.user_id}")
    return await import_export_service.commit(db, context, import_type, text)


@router.get("/export/violations")
async def export_violations(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    content = await import_export_service.export_violations(db, context.scope)
    return _csv_response(content, "violations_report")


@router.get("/export/students")
async def export_students(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    content = await import_export_service.export_students(db, context.scope)
    return _csv_response(content, "students")


@router.get("/export/departments")
async def export_departments(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    content = await import_export_service.export_departments(db, context.scope)
    return _csv_response(content, "departments")


@router.get("/export/colleges")
async def export_colleges(
    db: AsyncSession = Depends(get_db),
    admin: AuthContext = Depends(get_current_admin)
):
    content = await import_export_service.export_colleges(db)
    return _csv_response(content, "colleges")
