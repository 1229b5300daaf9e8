from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import date

from examcase.core.database import get_db
from examcase.models.student import ProgramType
from examcase.modules.auth.dependencies import AuthContext, get_auth_context
from examcase.schemas.report import ReportFilters, ReportResponse
from examcase.services.report_service import ReportService

router = APIRouter()


@router.get("", response_model=ReportResponse)
async def get_report(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    department_id: Optional[str] = Query(None),
    violation_type: Optional[str] = Query(None),
    exam_type: Optional[str] = Query(None),
    status: str = Query("all", pattern="^(all|pending|resolved)$"),
    program: Optional[ProgramType] = Query(None),
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """
    Filtered case list with summary breakdowns.

    "all" is accepted for department, violation type and exam type and
    means no filter.
    """
    filters = ReportFilters(
        date_from=date_from,
        date_to=date_to,
        department_id=department_id,
        violation_type=violation_type,
        exam_type=exam_type,
        status=status,
        program=program,
    )
    return await ReportService(db, context.scope).get_report(filters)
