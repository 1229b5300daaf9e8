"""
Dashboard endpoints - headline numbers and the current user's to-do list
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from examcase.core.database import get_db
from examcase.modules.auth.dependencies import AuthContext, get_auth_context
from examcase.schemas.report import DashboardResponse, DashboardStats, PendingAction
from examcase.services.report_service import ReportService

router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Stats, charts and recent cases within the user's scope"""
    return await ReportService(db, context.scope).get_dashboard()


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    return await ReportService(db, context.scope).get_stats()


@router.get("/pending-actions", response_model=List[PendingAction])
async def get_pending_actions(
    db: AsyncSession = Depends(get_db),
    context: AuthContext = Depends(get_auth_context)
):
    """Cases waiting on the current user, grouped by what needs doing"""
    return await ReportService(db, context.scope).pending_actions(context.roles)
