"""
Academic Setting Service - the academic year/semester new cases are recorded in
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from typing import List, Optional
import logging

from examcase.core.exceptions import AcademicSettingNotFoundError, ConflictError, DuplicateRecordError
from examcase.models.academic_setting import AcademicSetting
from examcase.schemas.reference import AcademicSettingCreate

logger = logging.getLogger(__name__)


class AcademicSettingService:

    async def list_settings(self, db: AsyncSession) -> List[AcademicSetting]:
        result = await db.execute(
            select(AcademicSetting).order_by(AcademicSetting.academic_year.desc(), AcademicSetting.semester)
        )
        return list(result.scalars().all())

    async def get_active(self, db: AsyncSession) -> Optional[AcademicSetting]:
        result = await db.execute(select(AcademicSetting).where(AcademicSetting.is_active == True))  # noqa: E712
        return result.scalars().first()

    async def _get(self, db: AsyncSession, setting_id: str) -> AcademicSetting:
        result = await db.execute(select(AcademicSetting).where(AcademicSetting.id == setting_id))
        setting = result.scalar_one_or_none()
        if not setting:
            raise AcademicSettingNotFoundError(setting_id)
        return setting

    async def _deactivate_all(self, db: AsyncSession) -> None:
        await db.execute(update(AcademicSetting).values(is_active=False))

    async def create_setting(self, db: AsyncSession, data: AcademicSettingCreate) -> AcademicSetting:
        existing = await db.execute(
            select(AcademicSetting.id).where(
                AcademicSetting.academic_year == data.academic_year,
                AcademicSetting.semester == data.semester,
            )
        )
        if existing.first():
            raise DuplicateRecordError(
                "AcademicSetting", "period", f"{data.academic_year} semester {data.semester}"
            )

        if data.is_active:
            await self._deactivate_all(db)
        setting = AcademicSetting(
            academic_year=data.academic_year,
            semester=data.semester,
            is_active=data.is_active,
        )
        db.add(setting)
        await db.commit()
        await db.refresh(setting)
        return setting

    async def activate(self, db: AsyncSession, setting_id: str) -> AcademicSetting:
        """Make one period active; all others are deactivated"""
        setting = await self._get(db, setting_id)
        await self._deactivate_all(db)
        setting.is_active = True
        await db.commit()
        await db.refresh(setting)
        logger.info(f"Active academic period is now {setting.label}")
        return setting

    async def delete_setting(self, db: AsyncSession, setting_id: str) -> None:
        setting = await self._get(db, setting_id)
        if setting.is_active:
            raise ConflictError("Cannot delete the active academic period", code="ACTIVE_PERIOD")
        await db.delete(setting)
        await db.commit()


# Singleton instance
academic_setting_service = AcademicSettingService()
