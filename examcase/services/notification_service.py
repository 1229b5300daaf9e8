"""
Notification Service - in-app notification bell

Handles:
- Fan-out of workflow notifications to the staff responsible for the next step
- Listing, unread counts and read markers for the current user
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from typing import List, Optional
import logging

from examcase.core.config import settings
from examcase.core.exceptions import NotificationNotFoundError
from examcase.models.notification import Notification
from examcase.models.user import UserRoleAssignment
from examcase.models.violation import Violation
from examcase.modules.workflow.notifications import NotificationRule, rules_for_status

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for workflow notifications"""

    async def _recipients(
        self,
        db: AsyncSession,
        rule: NotificationRule,
        department_id,
        college_id,
    ) -> List:
        if rule.scope == "department":
            if department_id is None:
                return []
            scope_filter = UserRoleAssignment.department_id == department_id
        else:
            if college_id is None:
                return []
            scope_filter = UserRoleAssignment.college_id == college_id

        result = await db.execute(
            select(UserRoleAssignment.user_id)
            .where(UserRoleAssignment.role.in_(rule.roles), scope_filter)
            .order_by(UserRoleAssignment.created_at)
        )
        seen = []
        for user_id in result.scalars().all():
            if user_id not in seen:
                seen.append(user_id)
        return seen

    async def build_workflow_notifications(
        self,
        db: AsyncSession,
        violation: Violation,
        new_status,
        actor_id=None,
    ) -> List[Notification]:
        """
        Create (but do not commit) the notifications for a status change.

        Args:
            db: Database session
            violation: The case, with its student loaded
            new_status: Status the case just moved to
            actor_id: User who made the change; skipped where the rule says so

        Returns:
            Notifications added to the session
        """
        student_name = violation.student.full_name if violation.student else "a student"
        notifications = []

        for rule in rules_for_status(new_status):
            recipients = await self._recipients(db, rule, violation.department_id, violation.college_id)
            for user_id in recipients:
                if rule.exclude_actor and actor_id is not None and str(user_id) == str(actor_id):
                    continue
                notification = Notification(
                    user_id=user_id,
                    type=rule.type,
                    title=rule.title,
                    message=rule.message.format(student_name=student_name),
                    violation_id=violation.id,
                    is_read=False,
                )
                db.add(notification)
                notifications.append(notification)

        if notifications:
            logger.info(
                f"Queued {len(notifications)} notification(s) for case {violation.id} -> {new_status}"
            )
        return notifications

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id,
        unread_only: bool = False,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        """Newest first, capped at NOTIFICATION_LIST_LIMIT"""
        limit = min(limit or settings.NOTIFICATION_LIST_LIMIT, settings.NOTIFICATION_LIST_LIMIT)
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)  # noqa: E712
        result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
        return list(result.scalars().all())

    async def unread_count(self, db: AsyncSession, user_id) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read == False,  # noqa: E712
            )
        )
        return result.scalar() or 0

    async def mark_read(self, db: AsyncSession, user_id, notification_id) -> Notification:
        result = await db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotificationNotFoundError(str(notification_id))

        notification.is_read = True
        await db.commit()
        await db.refresh(notification)
        return notification

    async def mark_all_read(self, db: AsyncSession, user_id) -> int:
        result = await db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
            .values(is_read=True)
        )
        await db.commit()
        return result.rowcount or 0


# Singleton instance
notification_service = NotificationService()
