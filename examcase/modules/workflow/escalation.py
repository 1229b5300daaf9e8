"""
Repeat-offender detection.

Counts a student's prior misconduct cases and maps the count onto the
escalation ladder from the examination legislation:

    prior  risk      DAC suggestion                     CMC suggestion
    0      none      Pending                            Pending
    1      moderate  F Grade with Academic Probation    Uphold DAC Decision
    2      high      Referred to CMC                    Suspension (1 Semester)
    3      severe    Referred to CMC                    Dismissal
    4+     severe    Referred to CMC                    Referred to University Discipline Committee
"""

from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from examcase.core.logging_config import logger
from examcase.models.violation import Violation, DACDecision, CMCDecision, PENDING_DECISION
from examcase.modules.workflow.decisions import decision_severity, options_for


@dataclass
class ViolationHistoryItem:
    id: str
    incident_date: Optional[date]
    violation_type: str
    dac_decision: str
    cmc_decision: str
    course_name: str


@dataclass
class RepeatOffenderInfo:
    is_repeat_offender: bool = False
    prior_violation_count: int = 0
    violations: List[ViolationHistoryItem] = field(default_factory=list)
    risk_level: str = "none"
    suggested_dac_decision: str = PENDING_DECISION
    suggested_cmc_decision: str = PENDING_DECISION
    escalation_message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["dac_options"] = decision_options(self, "dac")
        data["cmc_options"] = decision_options(self, "cmc")
        return data


def _ordinal_offense(prior_count: int) -> str:
    return f"{prior_count + 1}th offense!"


def calculate_escalation(prior_count: int,
                         history: Optional[List[ViolationHistoryItem]] = None) -> RepeatOffenderInfo:
    """Apply the escalation ladder to a prior-violation count"""
    prior_count = max(prior_count, 0)
    if prior_count == 0:
        return RepeatOffenderInfo()

    info = RepeatOffenderInfo(
        is_repeat_offender=True,
        prior_violation_count=prior_count,
        violations=list(history or []),
    )

    if prior_count == 1:
        info.risk_level = "moderate"
        info.suggested_dac_decision = DACDecision.F_GRADE_PROBATION.value
        info.suggested_cmc_decision = CMCDecision.UPHOLD_DAC.value
        info.escalation_message = (
            "Second offense detected. Legislation recommends F Grade with Academic Probation."
        )
    elif prior_count == 2:
        info.risk_level = "high"
        info.suggested_dac_decision = DACDecision.REFERRED_TO_CMC.value
        info.suggested_cmc_decision = CMCDecision.SUSPENSION_ONE_SEMESTER.value
        info.escalation_message = (
            "Third offense detected! Legislation recommends Suspension (1 Semester) or higher."
        )
    else:
        info.risk_level = "severe"
        info.suggested_dac_decision = DACDecision.REFERRED_TO_CMC.value
        if prior_count == 3:
            info.suggested_cmc_decision = CMCDecision.DISMISSAL.value
        else:
            info.suggested_cmc_decision = CMCDecision.REFERRED_TO_UNIVERSITY.value
        info.escalation_message = (
            f"{_ordinal_offense(prior_count)} Legislation mandates Dismissal "
            "or referral to University Discipline Committee."
        )
    return info


def is_recommended_decision(decision: str, info: RepeatOffenderInfo, level: str) -> bool:
    if not info.is_repeat_offender:
        return False
    if level == "dac":
        return decision == info.suggested_dac_decision
    return decision == info.suggested_cmc_decision


def decision_options(info: RepeatOffenderInfo, level: str) -> List[Dict[str, Any]]:
    """Decision choices for a committee, marking the one the ladder suggests"""
    return [
        {
            "value": decision,
            "severity": decision_severity(decision),
            "recommended": is_recommended_decision(decision, info, level),
        }
        for decision in options_for(level)
    ]


async def load_violation_history(db: AsyncSession, student_id,
                                 exclude_violation_id=None) -> List[ViolationHistoryItem]:
    query = (
        select(Violation)
        .where(Violation.student_id == student_id)
        .order_by(Violation.incident_date.desc(), Violation.created_at.desc())
    )
    if exclude_violation_id is not None:
        query = query.where(Violation.id != exclude_violation_id)

    result = await db.execute(query)
    return [
        ViolationHistoryItem(
            id=str(v.id),
            incident_date=v.incident_date,
            violation_type=v.violation_type,
            dac_decision=v.dac_decision,
            cmc_decision=v.cmc_decision,
            course_name=v.course_name,
        )
        for v in result.scalars().all()
    ]


async def check_repeat_offender(db: AsyncSession, student_id,
                                exclude_violation_id=None) -> RepeatOffenderInfo:
    """
    Look up a student's record and work out the suggested penalties.

    A failed lookup is logged and reported as "no prior violations" so
    that recording a new case is never blocked by the advisory check.
    """
    try:
        history = await load_violation_history(db, student_id, exclude_violation_id)
    except Exception as e:
        logger.log_error_with_context(e, "check_repeat_offender", student_id=str(student_id))
        return RepeatOffenderInfo()
    return calculate_escalation(len(history), history)


async def refresh_repeat_offender_flag(db: AsyncSession, violation: Violation) -> bool:
    """
    Recompute the case's repeat-offender flag from the student's cases
    recorded before it, the same rule applied when the case was created.
    """
    result = await db.execute(
        select(func.count(Violation.id)).where(
            Violation.student_id == violation.student_id,
            Violation.id != violation.id,
            Violation.created_at < violation.created_at,
        )
    )
    violation.is_repeat_offender = result.scalar_one() > 0
    return violation.is_repeat_offender


async def refresh_student_flags(db: AsyncSession, student_id) -> int:
    """Re-derive the flag on every remaining case of a student; returns how many changed"""
    result = await db.execute(select(Violation).where(Violation.student_id == student_id))
    changed = 0
    for violation in result.scalars().all():
        before = violation.is_repeat_offender
        if await refresh_repeat_offender_flag(db, violation) != before:
            changed += 1
    return changed
