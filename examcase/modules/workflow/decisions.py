"""
DAC / CMC decision options, validation and severity grouping.
"""

from typing import Optional

from examcase.core.exceptions import InvalidDecisionError
from examcase.models.violation import DACDecision, CMCDecision, PENDING_DECISION, enum_values


DECISION_NOTES_HEADER = "--- Decision Notes ---"

SEVERE_DECISIONS = frozenset({
    "Dismissal",
    "Suspension (1 Academic Year)",
    "Referred to University Discipline Committee",
})
SERIOUS_DECISIONS = frozenset({
    "F Grade for Course",
    "F Grade with Academic Probation",
    "Suspension (1 Semester)",
    "Suspension (2 Semesters)",
})
PENDING_DECISIONS = frozenset({"Pending", "Referred to CMC"})
MINOR_DECISIONS = frozenset({"Cleared", "Verbal Warning", "Written Warning"})


def options_for(level: str) -> list:
    if level == "dac":
        return enum_values(DACDecision)
    if level == "cmc":
        return enum_values(CMCDecision)
    raise ValueError(f"Unknown decision level: {level}")


def validate_decision(decision: Optional[str], level: str, allow_pending: bool = True) -> str:
    """Return the decision if it is a valid option for the committee level"""
    allowed = options_for(level)
    if not decision or decision not in allowed:
        raise InvalidDecisionError(decision or "", level, allowed)
    if not allow_pending and decision == PENDING_DECISION:
        raise InvalidDecisionError(decision, level, [d for d in allowed if d != PENDING_DECISION])
    return decision


def decision_severity(decision: Optional[str]) -> str:
    """Group a decision into severe / serious / pending / minor / other"""
    if decision in SEVERE_DECISIONS:
        return "severe"
    if decision in SERIOUS_DECISIONS:
        return "serious"
    if decision in PENDING_DECISIONS:
        return "pending"
    if decision in MINOR_DECISIONS:
        return "minor"
    return "other"


def append_decision_notes(description: Optional[str], notes: Optional[str]) -> Optional[str]:
    if not notes:
        return description
    if description:
        return f"{description}\n\n{DECISION_NOTES_HEADER}\n{notes}"
    return f"{DECISION_NOTES_HEADER}\n{notes}"
