"""
Unit Tests for Repeat-Offender Escalation
"""
import pytest
from datetime import date, timedelta

from examcase.modules.workflow.escalation import (
    ViolationHistoryItem,
    calculate_escalation,
    check_repeat_offender,
    decision_options,
    is_recommended_decision,
    refresh_repeat_offender_flag,
    refresh_student_flags,
)


def history(n: int):
    return [
        ViolationHistoryItem(
            id=f"v{i}",
            incident_date=date(2025, 1, 1) + timedelta(days=i),
            violation_type="Plagiarism",
            dac_decision="Pending",
            cmc_decision="Pending",
            course_name="Physics",
        )
        for i in range(n)
    ]


class TestCalculateEscalation:
    """Test the escalation ladder"""

    def test_first_offense(self):
        info = calculate_escalation(0)

        assert info.is_repeat_offender is False
        assert info.risk_level == "none"
        assert info.suggested_dac_decision == "Pending"
        assert info.suggested_cmc_decision == "Pending"
        assert info.escalation_message == ""
        assert info.violations == []

    def test_history_omitted_for_first_offense(self):
        assert calculate_escalation(0, history(0)).violations == []

    def test_second_offense(self):
        info = calculate_escalation(1, history(1))

        assert info.is_repeat_offender is True
        assert info.prior_violation_count == 1
        assert info.risk_level == "moderate"
        assert info.suggested_dac_decision == "F Grade with Academic Probation"
        assert info.suggested_cmc_decision == "Uphold DAC Decision"
        assert info.escalation_message == (
            "Second offense detected. Legislation recommends F Grade with Academic Probation."
        )
        assert len(info.violations) == 1

    def test_third_offense(self):
        info = calculate_escalation(2)

        assert info.risk_level == "high"
        assert info.suggested_dac_decision == "Referred to CMC"
        assert info.suggested_cmc_decision == "Suspension (1 Semester)"
        assert info.escalation_message.startswith("Third offense detected!")

    def test_fourth_offense(self):
        info = calculate_escalation(3)

        assert info.risk_level == "severe"
        assert info.suggested_cmc_decision == "Dismissal"
        assert info.escalation_message == (
            "4th offense! Legislation mandates Dismissal or referral to University Discipline Committee."
        )

    def test_fifth_and_later_offenses(self):
        info = calculate_escalation(5)

        assert info.risk_level == "severe"
        assert info.suggested_dac_decision == "Referred to CMC"
        assert info.suggested_cmc_decision == "Referred to University Discipline Committee"
        assert info.escalation_message.startswith("6th offense!")

    def test_negative_count_treated_as_zero(self):
        assert calculate_escalation(-3).is_repeat_offender is False

    def test_to_dict(self):
        data = calculate_escalation(1, history(1)).to_dict()

        assert data["risk_level"] == "moderate"
        assert data["violations"][0]["course_name"] == "Physics"


class TestRecommendedDecision:

    def test_not_recommended_for_first_offense(self):
        assert is_recommended_decision("Pending", calculate_escalation(0), "dac") is False

    def test_matches_level(self):
        info = calculate_escalation(2)

        assert is_recommended_decision("Referred to CMC", info, "dac") is True
        assert is_recommended_decision("Suspension (1 Semester)", info, "cmc") is True
        assert is_recommended_decision("Dismissal", info, "cmc") is False

    def test_options_mark_single_recommendation(self):
        options = decision_options(calculate_escalation(3), "cmc")

        assert [o["value"] for o in options if o["recommended"]] == ["Dismissal"]
        assert all(o["severity"] for o in options)

    def test_first_offense_recommends_nothing(self):
        options = decision_options(calculate_escalation(0), "dac")
        assert not any(o["recommended"] for o in options)

    def test_to_dict_carries_options(self):
        data = calculate_escalation(2).to_dict()

        assert {o["value"] for o in data["dac_options"] if o["recommended"]} == {"Referred to CMC"}
        assert len(data["cmc_options"]) == len(decision_options(calculate_escalation(2), "cmc"))


class TestHistoryLookup:
    """Test history loading against the database"""

    @pytest.mark.asyncio
    async def test_counts_prior_violations(self, db_session, student, make_violation):
        await make_violation(student, incident_date=date(2025, 3, 1))
        await make_violation(student, incident_date=date(2025, 5, 1))

        info = await check_repeat_offender(db_session, student.id)

        assert info.prior_violation_count == 2
        assert info.risk_level == "high"
        # Newest incident first
        assert info.violations[0].incident_date == date(2025, 5, 1)

    @pytest.mark.asyncio
    async def test_excludes_current_case(self, db_session, student, make_violation):
        first = await make_violation(student)
        second = await make_violation(student)

        info = await check_repeat_offender(db_session, student.id, exclude_violation_id=second.id)

        assert info.prior_violation_count == 1
        assert info.violations[0].id == str(first.id)

    @pytest.mark.asyncio
    async def test_refresh_flag(self, db_session, student, make_violation):
        await make_violation(student)
        current = await make_violation(student)
        assert current.is_repeat_offender is False

        flagged = await refresh_repeat_offender_flag(db_session, current)

        assert flagged is True
        assert current.is_repeat_offender is True

    @pytest.mark.asyncio
    async def test_refresh_ignores_later_cases(self, db_session, student, make_violation):
        first = await make_violation(student)
        await make_violation(student)

        assert await refresh_repeat_offender_flag(db_session, first) is False

    @pytest.mark.asyncio
    async def test_refresh_student_flags_after_removal(self, db_session, student, make_violation):
        first = await make_violation(student)
        later = await make_violation(student, is_repeat_offender=True)
        await db_session.delete(first)
        await db_session.commit()

        changed = await refresh_student_flags(db_session, student.id)

        assert changed == 1
        assert later.is_repeat_offender is False
