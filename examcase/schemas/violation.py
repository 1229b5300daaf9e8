"""
Violation Schemas - Request/Response models for misconduct cases and workflow actions
"""

from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Optional, List, Any, Dict
from datetime import date, datetime

from examcase.models.violation import ExamType, ViolationType, WorkflowStatus
from examcase.modules.workflow.states import label_for
from examcase.schemas.reference import StudentResponse


class ViolationCreate(BaseModel):
    """Schema for recording a new case"""
    student_id: str = Field(..., description="Student record ID")
    incident_date: date
    course_name: str = Field(..., min_length=1, max_length=255)
    course_code: str = Field(..., min_length=1, max_length=50)
    exam_type: ExamType
    violation_type: ViolationType
    invigilator: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    evidence_url: Optional[str] = None


class ViolationUpdate(BaseModel):
    """Non-workflow fields only; status moves through workflow actions"""
    incident_date: Optional[date] = None
    course_name: Optional[str] = Field(None, min_length=1, max_length=255)
    course_code: Optional[str] = Field(None, min_length=1, max_length=50)
    exam_type: Optional[ExamType] = None
    violation_type: Optional[ViolationType] = None
    invigilator: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    evidence_url: Optional[str] = None


class ViolationResponse(BaseModel):
    id: str
    student_id: str
    student: Optional[StudentResponse] = None
    incident_date: date
    course_name: str
    course_code: str
    exam_type: str
    violation_type: str
    invigilator: str
    description: Optional[str] = None
    evidence_url: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    is_repeat_offender: bool

    dac_decision: str
    dac_decision_by: Optional[str] = None
    dac_decision_date: Optional[date] = None
    cmc_decision: str
    cmc_decision_by: Optional[str] = None
    cmc_decision_date: Optional[date] = None

    workflow_status: WorkflowStatus
    submitted_by: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_by_head: Optional[str] = None
    head_approved_at: Optional[datetime] = None
    approved_by_avd: Optional[str] = None
    avd_approved_at: Optional[datetime] = None
    closed_by: Optional[str] = None
    closed_at: Optional[datetime] = None

    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def workflow_status_label(self) -> str:
        return label_for(self.workflow_status)


class ViolationHistoryEntry(BaseModel):
    id: str
    incident_date: Optional[date] = None
    violation_type: str
    dac_decision: str
    cmc_decision: str
    course_name: str

    model_config = ConfigDict(from_attributes=True)


class DecisionOption(BaseModel):
    value: str
    severity: str
    recommended: bool = False


class RepeatOffenderResponse(BaseModel):
    is_repeat_offender: bool
    prior_violation_count: int
    violations: List[ViolationHistoryEntry] = []
    risk_level: str
    suggested_dac_decision: str
    suggested_cmc_decision: str
    escalation_message: str
    dac_options: List[DecisionOption] = []
    cmc_options: List[DecisionOption] = []

    model_config = ConfigDict(from_attributes=True)


class ViolationDetailResponse(ViolationResponse):
    """Case with everything a client needs to render the approval controls"""
    locked: bool = False
    lock_message: Optional[str] = None
    available_actions: List[str] = []
    quick_action: Optional[str] = None
    repeat_offender: Optional[RepeatOffenderResponse] = None


class WorkflowActionRequest(BaseModel):
    action: str = Field(..., description="e.g. submit_to_head, approve_as_head, set_cmc_decision")
    decision: Optional[str] = Field(None, description="DAC/CMC decision for decision actions")
    notes: Optional[str] = Field(None, max_length=5000)


class AuditEntryResponse(BaseModel):
    id: str
    violation_id: str
    actor_id: Optional[str] = None
    action: str
    from_status: str
    to_status: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DecisionOptionsResponse(BaseModel):
    dac: List[str]
    cmc: List[str]
    exam_types: List[str]
    violation_types: List[str]
    workflow_statuses: Dict[str, str]
