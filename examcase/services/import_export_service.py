"""
Import/Export Service
CSV bulk import of reference data and CSV exports of cases and reference data.

Import runs in two steps. ``validate`` classifies every row without
writing anything; ``commit`` re-validates and then inserts new rows,
updates rows whose key already exists and skips rows with warnings.
A file with any error row is refused as a whole.
"""

import csv
import io
from datetime import date
from typing import Dict, List, Tuple, Any

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from examcase.core.config import settings
from examcase.core.exceptions import AuthorizationError, CSVImportError
from examcase.core.logging_config import logger
from examcase.models.college import College, Department
from examcase.models.student import Student, ProgramType
from examcase.models.violation import Violation
from examcase.modules.auth.dependencies import AuthContext
from examcase.modules.auth.scope import UserScope
from examcase.services.violation_service import scoped_violations


VALID = "valid"
DUPLICATE = "duplicate"
WARNING = "warning"
ERROR = "error"

TEMPLATES: Dict[str, Dict[str, list]] = {
    "students": {
        "headers": ["student_id", "full_name", "department_code", "program"],
        "example": [
            ["STU/0001/16", "Abebe Kebede", "CSE", "BSc"],
            ["STU/0002/16", "Sara Tesfaye", "EE", "MSc"],
        ],
    },
    "departments": {
        "headers": ["code", "name", "college_code"],
        "example": [
            ["CSE", "Computer Science and Engineering", "COE"],
            ["EE", "Electrical Engineering", "COE"],
        ],
    },
    "colleges": {
        "headers": ["code", "name"],
        "example": [
            ["COE", "College of Engineering"],
            ["CNS", "College of Natural Sciences"],
        ],
    },
}

VIOLATION_EXPORT_HEADERS = [
    "student_id", "student_name", "department", "program",
    "incident_date", "course_name", "course_code", "exam_type",
    "violation_type", "invigilator", "dac_decision", "dac_decision_date",
    "cmc_decision", "cmc_decision_date", "workflow_status", "description",
    "created_at",
]


def export_filename(name: str, today: date = None) -> str:
    return f"{name}_{(today or date.today()).isoformat()}.csv"


def to_csv(headers: List[str], rows: List[List[Any]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return output.getvalue()


def template_csv(import_type: str) -> str:
    template = TEMPLATES.get(import_type)
    if not template:
        raise CSVImportError(f"Unknown import type '{import_type}'")
    return to_csv(template["headers"], template["example"])


def parse_csv(text: str, import_type: str) -> List[Tuple[int, Dict[str, str]]]:
    """
    Parse an uploaded file into (row_number, {column: value}) pairs.

    Headers are lower-cased and trimmed. Row numbers match a spreadsheet
    view of the file: the header is row 1. Blank lines are skipped.
    """
    if import_type not in TEMPLATES:
        raise CSVImportError(f"Unknown import type '{import_type}'")

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    lines = [(i, row) for i, row in enumerate(reader, start=1) if any(cell.strip() for cell in row)]
    if not lines:
        raise CSVImportError("The file is empty")

    _, header_row = lines[0]
    headers = [h.strip().lower() for h in header_row]
    missing = [h for h in TEMPLATES[import_type]["headers"] if h not in headers]
    if missing:
        raise CSVImportError(f"Missing required columns: {', '.join(missing)}", missing_columns=missing)

    data_lines = lines[1:]
    if len(data_lines) > settings.MAX_IMPORT_ROWS:
        raise CSVImportError(f"Too many rows: the limit is {settings.MAX_IMPORT_ROWS}")

    parsed = []
    for line_number, row in data_lines:
        values = {h: (row[idx].strip() if idx < len(row) else "") for idx, h in enumerate(headers)}
        parsed.append((line_number, values))
    return parsed


def _result(row_number: int, data: Dict[str, str], status: str, message: str = None) -> Dict[str, Any]:
    return {"row_number": row_number, "data": data, "status": status, "message": message}


def _summary(import_type: str, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    statuses = [r["status"] for r in rows]
    return {
        "import_type": import_type,
        "total_rows": len(rows),
        "valid": statuses.count(VALID),
        "duplicates": statuses.count(DUPLICATE),
        "warnings": statuses.count(WARNING),
        "errors": statuses.count(ERROR),
        "rows": rows,
    }


class ImportExportService:
    """CSV import and export"""

    # ==================== PERMISSIONS ====================

    def check_can_import(self, context: AuthContext, import_type: str) -> None:
        if context.roles.is_system_admin:
            return
        if import_type == "students" and context.roles.is_avd:
            return
        raise AuthorizationError(f"Not authorized to import {import_type}")

    # ==================== VALIDATION ====================

    async def _department_codes(self, db: AsyncSession, scope: UserScope) -> Dict[str, str]:
        query = scope.filter(select(Department.code, Department.id), Department.id)
        return {code.lower(): dept_id for code, dept_id in (await db.execute(query)).all()}

    async def _college_codes(self, db: AsyncSession) -> Dict[str, str]:
        result = await db.execute(select(College.code, College.id))
        return {code.lower(): college_id for code, college_id in result.all()}

    async def _validate_students(self, db: AsyncSession, context: AuthContext, rows) -> List[Dict[str, Any]]:
        existing = {
            sid.lower(): dept_id
            for sid, dept_id in (await db.execute(select(Student.student_id, Student.department_id))).all()
        }
        departments = await self._department_codes(db, context.scope)
        programs = [p.value for p in ProgramType]
        department_required = context.roles.is_avd and not context.roles.is_system_admin
        seen = set()
        results = []

        for row_number, data in rows:
            student_id = data.get("student_id", "")
            full_name = data.get("full_name", "")
            dept_code = data.get("department_code", "")
            program = data.get("program", "")

            if not student_id or not full_name:
                results.append(_result(row_number, data, ERROR, "Student ID and Full Name are required"))
                continue
            if student_id.lower() in seen:
                results.append(_result(row_number, data, ERROR, "Duplicate student ID in file"))
                continue
            seen.add(student_id.lower())

            if department_required and not dept_code:
                results.append(_result(row_number, data, ERROR, "Department code is required for AVD imports"))
            elif dept_code and dept_code.lower() not in departments:
                results.append(_result(row_number, data, WARNING, f'Department "{dept_code}" not found'))
            elif program and program not in programs:
                results.append(_result(
                    row_number, data, WARNING, f'Invalid program "{program}". Use BSc, MSc, or PhD'
                ))
            elif student_id.lower() in existing and not context.scope.can_see_department(existing[student_id.lower()]):
                results.append(_result(row_number, data, ERROR, "Student is registered outside your departments"))
            elif student_id.lower() in existing:
                results.append(_result(row_number, data, DUPLICATE, "Student already exists (will be updated)"))
            else:
                results.append(_result(row_number, data, VALID))
        return results

    async def _validate_departments(self, db: AsyncSession, rows) -> List[Dict[str, Any]]:
        existing = {c.lower() for c in (await db.execute(select(Department.code))).scalars().all()}
        colleges = await self._college_codes(db)
        seen = set()
        results = []

        for row_number, data in rows:
            code = data.get("code", "")
            college_code = data.get("college_code", "")
            if not code or not data.get("name"):
                results.append(_result(row_number, data, ERROR, "Code and Name are required"))
                continue
            if code.lower() in seen:
                results.append(_result(row_number, data, ERROR, "Duplicate department code in file"))
                continue
            seen.add(code.lower())

            if college_code and college_code.lower() not in colleges:
                results.append(_result(row_number, data, WARNING, f'College "{college_code}" not found'))
            elif code.lower() in existing:
                results.append(_result(row_number, data, DUPLICATE, "Department already exists (will be updated)"))
            else:
                results.append(_result(row_number, data, VALID))
        return results

    async def _validate_colleges(self, db: AsyncSession, rows) -> List[Dict[str, Any]]:
        existing = {c.lower() for c in (await db.execute(select(College.code))).scalars().all()}
        seen = set()
        results = []

        for row_number, data in rows:
            code = data.get("code", "")
            if not code or not data.get("name"):
                results.append(_result(row_number, data, ERROR, "Code and Name are required"))
                continue
            if code.lower() in seen:
                results.append(_result(row_number, data, ERROR, "Duplicate college code in file"))
                continue
            seen.add(code.lower())

            if code.lower() in existing:
                results.append(_result(row_number, data, DUPLICATE, "College already exists (will be updated)"))
            else:
                results.append(_result(row_number, data, VALID))
        return results

    async def validate(self, db: AsyncSession, context: AuthContext, import_type: str, text: str) -> Dict[str, Any]:
        """Dry run: classify every row, write nothing"""
        self.check_can_import(context, import_type)
        rows = parse_csv(text, import_type)

        if import_type == "students":
            results = await self._validate_students(db, context, rows)
        elif import_type == "departments":
            results = await self._validate_departments(db, rows)
        else:
            results = await self._validate_colleges(db, rows)
        return _summary(import_type, results)

    # ==================== COMMIT ====================

    async def commit(self, db: AsyncSession, context: AuthContext, import_type: str, text: str) -> Dict[str, Any]:
        validation = await self.validate(db, context, import_type, text)
        if validation["errors"]:
            raise CSVImportError(f"Import refused: {validation['errors']} row(s) have errors")

        rows = [r for r in validation["rows"] if r["status"] in (VALID, DUPLICATE)]
        created = updated = 0

        try:
            if import_type == "students":
                departments = await self._department_codes(db, context.scope)
                for r in rows:
                    created, updated = await self._upsert_student(db, r, departments, created, updated)
            elif import_type == "departments":
                colleges = await self._college_codes(db)
                for r in rows:
                    created, updated = await self._upsert_department(db, r, colleges, created, updated)
            else:
                for r in rows:
                    created, updated = await self._upsert_college(db, r, created, updated)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.log_error_with_context(e, "import_commit", import_type=import_type)
            raise

        logger.info(f"Imported {import_type}: {created} created, {updated} updated by {context.user_id}")
        return {
            "import_type": import_type,
            "created": created,
            "updated": updated,
            "skipped": validation["warnings"],
            "errors": 0,
            "rows": validation["rows"],
        }

    async def _upsert_student(self, db, row, departments, created, updated):
        data = row["data"]
        dept_code = data.get("department_code", "").lower()
        values = {
            "full_name": data["full_name"],
            "program": ProgramType(data["program"]) if data.get("program") else ProgramType.BSC,
        }
        if dept_code:
            values["department_id"] = departments[dept_code]

        if row["status"] == DUPLICATE:
            result = await db.execute(
                select(Student).where(func.lower(Student.student_id) == data["student_id"].lower())
            )
            student = result.scalars().first()
            if student:
                for field, value in values.items():
                    setattr(student, field, value)
                return created, updated + 1

        db.add(Student(student_id=data["student_id"], **values))
        return created + 1, updated

    async def _upsert_department(self, db, row, colleges, created, updated):
        data = row["data"]
        college_code = data.get("college_code", "").lower()
        values = {"name": data["name"]}
        if college_code:
            values["college_id"] = colleges[college_code]

        if row["status"] == DUPLICATE:
            result = await db.execute(select(Department).where(func.lower(Department.code) == data["code"].lower()))
            department = result.scalars().first()
            if department:
                for field, value in values.items():
                    setattr(department, field, value)
                return created, updated + 1

        db.add(Department(code=data["code"].upper(), **values))
        return created + 1, updated

    async def _upsert_college(self, db, row, created, updated):
        data = row["data"]
        if row["status"] == DUPLICATE:
            result = await db.execute(select(College).where(func.lower(College.code) == data["code"].lower()))
            college = result.scalars().first()
            if college:
                college.name = data["name"]
                return created, updated + 1

        db.add(College(code=data["code"].upper(), name=data["name"]))
        return created + 1, updated

    # ==================== EXPORT ====================

    async def export_violations(self, db: AsyncSession, scope: UserScope) -> str:
        query = scoped_violations(scope).order_by(Violation.created_at.desc())
        violations = (await db.execute(query)).scalars().all()

        rows = []
        for v in violations:
            student = v.student
            department = student.department if student else None
            rows.append([
                student.student_id if student else None,
                student.full_name if student else None,
                department.name if department else None,
                student.program.value if student and student.program else None,
                v.incident_date.isoformat() if v.incident_date else None,
                v.course_name,
                v.course_code,
                v.exam_type,
                v.violation_type,
                v.invigilator,
                v.dac_decision,
                v.dac_decision_date.isoformat() if v.dac_decision_date else None,
                v.cmc_decision,
                v.cmc_decision_date.isoformat() if v.cmc_decision_date else None,
                v.workflow_status.value if v.workflow_status else None,
                v.description,
                v.created_at.isoformat() if v.created_at else None,
            ])
        return to_csv(VIOLATION_EXPORT_HEADERS, rows)

    async def export_students(self, db: AsyncSession, scope: UserScope) -> str:
        query = scope.filter(select(Student), Student.department_id).order_by(Student.full_name)
        students = (await db.execute(query)).scalars().all()
        rows = [
            [
                s.student_id,
                s.full_name,
                s.department.name if s.department else None,
                s.department.code if s.department else None,
                s.program.value if s.program else None,
            ]
            for s in students
        ]
        return to_csv(["student_id", "full_name", "department", "department_code", "program"], rows)

    async def export_departments(self, db: AsyncSession, scope: UserScope) -> str:
        query = scope.filter(select(Department), Department.id).order_by(Department.name)
        departments = (await db.execute(query)).scalars().all()
        rows = [
            [d.code, d.name, d.college.code if d.college else None, d.college.name if d.college else None]
            for d in departments
        ]
        return to_csv(["code", "name", "college_code", "college"], rows)

    async def export_colleges(self, db: AsyncSession) -> str:
        colleges = (await db.execute(select(College).order_by(College.name))).scalars().all()
        return to_csv(["code", "name"], [[c.code, c.name] for c in colleges])


# Singleton instance
import_export_service = ImportExportService()
