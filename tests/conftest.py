"""
ExamCase - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Callable, Optional
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'test'
os.environ['DEBUG'] = 'false'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_examcase.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_FILE'] = ''

from examcase.main import app
from examcase.core.database import Base, get_db
from examcase.core.security import get_password_hash, create_token_pair
from examcase.models import (
    AcademicSetting,
    AppRole,
    College,
    Department,
    ProgramType,
    Student,
    User,
    UserRoleAssignment,
    Violation,
)

fake = Faker()

TEST_PASSWORD = 'testpassword123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test_examcase.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


# ============================================
# Reference data
# ============================================

@pytest.fixture
async def college(db_session: AsyncSession) -> College:
    college = College(code='CEE', name='College of Electrical Engineering')
    db_session.add(college)
    await db_session.commit()
    await db_session.refresh(college)
    return college


@pytest.fixture
async def other_college(db_session: AsyncSession) -> College:
    college = College(code='CNS', name='College of Natural Sciences')
    db_session.add(college)
    await db_session.commit()
    await db_session.refresh(college)
    return college


@pytest.fixture
async def department(db_session: AsyncSession, college: College) -> Department:
    department = Department(code='CSE', name='Computer Science and Engineering', college_id=college.id)
    db_session.add(department)
    await db_session.commit()
    await db_session.refresh(department)
    return department


@pytest.fixture
async def sibling_department(db_session: AsyncSession, college: College) -> Department:
    """Same college, different department"""
    department = Department(code='ECE', name='Electronics and Communication', college_id=college.id)
    db_session.add(department)
    await db_session.commit()
    await db_session.refresh(department)
    return department


@pytest.fixture
async def other_department(db_session: AsyncSession, other_college: College) -> Department:
    department = Department(code='MATH', name='Mathematics', college_id=other_college.id)
    db_session.add(department)
    await db_session.commit()
    await db_session.refresh(department)
    return department


@pytest.fixture
def make_student(db_session: AsyncSession) -> Callable:
    async def _make(department: Department, student_id: Optional[str] = None,
                    program: ProgramType = ProgramType.BSC) -> Student:
        student = Student(
            student_id=student_id or f"UGR/{fake.unique.random_int(10000, 99999)}/16",
            full_name=fake.name(),
            program=program,
            department_id=department.id,
        )
        db_session.add(student)
        await db_session.commit()
        await db_session.refresh(student)
        return student
    return _make


@pytest.fixture
async def student(make_student, department: Department) -> Student:
    return await make_student(department)


@pytest.fixture
def make_violation(db_session: AsyncSession) -> Callable:
    async def _make(student: Student, **fields) -> Violation:
        values = dict(
            student_id=student.id,
            incident_date=fake.date_between(start_date='-60d', end_date='-1d'),
            course_name='Data Structures',
            course_code='CSE2101',
            exam_type='Final Exam',
            violation_type='Copying from Another Student',
            invigilator=fake.name(),
        )
        values.update(fields)
        violation = Violation(**values)
        db_session.add(violation)
        await db_session.commit()
        await db_session.refresh(violation)
        return violation
    return _make


@pytest.fixture
async def active_period(db_session: AsyncSession) -> AcademicSetting:
    setting = AcademicSetting(academic_year='2025/2026', semester='1', is_active=True)
    db_session.add(setting)
    await db_session.commit()
    await db_session.refresh(setting)
    return setting


# ============================================
# Users
# ============================================

@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable:
    async def _make(role: Optional[AppRole] = None,
                    department: Optional[Department] = None,
                    college: Optional[College] = None,
                    must_change_password: bool = False) -> User:
        user = User(
            email=fake.unique.email(),
            full_name=fake.name(),
            hashed_password=get_password_hash(TEST_PASSWORD),
            department_id=department.id if department else None,
            is_active=True,
            must_change_password=must_change_password,
        )
        if role is not None:
            college_id = college.id if college else (department.college_id if department else None)
            user.roles.append(UserRoleAssignment(
                role=role,
                department_id=department.id if department else None,
                college_id=college_id,
            ))
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user
    return _make


@pytest.fixture
async def deputy(make_user, department) -> User:
    return await make_user(AppRole.DEPUTY_DEPARTMENT_HEAD, department=department)


@pytest.fixture
async def head(make_user, department) -> User:
    return await make_user(AppRole.DEPARTMENT_HEAD, department=department)


@pytest.fixture
async def avd(make_user, college) -> User:
    return await make_user(AppRole.ACADEMIC_VICE_DEAN, college=college)


@pytest.fixture
async def dean(make_user, college) -> User:
    return await make_user(AppRole.COLLEGE_DEAN, college=college)


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(AppRole.SYSTEM_ADMIN)


def auth_headers(user: User) -> dict:
    """Bearer header for a user"""
    tokens = create_token_pair(str(user.id), user.email)
    return {'Authorization': f'Bearer {tokens["access_token"]}'}


@pytest.fixture
def headers_for() -> Callable[[User], dict]:
    return auth_headers
