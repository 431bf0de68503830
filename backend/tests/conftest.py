"""
UniTrack - Test Configuration and Fixtures
"""
import os
import tempfile
from datetime import date
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
_scratch = tempfile.mkdtemp(prefix="unitrack-tests-")
os.environ['TESTING'] = 'true'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['SMTP_USER'] = ''
os.environ['SMTP_PASSWORD'] = ''
os.environ['RAZORPAY_KEY_ID'] = 'rzp_test_key'
os.environ['RAZORPAY_KEY_SECRET'] = 'rzp_test_secret'
os.environ['UPLOAD_PATH'] = os.path.join(_scratch, 'uploads')
os.environ['REPORTS_PATH'] = os.path.join(_scratch, 'reports')
os.environ['LOG_FILE'] = os.path.join(_scratch, 'logs', 'app.log')

from app.main import app
from app.core.database import Base, get_db
from app.core.security import get_password_hash, create_access_token
from app.models import (
    Admin,
    Course,
    Department,
    Enrollment,
    Faculty,
    Designation,
    FacultyStatus,
    Student,
    RegistrationStatus,
    Gender,
)

fake = Faker()

TEST_PASSWORD = 'password123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


def token_for(record, role: str) -> str:
    return create_access_token({'sub': str(record.id), 'role': role, 'email': record.email})


def bearer(record, role: str) -> dict:
    return {'Authorization': f'Bearer {token_for(record, role)}'}


def make_student(**overrides) -> Student:
    """Unsaved Student with valid profile fields"""
    fields = dict(
        registration_id=f"REG{fake.unique.random_number(digits=10)}",
        email=f"{fake.unique.user_name()}@unitrack.edu",
        password_hash=get_password_hash(TEST_PASSWORD),
        full_name=fake.name(),
        phone_number='9876543210',
        date_of_birth=date(2003, 5, 17),
        gender=Gender.FEMALE,
        address=fake.street_address(),
        city='Pune',
        state='Maharashtra',
        pincode='411001',
        year=2,
        semester=3,
        registration_status=RegistrationStatus.APPROVED,
    )
    fields.update(overrides)
    return Student(**fields)


def make_faculty(**overrides) -> Faculty:
    fields = dict(
        name=fake.name(),
        email=f"{fake.unique.user_name()}@unitrack.edu",
        faculty_code=f"FAC{fake.unique.random_number(digits=5)}",
        department='Computer Science',
        designation=Designation.ASSISTANT_PROFESSOR,
        joining_date=date(2018, 7, 1),
        password_hash=get_password_hash(TEST_PASSWORD),
        status=FacultyStatus.ACTIVE,
    )
    fields.update(overrides)
    return Faculty(**fields)


def make_course(**overrides) -> Course:
    fields = dict(
        course_code=f"CS{fake.unique.random_number(digits=4)}",
        course_name='Data Structures',
        credits=4,
        year=2,
        semester=3,
        max_students=30,
    )
    fields.update(overrides)
    return Course(**fields)


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
    # Anything queued by the requests is run here so no job leaks into the next test
    await app.state.services.dispatcher.drain()


@pytest.fixture
def services():
    return app.state.services


@pytest.fixture
async def department(db_session: AsyncSession) -> Department:
    dept = Department(name='Computer Science', code='CSE')
    db_session.add(dept)
    await db_session.commit()
    return dept


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> Admin:
    """Create an admin test user"""
    admin = Admin(
        username='registrar',
        email='registrar@unitrack.edu',
        password_hash=get_password_hash(TEST_PASSWORD),
        full_name='Campus Registrar',
    )
    db_session.add(admin)
    await db_session.commit()
    return admin


@pytest.fixture
async def faculty_user(db_session: AsyncSession) -> Faculty:
    faculty = make_faculty()
    db_session.add(faculty)
    await db_session.commit()
    return faculty


@pytest.fixture
async def other_faculty(db_session: AsyncSession) -> Faculty:
    faculty = make_faculty()
    db_session.add(faculty)
    await db_session.commit()
    return faculty


@pytest.fixture
async def student_user(db_session: AsyncSession, department: Department) -> Student:
    """Approved student in year 2, semester 3"""
    student = make_student(department_id=department.id)
    db_session.add(student)
    await db_session.commit()
    return student


@pytest.fixture
async def other_student(db_session: AsyncSession, department: Department) -> Student:
    student = make_student(department_id=department.id)
    db_session.add(student)
    await db_session.commit()
    return student


@pytest.fixture
async def course(db_session: AsyncSession, department: Department, faculty_user: Faculty) -> Course:
    """Course taught by faculty_user"""
    course = make_course(department_id=department.id, faculty_id=faculty_user.id)
    db_session.add(course)
    await db_session.commit()
    return course


@pytest.fixture
async def enrolled_student(db_session: AsyncSession, student_user: Student, course: Course) -> Student:
    db_session.add(Enrollment(student_id=student_user.id, course_id=course.id))
    await db_session.commit()
    return student_user


@pytest.fixture
def admin_headers(admin_user: Admin) -> dict:
    return bearer(admin_user, 'admin')


@pytest.fixture
def faculty_headers(faculty_user: Faculty) -> dict:
    return bearer(faculty_user, 'faculty')


@pytest.fixture
def other_faculty_headers(other_faculty: Faculty) -> dict:
    return bearer(other_faculty, 'faculty')


@pytest.fixture
def student_headers(student_user: Student) -> dict:
    return bearer(student_user, 'student')


@pytest.fixture
def other_student_headers(other_student: Student) -> dict:
    return bearer(other_student, 'student')
