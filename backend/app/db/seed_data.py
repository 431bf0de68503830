"""
Database Seed Data Module

Creates the first admin account plus a small demo campus so a fresh
install can be logged into straight away.
Run with: python -m app.db.seed_data [--admin-email ...] [--admin-password ...] [--no-demo]
"""
import argparse
import asyncio
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session_local, init_db, close_db
from app.core.security import get_password_hash
from app.models import (
    Admin, Department, Faculty, FacultyStatus, Designation, Course,
    Student, RegistrationStatus, Gender, Enrollment,
)


# ==================== Sample Data Constants ====================

SAMPLE_DEPARTMENTS = [
    {"name": "Computer Science", "code": "CSE", "description": "Computing and software engineering"},
    {"name": "Electronics", "code": "ECE", "description": "Electronics and communication"},
]

SAMPLE_FACULTY = [
    {
        "name": "Dr. Meera Iyer", "email": "meera.iyer@unitrack.edu", "faculty_code": "FAC001",
        "department": "Computer Science", "designation": Designation.PROFESSOR,
        "specialization": "Distributed Systems", "experience": 14,
    },
    {
        "name": "Dr. Arjun Rao", "email": "arjun.rao@unitrack.edu", "faculty_code": "FAC002",
        "department": "Electronics", "designation": Designation.ASSISTANT_PROFESSOR,
        "specialization": "Embedded Systems", "experience": 6,
    },
]

SAMPLE_COURSES = [
    {"course_code": "CS201", "course_name": "Data Structures", "credits": 4, "semester": 3, "year": 2,
     "department": "CSE", "faculty": "FAC001"},
    {"course_code": "CS203", "course_name": "Discrete Mathematics", "credits": 3, "semester": 3, "year": 2,
     "department": "CSE", "faculty": "FAC001"},
    {"course_code": "EC201", "course_name": "Digital Electronics", "credits": 4, "semester": 3, "year": 2,
     "department": "ECE", "faculty": "FAC002"},
]

SAMPLE_STUDENTS = [
    {"registration_id": "REG2024000001", "email": "rahul.sharma@unitrack.edu", "full_name": "Rahul Sharma",
     "gender": Gender.MALE, "department": "CSE"},
    {"registration_id": "REG2024000002", "email": "priya.patel@unitrack.edu", "full_name": "Priya Patel",
     "gender": Gender.FEMALE, "department": "CSE"},
    {"registration_id": "REG2024000003", "email": "sneha.reddy@unitrack.edu", "full_name": "Sneha Reddy",
     "gender": Gender.FEMALE, "department": "ECE"},
]

DEMO_PASSWORD = "password123"


async def seed_admin(db: AsyncSession, email: str, password: str) -> Admin:
    result = await db.execute(select(Admin).where(Admin.email == email))
    admin = result.scalar_one_or_none()
    if admin:
        admin.password_hash = get_password_hash(password)
        print(f"Updated existing admin: {email}")
        return admin

    admin = Admin(
        username=email.split("@")[0],
        email=email,
        full_name="Registrar",
        password_hash=get_password_hash(password),
    )
    db.add(admin)
    print(f"Created admin: {email}")
    return admin


async def seed_demo_campus(db: AsyncSession) -> None:
    """Departments, faculty, courses and approved students; skipped if any department exists"""
    existing = await db.execute(select(Department.id).limit(1))
    if existing.first():
        print("Demo campus already present, skipping")
        return

    departments = {}
    for data in SAMPLE_DEPARTMENTS:
        department = Department(**data)
        db.add(department)
        departments[data["code"]] = department

    faculty = {}
    for data in SAMPLE_FACULTY:
        member = Faculty(
            **data,
            joining_date=date(2015, 7, 1),
            status=FacultyStatus.ACTIVE,
            password_hash=get_password_hash(DEMO_PASSWORD),
        )
        db.add(member)
        faculty[data["faculty_code"]] = member
    await db.flush()

    courses = []
    for data in SAMPLE_COURSES:
        data = dict(data)
        course = Course(
            **{k: v for k, v in data.items() if k not in ("department", "faculty")},
            department_id=departments[data["department"]].id,
            faculty_id=faculty[data["faculty"]].id,
            max_students=60,
        )
        db.add(course)
        courses.append((data["department"], course))

    for data in SAMPLE_STUDENTS:
        data = dict(data)
        department = departments[data.pop("department")]
        student = Student(
            **data,
            password_hash=get_password_hash(DEMO_PASSWORD),
            phone_number="9876543210",
            date_of_birth=date(2004, 1, 15),
            address="Hostel Block A",
            city="Pune",
            state="Maharashtra",
            pincode="411001",
            department_id=department.id,
            year=2,
            semester=3,
            registration_status=RegistrationStatus.APPROVED,
        )
        db.add(student)
        await db.flush()
        for code, course in courses:
            if code == department.code:
                db.add(Enrollment(student_id=student.id, course_id=course.id))

    print(f"Created {len(SAMPLE_DEPARTMENTS)} departments, {len(SAMPLE_FACULTY)} faculty, "
          f"{len(SAMPLE_COURSES)} courses, {len(SAMPLE_STUDENTS)} students")


async def seed(admin_email: str, admin_password: str, demo: bool) -> None:
    await init_db()
    session_local = get_session_local()
    async with session_local() as db:
        await seed_admin(db, admin_email, admin_password)
        if demo:
            await seed_demo_campus(db)
        await db.commit()

    await close_db()

    print("\nLogin credentials:")
    print(f"Admin:   {admin_email} / {admin_password}")
    if demo:
        print(f"Faculty: {SAMPLE_FACULTY[0]['email']} / {DEMO_PASSWORD}")
        print(f"Student: {SAMPLE_STUDENTS[0]['email']} / {DEMO_PASSWORD}")


def main():
    parser = argparse.ArgumentParser(description="Seed the UniTrack database")
    parser.add_argument("--admin-email", default="admin@unitrack.edu")
    parser.add_argument("--admin-password", default="admin123")
    parser.add_argument("--no-demo", action="store_true", help="Only create the admin account")
    args = parser.parse_args()

    asyncio.run(seed(args.admin_email.lower(), args.admin_password, demo=not args.no_demo))


if __name__ == "__main__":
    main()
