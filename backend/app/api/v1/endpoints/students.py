"""
Student endpoints: registration and approval, profile, enrollment, and
the per-student views of grades, attendance, fees, results, notifications
and timetable.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request, UploadFile, File, Form
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, delete, or_
from sqlalchemy.orm import selectinload
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.core.types import generate_registration_id
from app.models.course import Enrollment
from app.models.department import Department
from app.models.student import Student, RegistrationStatus
from app.models.student_document import StudentDocument
from app.modules.auth import (
    Principal,
    require_admin,
    require_faculty,
    require_student,
    ensure_self_or_staff,
    ensure_self_or_admin,
)
from app.schemas.attendance import StudentAttendanceOverview
from app.schemas.common import MessageResponse
from app.schemas.fee import FeeListResponse, FeePaymentResponse, PayFeeRequest, PaymentResult
from app.schemas.grade import StudentGradesResponse
from app.schemas.notification import NotificationResponse
from app.schemas.result import ResultListResponse
from app.schemas.student import (
    StudentRegister,
    StudentCreate,
    StudentUpdate,
    StudentProfileUpdate,
    StudentResponse,
    StudentStatsOverview,
    RegistrationResponse,
    RejectRequest,
    EnrollmentResponse,
    StudentDocumentResponse,
    StudentCoursesResponse,
)
from app.schemas.timetable import TimetableResponse
from app.services import enrollment, student_records
from app.services.fee_ledger import settle_payment
from app.services.file_storage import UploadStore
from app.services.registry import Outbound, get_outbound, get_upload_store

router = APIRouter()

DOCUMENT_EXTENSIONS = ["pdf", "jpg", "jpeg", "png"]


async def _ensure_email_free(db: AsyncSession, email: str) -> None:
    result = await db.execute(select(Student.id).where(Student.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Student with this email already exists"
        )


def _new_student(data: StudentRegister, registration_status: RegistrationStatus) -> Student:
    fields = data.model_dump(exclude={"password", "registration_status"})
    return Student(
        **fields,
        registration_id=generate_registration_id(),
        password_hash=get_password_hash(data.password),
        registration_status=registration_status,
    )


# ==================== Registration & administration ====================

@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED)
async def register_student(
    request: Request,
    data: StudentRegister,
    db: AsyncSession = Depends(get_db),
    outbound: Outbound = Depends(get_outbound)
):
    """Public self-registration; the account waits for admin approval"""
    await _ensure_email_free(db, data.email)

    student = _new_student(data, RegistrationStatus.PENDING)
    db.add(student)
    await db.commit()

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=student.email,
        client_ip=request.client.host if request.client else "unknown",
        registration_id=student.registration_id
    )
    outbound.email("send_registration_confirmation", student.email, student.full_name, student.registration_id)

    student = await get_or_404(db, Student, student.id, "Student")
    return {
        "message": "Registration successful. Please wait for admin approval.",
        "registration_id": student.registration_id,
        "student": student,
    }


@router.get("", response_model=List[StudentResponse])
async def list_students(
    status_filter: Optional[RegistrationStatus] = Query(None, alias="status"),
    department_id: Optional[str] = None,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_faculty)
):
    """List students with optional filters, newest first"""
    query = select(Student)
    if status_filter:
        query = query.where(Student.registration_status == status_filter)
    if department_id:
        query = query.where(Student.department_id == department_id)
    if year is not None:
        query = query.where(Student.year == year)
    if semester is not None:
        query = query.where(Student.semester == semester)
    if search:
        term = f"%{search}%"
        query = query.where(or_(
            Student.full_name.ilike(term),
            Student.email.ilike(term),
            Student.registration_id.ilike(term)
        ))

    result = await db.execute(query.order_by(Student.created_at.desc()))
    return result.scalars().all()


@router.get("/status/pending", response_model=List[StudentResponse])
async def list_pending_students(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    result = await db.execute(
        select(Student)
        .where(Student.registration_status == RegistrationStatus.PENDING)
        .order_by(Student.created_at.asc())
    )
    return result.scalars().all()


@router.get("/stats/overview", response_model=StudentStatsOverview)
async def student_stats(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    """Counts by registration status, department and year"""
    by_status = dict((await db.execute(
        select(Student.registration_status, func.count(Student.id)).group_by(Student.registration_status)
    )).all())

    by_department = (await db.execute(
        select(Department.name, func.count(Student.id))
        .select_from(Student)
        .join(Department, Student.department_id == Department.id, isouter=True)
        .group_by(Department.name)
    )).all()

    by_year = (await db.execute(
        select(Student.year, func.count(Student.id)).group_by(Student.year)
    )).all()

    return {
        "total": sum(by_status.values()),
        **{s.value.lower(): by_status.get(s, 0) for s in RegistrationStatus},
        "departments": {name or "Unassigned": count for name, count in by_department},
        "years": {str(year): count for year, count in by_year},
    }


@router.get("/profile/{student_id}", response_model=StudentResponse)
async def get_profile(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    return await get_or_404(db, Student, student_id, "Student")


@router.put("/profile/{student_id}", response_model=StudentResponse)
async def update_profile(
    student_id: str,
    data: StudentProfileUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Self-service profile edit; academic fields stay with the admin"""
    ensure_self_or_admin(principal, student_id)
    student = await get_or_404(db, Student, student_id, "Student")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(student, field, value)
    await db.commit()

    return await get_or_404(db, Student, student_id, "Student")


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    return await get_or_404(db, Student, student_id, "Student")


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    data: StudentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    """Admin-created student"""
    await _ensure_email_free(db, data.email)

    student = _new_student(data, data.registration_status)
    db.add(student)
    await db.commit()

    logger.info(f"[Students] {principal.email} created {student.registration_id}")
    return await get_or_404(db, Student, student.id, "Student")


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    data: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    student = await get_or_404(db, Student, student_id, "Student")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(student, field, value)
    await db.commit()

    return await get_or_404(db, Student, student_id, "Student")


@router.delete("/{student_id}", response_model=MessageResponse)
async def delete_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    student = await get_or_404(db, Student, student_id, "Student", selectinload(Student.documents))

    await db.execute(delete(Enrollment).where(Enrollment.student_id == student.id))
    await db.delete(student)
    await db.commit()

    logger.info(f"[Students] {principal.email} deleted {student.registration_id}")
    return {"message": "Student deleted successfully"}


@router.patch("/{student_id}/approve", response_model=StudentResponse)
async def approve_student(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
    outbound: Outbound = Depends(get_outbound)
):
    student = await get_or_404(db, Student, student_id, "Student")
    student.registration_status = RegistrationStatus.APPROVED
    await db.commit()

    logger.info(f"[Students] {student.registration_id} approved by {principal.email}")
    outbound.email("send_approval", student.email, student.full_name, student.registration_id)
    return await get_or_404(db, Student, student_id, "Student")


@router.patch("/{student_id}/reject", response_model=StudentResponse)
async def reject_student(
    student_id: str,
    data: Optional[RejectRequest] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin),
    outbound: Outbound = Depends(get_outbound)
):
    student = await get_or_404(db, Student, student_id, "Student")
    student.registration_status = RegistrationStatus.REJECTED
    await db.commit()

    reason = data.reason if data else None
    logger.info(f"[Students] {student.registration_id} rejected by {principal.email}")
    outbound.email("send_rejection", student.email, student.full_name, reason)
    return await get_or_404(db, Student, student_id, "Student")


# ==================== Enrollment ====================

@router.post("/{student_id}/enroll/{course_id}", response_model=EnrollmentResponse)
async def enroll_in_course(
    student_id: str,
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_admin(principal, student_id)
    count = await enrollment.enroll(db, student_id, course_id)
    await db.commit()
    return {
        "message": "Enrolled successfully",
        "student_id": student_id,
        "course_id": course_id,
        "enrolled_count": count,
    }


@router.post("/{student_id}/unenroll/{course_id}", response_model=EnrollmentResponse)
async def unenroll_from_course(
    student_id: str,
    course_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_admin(principal, student_id)
    count = await enrollment.unenroll(db, student_id, course_id)
    await db.commit()
    return {
        "message": "Unenrolled successfully",
        "student_id": student_id,
        "course_id": course_id,
        "enrolled_count": count,
    }


# ==================== Per-student views ====================

@router.get("/{student_id}/courses", response_model=StudentCoursesResponse)
async def get_student_courses(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    """Enrolled courses, defaulting to the student's current year and semester"""
    ensure_self_or_staff(principal, student_id)
    student = await student_records.load_student(db, student_id)
    courses = await student_records.enrolled_courses(
        db,
        student,
        year if year is not None else student.year,
        semester if semester is not None else student.semester,
    )
    return {"student_id": student_id, "courses": courses}


@router.get("/{student_id}/grades", response_model=StudentGradesResponse)
async def get_student_grades(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return await student_records.grades_with_summary(db, student_id, year, semester)


@router.get("/{student_id}/attendance", response_model=StudentAttendanceOverview)
async def get_student_attendance(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return await student_records.attendance_overview(db, student_id, year, semester)


@router.post("/pay-fee", response_model=PaymentResult)
async def pay_fee(
    data: PayFeeRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    outbound: Outbound = Depends(get_outbound)
):
    """Same ledger path as /fees/student/pay-fee"""
    return await settle_payment(
        db, principal, outbound, data.fee_id, data.amount, data.payment_mode, student_id=data.student_id
    )


@router.get("/{student_id}/fees", response_model=FeeListResponse)
async def get_student_fees(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    return {"data": await student_records.fees_for(db, student_id, year, semester)}


@router.get("/{student_id}/fee-payments", response_model=List[FeePaymentResponse])
async def get_student_fee_payments(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    return await student_records.fee_payments_for(db, student_id)


@router.get("/{student_id}/notifications", response_model=List[NotificationResponse])
async def get_student_notifications(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    return await student_records.notifications_for(db, student_id, year, semester)


@router.get("/{student_id}/results", response_model=ResultListResponse)
async def get_student_results(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    return {"data": await student_records.results_for(db, student_id, year, semester)}


@router.get("/{student_id}/timetable", response_model=List[TimetableResponse])
async def get_student_timetable(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    student = await student_records.load_student(db, student_id)
    return await student_records.timetable_for(db, student, year, semester)


# ==================== Documents ====================

@router.post("/{student_id}/documents", response_model=StudentDocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    student_id: str,
    document_type: str = Form(..., max_length=50),
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    uploads: UploadStore = Depends(get_upload_store)
):
    """Upload a registration document (marksheet, ID proof, ...)"""
    ensure_self_or_admin(principal, student_id)
    await get_or_404(db, Student, student_id, "Student")

    stored = await uploads.save(file, f"students/{student_id}", DOCUMENT_EXTENSIONS)
    document = StudentDocument(
        student_id=student_id,
        document_type=document_type,
        file_name=stored.file_name,
        file_path=stored.relative_path,
        file_size=stored.size,
    )
    db.add(document)
    await db.commit()
    await db.refresh(document)

    logger.info(f"[Students] Document {document_type} uploaded for {student_id}")
    return document


@router.get("/{student_id}/documents", response_model=List[StudentDocumentResponse])
async def list_documents(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    result = await db.execute(
        select(StudentDocument)
        .where(StudentDocument.student_id == student_id)
        .order_by(StudentDocument.uploaded_at.desc())
    )
    return result.scalars().all()
