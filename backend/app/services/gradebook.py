"""
Gradebook operations shared by /grades and /faculty-operations.

Posting a grade requires course ownership and enrollment; letter grade and
points are derived from score / max_score; status only moves forward and
finalized grades are immutable.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_or_404
from app.core.exceptions import DuplicateRecordError, InvalidTransitionError, UniTrackError, ValidationError
from app.core.logging_config import logger
from app.models.course import Course
from app.models.grade import Grade, GradeStatus, GRADE_STATUS_ORDER
from app.models.student import Student
from app.modules.auth import Principal, ensure_course_owner
from app.schemas.grade import GradeCreate, GradeUpdate
from app.services.enrollment import is_enrolled
from app.services.grading import calculate_gpa, grade_for_score, percentage_of, round_half_up


def apply_score(grade: Grade) -> None:
    grade.grade, grade.grade_points = grade_for_score(grade.score, grade.max_score)


DUPLICATE_ASSESSMENT = "Grade already exists for this assessment"


async def _find_existing(
    db: AsyncSession,
    student_id: str,
    course_id: str,
    assessment_type,
    assessment_name: str,
    exclude_id: Optional[str] = None,
) -> Optional[str]:
    """Id of a grade already holding this student, course and assessment"""
    query = select(Grade.id).where(
        Grade.student_id == str(student_id),
        Grade.course_id == str(course_id),
        Grade.assessment_type == assessment_type,
        Grade.assessment_name == assessment_name,
    )
    if exclude_id is not None:
        query = query.where(Grade.id != str(exclude_id))
    result = await db.execute(query)
    return result.scalars().first()


async def _insert(db: AsyncSession, grade: Grade) -> None:
    """Insert in a savepoint so a lost race leaves the rest of the session intact"""
    try:
        async with db.begin_nested():
            db.add(grade)
    except IntegrityError:
        raise DuplicateRecordError(DUPLICATE_ASSESSMENT)


async def post_grade(db: AsyncSession, principal: Principal, data: GradeCreate) -> Grade:
    """Validate and stage one grade; the caller commits"""
    course = await get_or_404(db, Course, data.course_id, "Course")
    ensure_course_owner(principal, course, "post grades")
    await get_or_404(db, Student, data.student_id, "Student")

    if not await is_enrolled(db, data.student_id, data.course_id):
        raise ValidationError("Student is not enrolled in this course")
    if await _find_existing(db, data.student_id, data.course_id, data.assessment_type, data.assessment_name):
        raise DuplicateRecordError(DUPLICATE_ASSESSMENT)

    grade = Grade(
        **data.model_dump(exclude={"semester", "year"}),
        semester=data.semester or course.semester,
        year=data.year or course.year,
        faculty_id=course.faculty_id,
        graded_by_id=principal.id if principal.is_faculty else None,
    )
    apply_score(grade)
    await _insert(db, grade)

    if grade.status == GradeStatus.FINALIZED:
        await refresh_student_gpa(db, grade.student_id)
    return grade


async def post_grades_bulk(
    db: AsyncSession,
    principal: Principal,
    items: List[GradeCreate],
) -> Tuple[List[Grade], List[Dict[str, str]]]:
    """
    Post each grade independently.

    A failing entry is reported in the error list and does not undo the
    others.
    """
    created: List[Grade] = []
    errors: List[Dict[str, str]] = []
    for item in items:
        try:
            created.append(await post_grade(db, principal, item))
        except UniTrackError as e:
            errors.append({
                "student_id": item.student_id,
                "course_id": item.course_id,
                "assessment_name": item.assessment_name,
                "message": e.message,
            })
    logger.info(f"[Gradebook] Bulk post by {principal.email}: {len(created)} created, {len(errors)} failed")
    return created, errors


def _ensure_mutable(grade: Grade) -> None:
    if grade.status == GradeStatus.FINALIZED:
        raise ValidationError("Finalized grades cannot be modified")


def advance_status(grade: Grade, target: GradeStatus) -> None:
    """Move a grade forward in its draft -> published -> finalized lifecycle"""
    if GRADE_STATUS_ORDER[target] <= GRADE_STATUS_ORDER[grade.status]:
        raise InvalidTransitionError(grade.status.value, target.value)
    grade.status = target


async def update_grade(db: AsyncSession, principal: Principal, grade: Grade, data: GradeUpdate) -> Grade:
    ensure_course_owner(principal, grade.course, "modify grades")
    _ensure_mutable(grade)

    fields = data.model_dump(exclude_unset=True)
    target = fields.pop("status", None)
    new_name = fields.get("assessment_name")
    if new_name is not None and new_name != grade.assessment_name and await _find_existing(
        db, grade.student_id, grade.course_id, grade.assessment_type, new_name, exclude_id=grade.id
    ):
        raise DuplicateRecordError(DUPLICATE_ASSESSMENT)

    for field, value in fields.items():
        setattr(grade, field, value)

    if grade.score > grade.max_score:
        raise ValidationError("Score cannot exceed maximum score", field="score")
    apply_score(grade)

    if target is not None and target != grade.status:
        advance_status(grade, target)
    try:
        await db.flush()
    except IntegrityError:
        raise DuplicateRecordError(DUPLICATE_ASSESSMENT)

    if grade.status == GradeStatus.FINALIZED:
        await refresh_student_gpa(db, grade.student_id)
    return grade


async def set_status(db: AsyncSession, principal: Principal, grade: Grade, target: GradeStatus) -> Grade:
    ensure_course_owner(principal, grade.course, "modify grades")
    advance_status(grade, target)
    await db.flush()
    if target == GradeStatus.FINALIZED:
        await refresh_student_gpa(db, grade.student_id)
    logger.info(f"[Gradebook] Grade {grade.id} -> {target.value} by {principal.email}")
    return grade


async def delete_grade(db: AsyncSession, principal: Principal, grade: Grade) -> None:
    ensure_course_owner(principal, grade.course, "modify grades")
    if grade.status == GradeStatus.FINALIZED:
        raise ValidationError("Finalized grades cannot be deleted")
    await db.delete(grade)
    await db.flush()


async def refresh_student_gpa(db: AsyncSession, student_id: str) -> None:
    """Store the finalized-grade GPA on the student row"""
    student = await db.get(Student, str(student_id))
    if student is None:
        return
    result = await db.execute(
        select(Grade).where(Grade.student_id == str(student_id), Grade.status == GradeStatus.FINALIZED)
    )
    student.gpa, student.total_credits = calculate_gpa(result.scalars().all())


async def course_grades(db: AsyncSession, course_id: str) -> List[Grade]:
    result = await db.execute(
        select(Grade)
        .where(Grade.course_id == str(course_id))
        .order_by(Grade.student_id, Grade.assessment_type, Grade.graded_date.desc())
    )
    return list(result.scalars().all())


def group_by_student(grades: List[Grade]) -> List[dict]:
    groups = defaultdict(list)
    for grade in grades:
        groups[grade.student_id].append(grade)

    rows = []
    for items in groups.values():
        percentages = [percentage_of(g.score, g.max_score) for g in items]
        rows.append({
            "student": items[0].student,
            "grades": items,
            "average_percentage": round_half_up(sum(percentages) / len(percentages)),
        })
    rows.sort(key=lambda r: r["student"].full_name)
    return rows


def course_stats(course_id: str, grades: List[Grade]) -> dict:
    percentages = [percentage_of(g.score, g.max_score) for g in grades]
    distribution: Dict[str, int] = defaultdict(int)
    for g in grades:
        distribution[g.grade] += 1
    status_counts = {s.value: 0 for s in GradeStatus}
    for g in grades:
        status_counts[g.status.value] += 1

    return {
        "course_id": str(course_id),
        "total_grades": len(grades),
        "average_score_percentage": round_half_up(sum(percentages) / len(percentages)) if percentages else 0.0,
        "highest_percentage": round_half_up(max(percentages)) if percentages else 0.0,
        "lowest_percentage": round_half_up(min(percentages)) if percentages else 0.0,
        "grade_distribution": dict(distribution),
        "status_counts": status_counts,
    }
