"""
Academic arithmetic: letter grades, GPA/CGPA and attendance percentage.

All functions are pure and operate on already-fetched rows.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple

from app.models.attendance import AttendanceStatus
from app.models.grade import GradeStatus

# (minimum percentage, letter, grade points), highest first
GRADE_SCALE: List[Tuple[float, str, float]] = [
    (95, "A+", 4.0),
    (90, "A", 4.0),
    (85, "A-", 3.7),
    (80, "B+", 3.3),
    (75, "B", 3.0),
    (70, "B-", 2.7),
    (65, "C+", 2.3),
    (60, "C", 2.0),
    (55, "C-", 1.7),
    (50, "D", 1.0),
]
FAILING_GRADE = ("F", 0.0)

LETTER_POINTS = {letter: points for _, letter, points in GRADE_SCALE}
LETTER_POINTS[FAILING_GRADE[0]] = FAILING_GRADE[1]

# Statuses that count towards attendance
ATTENDED_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.EXCUSED)

PASS_PERCENTAGE = 40.0


def round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage_of(score: float, max_score: float) -> float:
    if not max_score:
        return 0.0
    return score / max_score * 100


def grade_for_percentage(percentage: float) -> Tuple[str, float]:
    """Letter grade and grade points for a percentage"""
    for minimum, letter, points in GRADE_SCALE:
        if percentage >= minimum:
            return letter, points
    return FAILING_GRADE


def grade_for_score(score: float, max_score: float) -> Tuple[str, float]:
    return grade_for_percentage(percentage_of(score, max_score))


def points_for_letter(letter: Optional[str]) -> float:
    return LETTER_POINTS.get((letter or "").strip().upper(), 0.0)


def weighted_gpa(entries: Iterable[Tuple[float, int]]) -> Tuple[float, int]:
    """
    GPA over (grade_points, credits) pairs.

    Returns (gpa, total_credits); gpa is 0 when there are no credits.
    """
    total_points = 0.0
    total_credits = 0
    for points, credits in entries:
        credits = credits or 0
        total_points += (points or 0.0) * credits
        total_credits += credits
    if total_credits == 0:
        return 0.0, 0
    return round_half_up(total_points / total_credits), total_credits


def calculate_gpa(grades: Iterable) -> Tuple[float, int]:
    """GPA over finalized Grade rows, weighted by their course credits"""
    return weighted_gpa(
        (grade.grade_points, grade.course.credits if grade.course else 0)
        for grade in grades
        if grade.status == GradeStatus.FINALIZED
    )


def attendance_percentage(statuses: Iterable) -> float:
    """round((present + excused) / total * 100, 2); 0 when there are no records"""
    statuses = list(statuses)
    if not statuses:
        return 0.0
    attended = sum(1 for s in statuses if s in ATTENDED_STATUSES)
    return round_half_up(attended / len(statuses) * 100)


def attendance_counts(statuses: Iterable) -> dict:
    counts = {status.value.lower(): 0 for status in AttendanceStatus}
    for s in statuses:
        counts[AttendanceStatus(s).value.lower()] += 1
    return counts
