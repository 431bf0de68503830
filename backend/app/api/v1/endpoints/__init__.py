# API endpoints
from . import (
    auth,
    students,
    courses,
    faculty,
    faculty_operations,
    grades,
    attendance,
    attendances,
    fees,
    notifications,
    announcements,
    departments,
    course_materials,
    results,
    timetables,
    resources,
    inventory,
    reports,
    realtime,
    health,
)

__all__ = [
    "auth",
    "students",
    "courses",
    "faculty",
    "faculty_operations",
    "grades",
    "attendance",
    "attendances",
    "fees",
    "notifications",
    "announcements",
    "departments",
    "course_materials",
    "results",
    "timetables",
    "resources",
    "inventory",
    "reports",
    "realtime",
    "health",
]
