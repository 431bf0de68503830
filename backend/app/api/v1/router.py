from fastapi import APIRouter
from app.api.v1.endpoints import (
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

api_router = APIRouter()

# Deep health checks (/health/live, /health/ready, /health/deep)
api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check for load balancers"""
    return {"status": "healthy", "service": "unitrack-backend"}


api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(courses.router, prefix="/courses", tags=["Courses"])
api_router.include_router(faculty.router, prefix="/faculty", tags=["Faculty"])
api_router.include_router(faculty_operations.router, prefix="/faculty-operations", tags=["Faculty Operations"])
api_router.include_router(grades.router, prefix="/grades", tags=["Grades"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(attendances.router, prefix="/attendances", tags=["Attendance"])
api_router.include_router(fees.router, prefix="/fees", tags=["Fees"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(announcements.router, prefix="/announcements", tags=["Announcements"])
api_router.include_router(departments.router, prefix="/departments", tags=["Departments"])
api_router.include_router(course_materials.router, prefix="/course-materials", tags=["Course Materials"])
api_router.include_router(results.router, prefix="/results", tags=["Results"])
api_router.include_router(timetables.router, prefix="/timetables", tags=["Timetables"])
api_router.include_router(resources.router, prefix="/resources", tags=["Resources"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["Realtime"])
