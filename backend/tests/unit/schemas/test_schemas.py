"""
Unit Tests for request schemas
Tests for: cross-field validation and normalization
"""
import pytest
from pydantic import ValidationError

from app.models.announcement import TargetAudience
from app.schemas.announcement import AnnouncementCreate
from app.schemas.campus import ResourceCreate
from app.schemas.grade import GradeCreate
from app.schemas.student import StudentRegister


def registration(**overrides) -> dict:
    data = {
        "email": "Asha.Verma@UniTrack.edu",
        "password": "password123",
        "full_name": "Asha Verma",
        "phone_number": "9876543210",
        "date_of_birth": "2004-05-17",
        "gender": "Female",
        "address": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
        "year": 2,
        "semester": 3,
    }
    data.update(overrides)
    return data


class TestStudentRegister:

    def test_email_is_lowercased(self):
        student = StudentRegister(**registration())

        assert student.email == "asha.verma@unitrack.edu"

    @pytest.mark.parametrize("pincode", ["41100", "4110011", "41100a"])
    def test_pincode_must_be_six_digits(self, pincode):
        with pytest.raises(ValidationError):
            StudentRegister(**registration(pincode=pincode))

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError):
            StudentRegister(**registration(password="12345"))


class TestGradeCreate:

    def test_accepts_camel_case(self):
        grade = GradeCreate(
            studentId="s1", courseId="c1", assessmentType="midterm",
            assessmentName="Midterm 1", score=40, maxScore=50, weightage=30
        )

        assert grade.max_score == 50

    def test_score_above_max_rejected(self):
        with pytest.raises(ValidationError, match="Score cannot exceed maximum score"):
            GradeCreate(
                student_id="s1", course_id="c1", assessment_type="midterm",
                assessment_name="Midterm 1", score=51, max_score=50, weightage=30
            )

    def test_weightage_capped_at_hundred(self):
        with pytest.raises(ValidationError):
            GradeCreate(
                student_id="s1", course_id="c1", assessment_type="quiz",
                assessment_name="Quiz 1", score=5, max_score=10, weightage=101
            )


class TestAnnouncementCreate:

    def test_all_audience_needs_no_target(self):
        announcement = AnnouncementCreate(title="Holiday", message="Campus closed Monday")

        assert announcement.target_audience == TargetAudience.ALL

    @pytest.mark.parametrize("audience", [
        TargetAudience.SPECIFIC_YEAR,
        TargetAudience.SPECIFIC_SEMESTER,
        TargetAudience.SPECIFIC_DEPARTMENT,
    ])
    def test_targeted_audience_requires_target(self, audience):
        with pytest.raises(ValidationError, match="is required for audience"):
            AnnouncementCreate(title="Exams", message="Timetable out", target_audience=audience)

    def test_targeted_audience_with_target(self):
        announcement = AnnouncementCreate(
            title="Exams", message="Timetable out",
            target_audience=TargetAudience.SPECIFIC_YEAR, target_year=3
        )

        assert announcement.target_year == 3


class TestResourceCreate:

    def test_available_cannot_exceed_quantity(self):
        with pytest.raises(ValidationError):
            ResourceCreate(name="Laptops", type="equipment", quantity=2, available=3)

    def test_available_defaults_to_none(self):
        resource = ResourceCreate(name="Laptops", type="equipment", quantity=2)

        assert resource.available is None
