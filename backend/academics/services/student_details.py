"""Composed, read-only view of a student used by rendering and review screens.

Joins the user's profile fields, the student record, the batch and its
department, and the tutor/HOD names into one flat object. The semester comes
from the batch's calendar snapshot computed for the requested day, so a
certificate always reflects the batch as of issuance.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional

from academics.models import StudentProfile
from academic_calendar.services import semester as semester_service


@dataclass(frozen=True)
class StudentDetails:
    id: int
    user_id: int
    first_name: str
    last_name: str
    email: str
    phone_number: str
    register_number: str
    parent_name: str
    gender: str
    batch_id: Optional[int] = None
    batch_name: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    current_semester: Optional[int] = None
    semester_from_date: Optional[date] = None
    semester_to_date: Optional[date] = None
    tutor_id: Optional[int] = None
    tutor_name: Optional[str] = None
    hod_id: Optional[int] = None
    hod_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def as_dict(self):
        data = asdict(self)
        data['full_name'] = self.full_name
        return data


def _person_name(user) -> Optional[str]:
    if user is None:
        return None
    return f"{user.first_name} {user.last_name or ''}".strip() or user.username


def build_student_details(student: StudentProfile, today: Optional[date] = None) -> StudentDetails:
    user = student.user
    batch = student.batch
    department = batch.department if batch is not None else None

    window = semester_service.semester_snapshot(batch, today) if batch is not None else None

    # Fall back to the batch tutor when the student has no explicit one.
    tutor = student.tutor or (batch.tutor if batch is not None else None)

    return StudentDetails(
        id=student.pk,
        user_id=user.pk,
        first_name=user.first_name or '',
        last_name=user.last_name or '',
        email=user.email or '',
        phone_number=getattr(user, 'phone_number', '') or '',
        register_number=student.register_number,
        parent_name=student.parent_name or '',
        gender=student.gender or '',
        batch_id=batch.pk if batch is not None else None,
        batch_name=batch.full_name if batch is not None else None,
        department_id=department.pk if department is not None else None,
        department_name=department.name if department is not None else None,
        current_semester=window.semester if window else None,
        semester_from_date=window.from_date if window else None,
        semester_to_date=window.to_date if window else None,
        tutor_id=tutor.pk if tutor is not None else None,
        tutor_name=_person_name(tutor),
        hod_id=student.hod_id,
        hod_name=_person_name(student.hod),
    )


def get_student_details(student_id: int, today: Optional[date] = None) -> Optional[StudentDetails]:
    """Load and compose details for `student_id`; None when no such student."""
    student = (
        StudentProfile.objects
        .select_related('user', 'batch__department', 'batch__tutor', 'tutor', 'hod')
        .filter(pk=student_id)
        .first()
    )
    if student is None:
        return None
    return build_student_details(student, today)
