from typing import Optional

from academics.models import StaffProfile, StudentProfile


def get_student_profile(user) -> Optional[StudentProfile]:
    return StudentProfile.objects.filter(user=user).select_related('batch__department').first()


def get_staff_department_id(user) -> Optional[int]:
    return StaffProfile.objects.filter(user=user).values_list('department_id', flat=True).first()


def get_department_hod_id(department_id) -> Optional[int]:
    """The active HOD whose staff profile belongs to `department_id`, if any."""
    if department_id is None:
        return None
    return (
        StaffProfile.objects
        .filter(department_id=department_id, user__role='hod', user__is_active=True)
        .order_by('user_id')
        .values_list('user_id', flat=True)
        .first()
    )
