from typing import Optional

from django.db.models import Q

from academics.models import Batch
from academics.services import get_staff_department_id
from bonafide.models import BonafideRequest, RequestStatus
from bonafide.services.lifecycle import Actor

ROLE_PENDING_STATUS = {
    'tutor': RequestStatus.PENDING_TUTOR,
    'hod': RequestStatus.PENDING_HOD,
    'admin': RequestStatus.PENDING_ADMIN,
    'principal': RequestStatus.PENDING_PRINCIPAL,
}

UNSCOPED_ROLES = ('principal', 'office', 'admin')


def actor_for_user(user) -> Actor:
    """Build the explicit Actor for an authenticated user.

    Tutors carry the batches they tutor; tutors and HODs carry their
    department from StaffProfile.
    """
    role = getattr(user, 'role', None) or 'student'
    department_id = None
    batch_ids = ()
    if role in ('tutor', 'hod'):
        department_id = get_staff_department_id(user)
    if role == 'tutor':
        batch_ids = tuple(Batch.objects.filter(tutor=user).values_list('id', flat=True))
    return Actor(role=role, user_id=user.pk, department_id=department_id, batch_ids=batch_ids)


def scope_requests(qs, actor: Actor):
    """Restrict `qs` to the requests `actor` may see.

    - student: their own requests
    - tutor: students in batches they tutor, or assigned to them directly
    - hod: students of their department, or assigned to them directly
    - principal, office, admin: everything
    """
    if actor.role in UNSCOPED_ROLES:
        return qs
    if actor.role == 'student':
        return qs.filter(student__user_id=actor.user_id)
    if actor.role == 'tutor':
        cond = Q(student__tutor_id=actor.user_id)
        if actor.batch_ids:
            cond |= Q(student__batch_id__in=actor.batch_ids)
        return qs.filter(cond)
    if actor.role == 'hod':
        cond = Q(student__hod_id=actor.user_id)
        if actor.department_id is not None:
            cond |= Q(student__batch__department_id=actor.department_id)
        return qs.filter(cond)
    return qs.none()


def can_view_request(req: BonafideRequest, actor: Actor) -> bool:
    if actor is None:
        return False
    return scope_requests(BonafideRequest.objects.filter(pk=req.pk), actor).exists()


def pending_status_for_role(role: str) -> Optional[str]:
    """The status a request waits in while it is `role`'s turn, if any."""
    return ROLE_PENDING_STATUS.get(role)


def can_preview_certificate(req: BonafideRequest, actor: Actor) -> bool:
    """Before approval, only the principal reviewing `req` may see its certificate."""
    return (
        actor.role == 'principal'
        and req.status == RequestStatus.PENDING_PRINCIPAL
        and can_view_request(req, actor)
    )


def pending_requests(actor: Actor):
    pending = pending_status_for_role(actor.role)
    if pending is None:
        return BonafideRequest.objects.none()
    qs = BonafideRequest.objects.filter(status=pending)
    return scope_requests(qs, actor)
