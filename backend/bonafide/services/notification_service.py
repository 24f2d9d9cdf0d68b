import logging
from typing import List

from academics.services import get_department_hod_id
from bonafide.models import BonafideRequest, RequestStatus

logger = logging.getLogger(__name__)


def _target_user_ids(req: BonafideRequest) -> List[int]:
    """Resolve who should hear about `req` in its current status."""
    student = req.student
    if req.status == RequestStatus.PENDING_TUTOR:
        tutor_id = student.tutor_id or getattr(student.batch, 'tutor_id', None)
        return [tutor_id] if tutor_id else []
    if req.status == RequestStatus.PENDING_HOD:
        hod_id = student.hod_id or get_department_hod_id(getattr(student.batch, 'department_id', None))
        return [hod_id] if hod_id else []
    if req.status == RequestStatus.PENDING_PRINCIPAL:
        from accounts.models import User
        return list(User.objects.filter(role=User.Role.PRINCIPAL, is_active=True).values_list('id', flat=True))
    # Approved and returned requests go back to the student.
    return [student.user_id]


def _log(event: str, req: BonafideRequest, target_user_ids: List[int], reason: str):
    payload = {
        'event': event,
        'request_id': req.id,
        'request_type': req.type,
        'status': req.status,
        'target_user_ids': target_user_ids,
        'reason': reason,
    }
    logger.info('%s', payload)


def notify_request_created(req: BonafideRequest):
    """Notify that a student filed a request. Targets the tutor."""
    _log('request_created', req, _target_user_ids(req), 'Request submitted by student')


def notify_transition(req: BonafideRequest, actor, previous_status: str):
    """Notify the next reviewer, or the student once the request is settled."""
    if req.status == RequestStatus.APPROVED:
        event = 'request_approved'
    elif req.return_reason and req.status.startswith('Returned'):
        event = 'request_returned'
    else:
        event = 'request_forwarded'
    reason = f'{previous_status} -> {req.status} by {actor.role}'
    if event == 'request_returned':
        reason = f'{reason}: {req.return_reason}'
    _log(event, req, _target_user_ids(req), reason)


def notify_certificate_issued(req: BonafideRequest, issued_by_id):
    _log('certificate_issued', req, [req.student.user_id], f'Issued by user {issued_by_id}')
