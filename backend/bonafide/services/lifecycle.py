"""Approval state machine for bonafide requests.

The legal moves are listed in TRANSITIONS: who may move a request, from which
status, to which status, and what side data the move needs. `transition()` is
pure and returns an updated copy; `perform_transition()` does the read,
validate and conditional write against the database.

Whether a given user may act on a given request at all is decided by
`bonafide.services.access_control`, not here.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from django.utils import timezone

from bonafide.exceptions import IllegalTransition, LifecycleError, StaleRequestState
from bonafide.models import BonafideRequest, RequestStatus
from bonafide.services import notification_service

logger = logging.getLogger(__name__)

TEMPLATE_ID = 'template_id'
RETURN_REASON = 'return_reason'


@dataclass(frozen=True)
class Actor:
    """Who is asking for a transition, passed explicitly to every call."""
    role: str
    user_id: Optional[int] = None
    department_id: Optional[int] = None
    batch_ids: Tuple[int, ...] = ()


@dataclass(frozen=True)
class TransitionRule:
    role: str
    source: str
    target: str
    requires: Optional[str] = None


TRANSITIONS: Tuple[TransitionRule, ...] = (
    TransitionRule('tutor', RequestStatus.PENDING_TUTOR, RequestStatus.PENDING_HOD, TEMPLATE_ID),
    TransitionRule('tutor', RequestStatus.PENDING_TUTOR, RequestStatus.RETURNED_BY_TUTOR, RETURN_REASON),
    TransitionRule('hod', RequestStatus.PENDING_HOD, RequestStatus.PENDING_PRINCIPAL),
    TransitionRule('hod', RequestStatus.PENDING_HOD, RequestStatus.RETURNED_BY_HOD, RETURN_REASON),
    TransitionRule('principal', RequestStatus.PENDING_PRINCIPAL, RequestStatus.APPROVED),
    TransitionRule('principal', RequestStatus.PENDING_PRINCIPAL, RequestStatus.RETURNED_BY_PRINCIPAL, RETURN_REASON),
)


def allowed_transitions(status: str, role: str) -> Tuple[str, ...]:
    """Target statuses `role` may move a request in `status` to."""
    return tuple(rule.target for rule in TRANSITIONS if rule.source == status and rule.role == role)


def find_rule(status: str, role: str, target: str) -> Optional[TransitionRule]:
    for rule in TRANSITIONS:
        if rule.source == status and rule.role == role and rule.target == target:
            return rule
    return None


def transition(request: BonafideRequest, actor: Actor, target_status: str, *,
               template_id: Optional[int] = None, return_reason: Optional[str] = None) -> BonafideRequest:
    """Validate one move and return an updated copy of `request`.

    Only `status` changes, plus `template_id` on a tutor forward and
    `return_reason` on a return. The instance passed in is left as it was.
    Raises IllegalTransition for anything the table does not allow.
    """
    current = request.status
    if request.is_terminal:
        raise IllegalTransition(
            f'Request is already "{current}" and cannot change any more.',
            current_status=current, target_status=target_status, actor_role=actor.role,
        )

    rule = find_rule(current, actor.role, target_status)
    if rule is None:
        raise IllegalTransition(
            f'A {actor.role} cannot move a request from "{current}" to "{target_status}".',
            current_status=current, target_status=target_status, actor_role=actor.role,
        )

    if rule.requires == TEMPLATE_ID and template_id is None:
        raise IllegalTransition(
            'Select a certificate template before forwarding.',
            current_status=current, target_status=target_status, actor_role=actor.role,
        )
    reason = (return_reason or '').strip()
    if rule.requires == RETURN_REASON and not reason:
        raise IllegalTransition(
            'A reason is required to return a request.',
            current_status=current, target_status=target_status, actor_role=actor.role,
        )
    if target_status == RequestStatus.APPROVED and request.template_id is None:
        raise IllegalTransition(
            'Request has no certificate template and cannot be approved.',
            current_status=current, target_status=target_status, actor_role=actor.role,
        )

    updated = copy.copy(request)
    updated.status = target_status
    if rule.requires == TEMPLATE_ID:
        updated.template_id = template_id
    if rule.requires == RETURN_REASON:
        updated.return_reason = reason
    return updated


def perform_transition(request_id: int, actor: Actor, target_status: str, *,
                       template_id: Optional[int] = None, return_reason: Optional[str] = None) -> BonafideRequest:
    """Read the request, validate the move and store it.

    The write only succeeds while the stored status still equals the one that
    was validated; otherwise StaleRequestState is raised and nothing changes.
    BonafideRequest.DoesNotExist propagates unchanged.
    """
    current = BonafideRequest.objects.get(pk=request_id)
    updated = transition(current, actor, target_status, template_id=template_id, return_reason=return_reason)

    if updated.template_id != current.template_id:
        from certificates.models import CertificateTemplate
        if not CertificateTemplate.objects.filter(pk=updated.template_id).exists():
            raise IllegalTransition(
                f'Certificate template {updated.template_id} does not exist.',
                current_status=current.status, target_status=target_status, actor_role=actor.role,
            )

    now = timezone.now()
    rows = BonafideRequest.objects.filter(pk=request_id, status=current.status).update(
        status=updated.status,
        template_id=updated.template_id,
        return_reason=updated.return_reason,
        updated_at=now,
    )
    if rows == 0:
        logger.warning('Stale write rejected: request=%s expected=%r target=%r', request_id, current.status, target_status)
        raise StaleRequestState(request_id, current.status)
    updated.updated_at = now

    logger.info('Request %s moved %r -> %r by %s %s', request_id, current.status, updated.status, actor.role, actor.user_id)
    try:
        notification_service.notify_transition(updated, actor, current.status)
    except Exception:
        logger.exception('Notification failed for request %s', request_id)
    return updated


def create_request(student, type: str, reason: str, sub_type: str = '', date=None) -> BonafideRequest:
    """File a new request; it always starts at Pending Tutor Approval."""
    if not (type or '').strip():
        raise LifecycleError('Certificate type is required.')
    if not (reason or '').strip():
        raise LifecycleError('A reason is required.')

    req = BonafideRequest.objects.create(
        student=student,
        type=type.strip(),
        sub_type=(sub_type or '').strip(),
        reason=reason.strip(),
        date=date or timezone.localdate(),
        status=RequestStatus.PENDING_TUTOR,
    )
    try:
        notification_service.notify_request_created(req)
    except Exception:
        logger.exception('Notification failed for new request %s', req.pk)
    return req
