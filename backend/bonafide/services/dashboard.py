from typing import Dict

from django.db.models import Count

from bonafide.models import BonafideRequest, PENDING_STATUSES, RETURNED_STATUSES, RequestStatus
from bonafide.services import access_control
from bonafide.services.lifecycle import Actor


def status_breakdown(qs) -> Dict[str, int]:
    """Count of requests per status, every status present (zero when absent)."""
    counts = {status: 0 for status in RequestStatus.values}
    for row in qs.order_by().values('status').annotate(total=Count('id')):
        counts[row['status']] = row['total']
    return counts


def dashboard_summary(actor: Actor) -> dict:
    qs = access_control.scope_requests(BonafideRequest.objects.all(), actor)
    by_status = status_breakdown(qs)

    pending_status = access_control.pending_status_for_role(actor.role)
    summary = {
        'role': actor.role,
        'total': sum(by_status.values()),
        'pending_for_me': by_status.get(pending_status, 0) if pending_status else 0,
        'in_progress': sum(by_status[s] for s in PENDING_STATUSES),
        'approved': by_status[RequestStatus.APPROVED],
        'returned': sum(by_status[s] for s in RETURNED_STATUSES),
        'by_status': by_status,
    }

    if actor.role in ('office', 'admin', 'principal'):
        approved = qs.filter(status=RequestStatus.APPROVED)
        issued = approved.filter(issue__isnull=False).count()
        summary['issued'] = issued
        summary['ready_to_issue'] = summary['approved'] - issued
    return summary
