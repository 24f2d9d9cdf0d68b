"""Produce the certificate for an approved request, and record office issuance.

HTML templates are rendered and exported to PDF. PDF and Word templates are
stored files: the document points at the file and the renderer is not called.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Optional

from django.db import IntegrityError, transaction

from academics.services.student_details import get_student_details
from bonafide.exceptions import LifecycleError
from bonafide.models import BonafideRequest, CertificateIssue, RequestStatus
from bonafide.services import notification_service
from certificates.exceptions import MissingStudent, MissingTemplate
from certificates.services import exporter, renderer

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    'pdf': 'application/pdf',
    'word': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
}


@dataclass(frozen=True)
class CertificateDocument:
    filename: str
    content_type: str
    body: Optional[bytes] = None
    file_url: Optional[str] = None
    html: Optional[str] = None

    @property
    def is_file_reference(self) -> bool:
        return self.body is None


def _file_extension(template) -> str:
    _, ext = os.path.splitext(template.file.name or '')
    return ext.lstrip('.') or template.template_type


def build_certificate(req: BonafideRequest, include_signature: bool = False,
                      today: Optional[date] = None) -> CertificateDocument:
    """Return the certificate document for `req`.

    Raises MissingTemplate when the request has no template and MissingStudent
    when the student record is gone.
    """
    template = req.template
    if template is None:
        raise MissingTemplate('Certificate template not found.')
    student = get_student_details(req.student_id, today)
    if student is None:
        raise MissingStudent('Student details not found.')

    if not template.is_html:
        return CertificateDocument(
            filename=f'{template.name}-{student.register_number}.{_file_extension(template)}',
            content_type=CONTENT_TYPES.get(template.template_type, 'application/octet-stream'),
            file_url=template.file_url,
        )

    html = renderer.render(req, student, template, include_signature=include_signature, today=today)
    body = exporter.export_pdf(html, title=f'{req.type} - {student.register_number}')
    logger.info('Built certificate for request %s (%d bytes)', req.pk, len(body))
    return CertificateDocument(
        filename=f'Bonafide-{student.register_number}.pdf',
        content_type='application/pdf',
        body=body,
        html=html,
    )


def ready_to_issue():
    """Approved requests the office has not handed over yet."""
    return (
        BonafideRequest.objects
        .filter(status=RequestStatus.APPROVED, issue__isnull=True)
        .select_related('student__user', 'template')
        .order_by('updated_at')
    )


def mark_issued(req: BonafideRequest, issued_by, remarks: str = '') -> CertificateIssue:
    if req.status != RequestStatus.APPROVED:
        raise LifecycleError(f'Only approved requests can be issued; this one is "{req.status}".')
    try:
        with transaction.atomic():
            issue = CertificateIssue.objects.create(request=req, issued_by=issued_by, remarks=remarks or '')
    except IntegrityError:
        raise LifecycleError('Certificate has already been issued.')

    try:
        notification_service.notify_certificate_issued(req, getattr(issued_by, 'pk', None))
    except Exception:
        logger.exception('Notification failed for issued request %s', req.pk)
    return issue
