from django.conf import settings
from django.db import models
from django.utils import timezone


class RequestStatus(models.TextChoices):
    PENDING_TUTOR = 'Pending Tutor Approval', 'Pending Tutor Approval'
    PENDING_HOD = 'Pending HOD Approval', 'Pending HOD Approval'
    PENDING_ADMIN = 'Pending Admin Approval', 'Pending Admin Approval'
    PENDING_PRINCIPAL = 'Pending Principal Approval', 'Pending Principal Approval'
    APPROVED = 'Approved', 'Approved'
    RETURNED_BY_TUTOR = 'Returned by Tutor', 'Returned by Tutor'
    RETURNED_BY_HOD = 'Returned by HOD', 'Returned by HOD'
    RETURNED_BY_ADMIN = 'Returned by Admin', 'Returned by Admin'
    RETURNED_BY_PRINCIPAL = 'Returned by Principal', 'Returned by Principal'


RETURNED_STATUSES = frozenset({
    RequestStatus.RETURNED_BY_TUTOR,
    RequestStatus.RETURNED_BY_HOD,
    RequestStatus.RETURNED_BY_ADMIN,
    RequestStatus.RETURNED_BY_PRINCIPAL,
})

PENDING_STATUSES = frozenset({
    RequestStatus.PENDING_TUTOR,
    RequestStatus.PENDING_HOD,
    RequestStatus.PENDING_ADMIN,
    RequestStatus.PENDING_PRINCIPAL,
})

TERMINAL_STATUSES = RETURNED_STATUSES | {RequestStatus.APPROVED}


class BonafideRequest(models.Model):
    """A single certificate application moving through the approval chain.

    Status changes go through `bonafide.services.lifecycle`; a returned request
    is kept as history and the student files a new one to resubmit.
    """

    student = models.ForeignKey(
        'academics.StudentProfile',
        on_delete=models.CASCADE,
        related_name='bonafide_requests'
    )
    date = models.DateField(default=timezone.localdate)
    type = models.CharField(max_length=100)
    sub_type = models.CharField(max_length=150, blank=True, default='')
    reason = models.TextField()
    status = models.CharField(max_length=32, choices=RequestStatus.choices, default=RequestStatus.PENDING_TUTOR, db_index=True)
    # Chosen by the tutor when forwarding; required before approval.
    template = models.ForeignKey(
        'certificates.CertificateTemplate',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='requests'
    )
    return_reason = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at',)

    def __str__(self):
        return f"{self.type} for {self.student.register_number} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES


class CertificateIssue(models.Model):
    """Office hand-over of an approved certificate.

    Kept beside the request rather than as extra request statuses so the
    approval state machine stays closed; `workflow_version` tags the shape of
    this extension.
    """

    WORKFLOW_VERSION = 1

    request = models.OneToOneField(BonafideRequest, on_delete=models.CASCADE, related_name='issue')
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        on_delete=models.SET_NULL,
        related_name='issued_certificates'
    )
    issued_at = models.DateTimeField(default=timezone.now)
    remarks = models.TextField(blank=True)
    workflow_version = models.PositiveSmallIntegerField(default=WORKFLOW_VERSION)

    class Meta:
        ordering = ('-issued_at',)

    def __str__(self):
        return f"Issued {self.request_id} at {self.issued_at:%Y-%m-%d}"
