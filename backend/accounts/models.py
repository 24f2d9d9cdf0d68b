from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """
    Base user model.
    Students, tutors, HODs, admins, the principal and office staff are all users.
    What they may do in the certificate workflow is decided by `role`.
    """

    class Role(models.TextChoices):
        STUDENT = 'student', 'Student'
        TUTOR = 'tutor', 'Tutor'
        HOD = 'hod', 'HOD'
        ADMIN = 'admin', 'Admin'
        PRINCIPAL = 'principal', 'Principal'
        OFFICE = 'office', 'Office'

    role = models.CharField(max_length=16, choices=Role.choices, default=Role.STUDENT, db_index=True)

    phone_number = models.CharField(
        'Phone number',
        max_length=32,
        blank=True,
        default='',
        help_text='Optional phone number (leave empty if unknown).',
    )
    # Reference into external object storage; the portal never stores the image itself.
    avatar_url = models.URLField(max_length=500, blank=True, default='')

    def __str__(self):
        return self.username

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name or ''}".strip()


class ProvisioningRun(models.Model):
    """Committed step log for a multi-record provisioning saga.

    Each forward step is appended to `completed_steps` (with whatever it
    created) and saved before the next step starts, so an interrupted run can
    be compensated or resumed from the log alone.
    """

    class Status(models.TextChoices):
        RUNNING = 'RUNNING', 'Running'
        COMPLETED = 'COMPLETED', 'Completed'
        COMPENSATING = 'COMPENSATING', 'Compensating'
        ROLLED_BACK = 'ROLLED_BACK', 'Rolled back'
        FAILED = 'FAILED', 'Failed'

    kind = models.CharField(max_length=32)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.RUNNING, db_index=True)
    payload = models.JSONField(default=dict, blank=True)
    completed_steps = models.JSONField(default=list, blank=True)
    error = models.TextField(blank=True)
    started_by = models.ForeignKey(
        'accounts.User',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='provisioning_runs',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at',)

    def __str__(self):
        return f"{self.kind} #{self.pk} ({self.status})"

    def step_result(self, name):
        for entry in self.completed_steps:
            if entry.get('step') == name:
                return entry.get('result') or {}
        return None
