from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError


class Department(models.Model):
    name = models.CharField(max_length=128, unique=True)
    established_year = models.PositiveSmallIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return self.name


class Batch(models.Model):
    """A student cohort identified by its academic year range.

    Example: name '2023-2027' with section 'A'. The calendar fields are
    derived from the name and the current date by
    `academic_calendar.services.semester.refresh_batch_calendar`; they are only
    edited by hand when `semester_override` is set.
    """

    class Status(models.TextChoices):
        ACTIVE = 'Active', 'Active'
        INACTIVE = 'Inactive', 'Inactive'

    name = models.CharField(max_length=32)
    section = models.CharField(max_length=32, blank=True, default='')
    department = models.ForeignKey(Department, on_delete=models.CASCADE, related_name='batches')
    tutor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tutored_batches',
        limit_choices_to={'role': 'tutor'},
    )
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)

    current_semester = models.PositiveSmallIntegerField(null=True, blank=True)
    semester_from_date = models.DateField(null=True, blank=True)
    semester_to_date = models.DateField(null=True, blank=True)
    semester_override = models.BooleanField(
        default=False,
        help_text='Keep the semester fields as entered instead of recomputing them from the batch name.',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'Batches'
        unique_together = ('name', 'section', 'department')
        ordering = ('-name', 'section')

    def __str__(self):
        return f"{self.full_name} ({self.department})"

    @property
    def full_name(self):
        return f"{self.name} {self.section or ''}".strip()

    def clean(self):
        if self.current_semester is not None and not 1 <= self.current_semester <= 8:
            raise ValidationError({'current_semester': 'Semester must be between 1 and 8.'})
        if self.semester_from_date and self.semester_to_date and self.semester_to_date < self.semester_from_date:
            raise ValidationError({'semester_to_date': 'Semester end date cannot be before its start date.'})


class StaffProfile(models.Model):
    """Department association for tutors and HODs."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='staff_profile'
    )
    department = models.ForeignKey(Department, on_delete=models.SET_NULL, null=True, blank=True, related_name='staff')
    designation = models.CharField(max_length=128, blank=True)

    def __str__(self):
        return f"Staff {self.user.username} ({self.department or '-'})"


class StudentProfile(models.Model):

    class Gender(models.TextChoices):
        MALE = 'Male', 'Male'
        FEMALE = 'Female', 'Female'
        OTHER = 'Other', 'Other'

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='student_profile'
    )
    register_number = models.CharField(max_length=64, unique=True, db_index=True)
    parent_name = models.CharField(max_length=150, blank=True)
    gender = models.CharField(max_length=16, choices=Gender.choices, blank=True)
    batch = models.ForeignKey(Batch, on_delete=models.SET_NULL, null=True, blank=True, related_name='students')
    tutor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tutees',
    )
    hod = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='department_students',
    )

    def __str__(self):
        return f"Student {self.register_number} ({self.user.username})"

    def clean(self):
        if getattr(self.user, 'role', None) not in (None, 'student'):
            raise ValidationError('Only users with the student role can have a student profile.')

    def save(self, *args, **kwargs):
        # Immutable register_number after creation
        if self.pk:
            old = StudentProfile.objects.filter(pk=self.pk).values_list('register_number', flat=True).first()
            if old is not None and old != self.register_number:
                raise ValidationError('Student register_number is immutable and cannot be changed.')

        # run full clean to enforce validations
        self.full_clean()
        super().save(*args, **kwargs)
