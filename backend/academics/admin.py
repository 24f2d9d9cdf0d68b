from django import forms
from django.contrib import admin, messages

from academic_calendar.services import semester as semester_service
from .models import Batch, Department, StaffProfile, StudentProfile


class StudentProfileForm(forms.ModelForm):
    class Meta:
        model = StudentProfile
        fields = '__all__'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance and self.instance.pk and 'register_number' in self.fields:
            # disable register_number editing for existing records in admin
            self.fields['register_number'].disabled = True


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('name', 'established_year', 'created_at')
    search_fields = ('name',)


@admin.register(Batch)
class BatchAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'department', 'tutor', 'status', 'current_semester',
                    'semester_from_date', 'semester_to_date', 'semester_override')
    list_filter = ('department', 'status', 'semester_override')
    search_fields = ('name', 'section')
    actions = ('refresh_calendars',)

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        semester_service.refresh_batch_calendar(obj)

    @admin.action(description='Recompute semester calendar')
    def refresh_calendars(self, request, queryset):
        count = semester_service.refresh_batches(queryset)
        self.message_user(request, f'Refreshed {count} batch calendar(s).', messages.SUCCESS)


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'department', 'designation')
    list_filter = ('department',)
    search_fields = ('user__username', 'user__first_name', 'user__last_name')


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    form = StudentProfileForm
    list_display = ('register_number', 'user', 'batch', 'tutor', 'hod', 'gender')
    list_filter = ('batch__department', 'batch', 'gender')
    search_fields = ('register_number', 'user__username', 'user__first_name', 'user__last_name')
