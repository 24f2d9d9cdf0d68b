from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from academics.models import StaffProfile, StudentProfile
from .models import ProvisioningRun, User


class StudentProfileInline(admin.StackedInline):
    model = StudentProfile
    fk_name = 'user'
    can_delete = False
    verbose_name = 'Student profile'
    verbose_name_plural = 'Student profile'

    def get_readonly_fields(self, request, obj=None):
        # register_number is immutable once the profile exists
        if obj and getattr(obj, 'student_profile', None) is not None:
            return ('register_number',)
        return ()


class StaffProfileInline(admin.StackedInline):
    model = StaffProfile
    can_delete = False
    verbose_name = 'Staff profile'
    verbose_name_plural = 'Staff profile'


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ('username', 'email', 'first_name', 'last_name', 'role', 'is_active')
    list_filter = ('role', 'is_active', 'is_staff')
    inlines = (StudentProfileInline, StaffProfileInline)

    fieldsets = DjangoUserAdmin.fieldsets + (
        ('Portal', {'fields': ('role', 'phone_number', 'avatar_url')}),
    )

    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        ('Portal', {'fields': ('role', 'email', 'first_name', 'last_name')}),
    )


@admin.register(ProvisioningRun)
class ProvisioningRunAdmin(admin.ModelAdmin):
    list_display = ('id', 'kind', 'status', 'started_by', 'created_at', 'updated_at')
    list_filter = ('kind', 'status')
    readonly_fields = ('kind', 'status', 'payload', 'completed_steps', 'error', 'started_by', 'created_at', 'updated_at')
