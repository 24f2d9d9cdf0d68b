from django.contrib import admin

from . import models


class CertificateIssueInline(admin.StackedInline):
    model = models.CertificateIssue
    extra = 0
    readonly_fields = ('issued_at', 'workflow_version')


class BonafideRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'student', 'type', 'sub_type', 'status', 'template', 'date', 'created_at')
    list_filter = ('status', 'type')
    search_fields = ('student__register_number', 'student__user__username', 'student__user__first_name')
    inlines = (CertificateIssueInline,)
    date_hierarchy = 'created_at'
    # Status changes go through the lifecycle service, not the admin form.
    readonly_fields = ('status', 'return_reason', 'created_at', 'updated_at')


class CertificateIssueAdmin(admin.ModelAdmin):
    list_display = ('request', 'issued_by', 'issued_at', 'workflow_version')
    readonly_fields = ('issued_at',)


admin.site.register(models.BonafideRequest, BonafideRequestAdmin)
admin.site.register(models.CertificateIssue, CertificateIssueAdmin)
