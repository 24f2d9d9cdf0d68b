from django.contrib import admin

from .models import CertificateTemplate


@admin.register(CertificateTemplate)
class CertificateTemplateAdmin(admin.ModelAdmin):
    list_display = ('name', 'template_type', 'created_at', 'updated_at')
    list_filter = ('template_type',)
    search_fields = ('name',)
