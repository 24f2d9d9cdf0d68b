from django.db import models
from django.core.exceptions import ValidationError


class CertificateTemplate(models.Model):
    """A named certificate pattern.

    HTML templates carry placeholder-laden `content`; PDF and Word templates
    carry an uploaded `file` instead. Exactly one of the two is populated.
    """

    class TemplateType(models.TextChoices):
        HTML = 'html', 'HTML'
        PDF = 'pdf', 'PDF'
        WORD = 'word', 'Word'

    name = models.CharField(max_length=200)
    template_type = models.CharField(max_length=8, choices=TemplateType.choices, default=TemplateType.HTML)
    content = models.TextField(null=True, blank=True)
    file = models.FileField(upload_to='certificates/templates/%Y/%m/', null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('name',)

    def __str__(self):
        return f"{self.name} ({self.template_type})"

    @property
    def is_html(self):
        return self.template_type == self.TemplateType.HTML

    @property
    def file_url(self):
        if not self.file:
            return None
        try:
            return self.file.url
        except ValueError:
            return None

    def clean(self):
        has_content = bool(self.content and self.content.strip())
        has_file = bool(self.file)
        if self.is_html:
            if not has_content:
                raise ValidationError({'content': 'HTML templates require content.'})
            if has_file:
                raise ValidationError({'file': 'HTML templates cannot have an uploaded file.'})
        else:
            if not has_file:
                raise ValidationError({'file': f'{self.get_template_type_display()} templates require an uploaded file.'})
            if self.content:
                raise ValidationError({'content': f'{self.get_template_type_display()} templates cannot have HTML content.'})

    def save(self, *args, **kwargs):
        if not self.is_html and self.content == '':
            self.content = None
        self.full_clean()
        super().save(*args, **kwargs)
