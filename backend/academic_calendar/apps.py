from django.apps import AppConfig


class AcademicCalendarConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'academic_calendar'
    verbose_name = 'Academic Calendar'
