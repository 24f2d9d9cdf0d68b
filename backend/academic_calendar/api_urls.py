from django.urls import path

from . import api_views

urlpatterns = [
    path('semester/', api_views.semester_preview, name='academic_calendar_semester_preview'),
]
