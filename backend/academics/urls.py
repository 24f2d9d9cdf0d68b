from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import BatchViewSet, DepartmentViewSet, StudentViewSet

router = DefaultRouter()
router.register(r'departments', DepartmentViewSet, basename='department')
router.register(r'batches', BatchViewSet, basename='batch')
router.register(r'students', StudentViewSet, basename='student')

# Mounted under `/api/academics/`.
urlpatterns = [
    path('', include(router.urls)),
]
