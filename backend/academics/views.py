import logging

from django.db.models import Count, Q
from rest_framework import mixins, viewsets
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from academic_calendar.services import semester as semester_service
from accounts.permissions_api import IsAdminOrReadOnly, user_has_role
from .models import Batch, Department, StudentProfile
from .serializers import (
    BatchSerializer,
    DepartmentSerializer,
    StudentProfileListSerializer,
    StudentProfileUpdateSerializer,
)
from .services import get_staff_department_id
from .services.student_details import build_student_details

logger = logging.getLogger(__name__)


class DepartmentViewSet(viewsets.ModelViewSet):
    queryset = Department.objects.all().order_by('name')
    serializer_class = DepartmentSerializer
    permission_classes = (IsAdminOrReadOnly,)


class BatchViewSet(viewsets.ModelViewSet):
    """Batches with their calendar fields kept current.

    Listing refreshes the stored semester window of every non-overridden batch
    it returns; create and update refresh the batch they touched.
    """
    serializer_class = BatchSerializer
    permission_classes = (IsAdminOrReadOnly,)

    def get_queryset(self):
        qs = Batch.objects.select_related('department', 'tutor').annotate(student_count=Count('students'))
        department = self.request.query_params.get('department')
        if department:
            qs = qs.filter(department_id=department)
        status_filter = self.request.query_params.get('status')
        if status_filter:
            qs = qs.filter(status=status_filter)
        return qs.order_by('-name', 'section')

    def list(self, request, *args, **kwargs):
        batches = list(self.get_queryset())
        refreshed = semester_service.refresh_batches(batches)
        logger.debug('Refreshed %d batch calendar(s) on list', refreshed)
        return Response(self.get_serializer(batches, many=True).data)

    def perform_create(self, serializer):
        batch = serializer.save()
        semester_service.refresh_batch_calendar(batch)

    def perform_update(self, serializer):
        batch = serializer.save()
        semester_service.refresh_batch_calendar(batch)


def scope_students(qs, user):
    """Students `user` may look at, mirroring the request scoping rules."""
    if user_has_role(user, 'admin', 'principal', 'office'):
        return qs
    role = getattr(user, 'role', None)
    if role == 'student':
        return qs.filter(user=user)
    if role == 'tutor':
        return qs.filter(Q(tutor=user) | Q(batch__tutor=user))
    if role == 'hod':
        cond = Q(hod=user)
        department_id = get_staff_department_id(user)
        if department_id is not None:
            cond |= Q(batch__department_id=department_id)
        return qs.filter(cond)
    return qs.none()


class StudentViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.UpdateModelMixin,
                     viewsets.GenericViewSet):
    permission_classes = (IsAuthenticated,)

    def get_queryset(self):
        qs = StudentProfile.objects.select_related('user', 'batch__department', 'batch__tutor', 'tutor', 'hod')
        qs = scope_students(qs, self.request.user)
        batch = self.request.query_params.get('batch')
        if batch:
            qs = qs.filter(batch_id=batch)
        search = self.request.query_params.get('search')
        if search:
            qs = qs.filter(
                Q(register_number__icontains=search)
                | Q(user__first_name__icontains=search)
                | Q(user__last_name__icontains=search)
            )
        return qs.order_by('register_number')

    def get_serializer_class(self):
        if self.action in ('update', 'partial_update'):
            return StudentProfileUpdateSerializer
        return StudentProfileListSerializer

    def retrieve(self, request, *args, **kwargs):
        student = self.get_object()
        return Response(build_student_details(student).as_dict())

    def perform_update(self, serializer):
        if not user_has_role(self.request.user, 'admin'):
            raise PermissionDenied('Only administrators can edit student records.')
        serializer.save()
