import logging
from types import SimpleNamespace

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions_api import IsAdminOrReadOnly
from .exceptions import MissingStudent
from .models import CertificateTemplate
from .serializers import CertificateTemplateSerializer, TemplatePreviewSerializer
from .services import renderer

logger = logging.getLogger(__name__)

SAMPLE_REQUEST = SimpleNamespace(pk=None, type='Bonafide Certificate', sub_type='Bank Loan', reason='Applying for an education loan.')
SAMPLE_STUDENT = SimpleNamespace(
    first_name='Sample', last_name='Student', register_number='0000000000', parent_name='Parent Name',
    gender='Male', department_name='Department', batch_name='2023-2027 A', current_semester=1,
)


class CertificateTemplateViewSet(viewsets.ModelViewSet):
    queryset = CertificateTemplate.objects.all().order_by('name')
    serializer_class = CertificateTemplateSerializer
    permission_classes = (IsAdminOrReadOnly,)
    parser_classes = (JSONParser, MultiPartParser, FormParser)

    @action(detail=False, methods=['get'], permission_classes=(IsAuthenticated,))
    def placeholders(self, request):
        return Response({'placeholders': list(renderer.PLACEHOLDERS)})

    @action(detail=True, methods=['post'], permission_classes=(IsAuthenticated,))
    def preview(self, request, pk=None):
        """Render the template against a real request, or sample data when none is given."""
        template = self.get_object()
        serializer = TemplatePreviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        if not template.is_html:
            return Response({'template_type': template.template_type, 'file_url': template.file_url})

        request_id = serializer.validated_data.get('request_id')
        if request_id is None:
            req, student = SAMPLE_REQUEST, SAMPLE_STUDENT
        else:
            from academics.services.student_details import get_student_details
            from bonafide.models import BonafideRequest
            from bonafide.services import access_control

            req = get_object_or_404(BonafideRequest.objects.select_related('student'), pk=request_id)
            actor = access_control.actor_for_user(request.user)
            if not access_control.can_view_request(req, actor):
                raise PermissionDenied('Not authorized to view this request.')
            student = get_student_details(req.student_id)
            if student is None:
                raise MissingStudent('Student details not found.')

        html = renderer.render(
            req, student, template,
            include_signature=serializer.validated_data['include_signature'],
            today=timezone.localdate(),
        )
        return Response({'template_type': template.template_type, 'html': html})
