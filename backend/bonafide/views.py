import logging

from django.conf import settings
from django.db import transaction
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from academics.services import get_student_profile
from accounts.permissions_api import HasRole
from bonafide.models import BonafideRequest, RequestStatus
from bonafide.serializers import (
    BonafideRequestCreateSerializer,
    BonafideRequestDetailSerializer,
    BonafideRequestListSerializer,
    CertificateIssueSerializer,
    IssueSerializer,
    TransitionSerializer,
)
from bonafide.services import access_control, dashboard, issuance, lifecycle
from certificates.exceptions import RenderError

logger = logging.getLogger(__name__)


def _base_queryset():
    return BonafideRequest.objects.select_related('student__user', 'template', 'issue')


def _get_visible_request(pk, actor) -> BonafideRequest:
    req = get_object_or_404(_base_queryset(), pk=pk)
    if not access_control.can_view_request(req, actor):
        raise PermissionDenied('Not authorized to view this request.')
    return req


def _truthy(value, default):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def _document_payload(req, document):
    payload = {
        'filename': document.filename,
        'content_type': document.content_type,
        'file_url': document.file_url,
    }
    if not document.is_file_reference:
        payload['download_url'] = f'/api/requests/{req.pk}/certificate/'
    return payload


class RequestListCreateView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        actor = access_control.actor_for_user(request.user)
        qs = access_control.scope_requests(_base_queryset(), actor)
        status_filter = request.query_params.get('status')
        if status_filter:
            qs = qs.filter(status=status_filter)
        return Response(BonafideRequestListSerializer(qs, many=True).data)

    def post(self, request, *args, **kwargs):
        if getattr(request.user, 'role', None) != 'student':
            raise PermissionDenied('Only students can file bonafide requests.')
        student = get_student_profile(request.user)
        if student is None:
            raise ValidationError({'detail': 'No student profile is linked to this account.'})

        serializer = BonafideRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        req = lifecycle.create_request(student, **serializer.validated_data)
        actor = access_control.actor_for_user(request.user)
        data = BonafideRequestDetailSerializer(req, context={'actor': actor}).data
        return Response(data, status=status.HTTP_201_CREATED)


class MyRequestsView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        qs = _base_queryset().filter(student__user=request.user).order_by('-created_at')
        return Response(BonafideRequestListSerializer(qs, many=True).data)


class PendingRequestsView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        actor = access_control.actor_for_user(request.user)
        qs = access_control.pending_requests(actor).select_related('student__user', 'template').order_by('created_at')
        return Response(BonafideRequestListSerializer(qs, many=True).data)


class DashboardView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, *args, **kwargs):
        actor = access_control.actor_for_user(request.user)
        return Response(dashboard.dashboard_summary(actor))


class RequestDetailView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, id: int, *args, **kwargs):
        actor = access_control.actor_for_user(request.user)
        req = _get_visible_request(id, actor)
        return Response(BonafideRequestDetailSerializer(req, context={'actor': actor}).data)


class RequestTransitionView(APIView):
    permission_classes = (IsAuthenticated,)

    def post(self, request, id: int, *args, **kwargs):
        actor = access_control.actor_for_user(request.user)
        req = _get_visible_request(id, actor)

        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with transaction.atomic():
            updated = lifecycle.perform_transition(
                req.pk,
                actor,
                data['status'],
                template_id=data.get('template_id'),
                return_reason=data.get('return_reason'),
            )

        body = {'id': updated.pk, 'status': updated.status, 'return_reason': updated.return_reason,
                'template': updated.template_id}

        # The approval is already committed; a certificate failure is reported, not rolled back.
        if updated.status == RequestStatus.APPROVED:
            include_signature = _truthy(data.get('add_signature'), settings.BONAFIDE_SIGNATURE_DEFAULT)
            try:
                fresh = _base_queryset().get(pk=updated.pk)
                document = issuance.build_certificate(fresh, include_signature=include_signature)
                body['certificate'] = _document_payload(fresh, document)
            except (RenderError, ValueError) as exc:
                logger.error('Certificate generation failed after approving request %s: %s', updated.pk, exc)
                body['certificate_error'] = str(exc)

        return Response(body)


class RequestCertificateView(APIView):
    permission_classes = (IsAuthenticated,)

    def get(self, request, id: int, *args, **kwargs):
        actor = access_control.actor_for_user(request.user)
        req = _get_visible_request(id, actor)
        if req.status == RequestStatus.APPROVED:
            include_signature = _truthy(request.query_params.get('signature'), settings.BONAFIDE_SIGNATURE_DEFAULT)
        elif access_control.can_preview_certificate(req, actor):
            # Unsigned until approved.
            include_signature = False
        else:
            raise PermissionDenied('The certificate is available once the request is approved.')

        document = issuance.build_certificate(req, include_signature=include_signature)
        if document.is_file_reference:
            return Response(_document_payload(req, document))

        response = HttpResponse(document.body, content_type=document.content_type)
        response['Content-Disposition'] = f'attachment; filename="{document.filename}"'
        return response


class ReadyToIssueView(APIView):
    permission_classes = (HasRole,)
    allowed_roles = ('office', 'admin')

    def get(self, request, *args, **kwargs):
        return Response(BonafideRequestListSerializer(issuance.ready_to_issue(), many=True).data)


class IssueCertificateView(APIView):
    permission_classes = (HasRole,)
    allowed_roles = ('office', 'admin')

    def post(self, request, id: int, *args, **kwargs):
        req = get_object_or_404(_base_queryset(), pk=id)
        serializer = IssueSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        issue = issuance.mark_issued(req, request.user, remarks=serializer.validated_data.get('remarks'))
        return Response(CertificateIssueSerializer(issue).data, status=status.HTTP_201_CREATED)
