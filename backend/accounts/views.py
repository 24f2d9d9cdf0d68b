import logging

from django.contrib.auth import get_user_model
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView

from .permissions_api import IsAdminRole
from .serializers import (
    IdentifierTokenObtainPairSerializer,
    MeSerializer,
    ProfileUpdateSerializer,
    StudentProvisionSerializer,
)
from .services import provisioning

log = logging.getLogger(__name__)

User = get_user_model()


class CustomTokenObtainPairView(TokenObtainPairView):
    # identifier may be email, register number or username
    serializer_class = IdentifierTokenObtainPairSerializer


class MeView(APIView):
    permission_classes = (permissions.IsAuthenticated,)

    def get(self, request):
        serializer = MeSerializer(request.user)
        return Response(serializer.data)


class ProfileUpdateView(APIView):
    permission_classes = (permissions.IsAuthenticated,)

    def patch(self, request):
        serializer = ProfileUpdateSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        log.info('Profile updated for user %s: %s', request.user.pk, sorted(serializer.validated_data))
        return Response(MeSerializer(request.user).data)

    put = patch


class StudentProvisionView(APIView):
    permission_classes = (IsAdminRole,)

    def post(self, request):
        serializer = StudentProvisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        run, generated_password = provisioning.provision_student(serializer.validated_data, started_by=request.user)

        body = {
            'run_id': run.pk,
            'status': run.status,
            'user_id': run.step_result('create_user')['user_id'],
            'student_id': run.step_result('create_profile')['profile_id'],
        }
        if generated_password:
            body['generated_password'] = generated_password
        return Response(body, status=status.HTTP_201_CREATED)
