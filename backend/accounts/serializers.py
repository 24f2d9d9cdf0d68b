from typing import Optional

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

User = get_user_model()


class MeSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    username = serializers.CharField(read_only=True)
    email = serializers.EmailField(read_only=True)
    first_name = serializers.CharField(read_only=True)
    last_name = serializers.CharField(read_only=True)
    full_name = serializers.CharField(read_only=True)
    role = serializers.CharField(read_only=True)
    phone_number = serializers.CharField(read_only=True)
    avatar_url = serializers.CharField(read_only=True)
    profile = serializers.SerializerMethodField()

    def get_profile(self, obj):
        if obj.role == User.Role.STUDENT:
            from academics.services import get_student_profile
            from academics.services.student_details import build_student_details
            student = get_student_profile(obj)
            if student is None:
                return None
            return build_student_details(student).as_dict()

        staff = getattr(obj, 'staff_profile', None)
        if staff is None:
            return None
        return {
            'department_id': staff.department_id,
            'department_name': staff.department.name if staff.department_id else None,
            'designation': staff.designation,
        }


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('first_name', 'last_name', 'phone_number', 'avatar_url')


class IdentifierTokenObtainPairSerializer(serializers.Serializer):
    """Authenticate using `identifier` + `password` and return JWT pair.

    `identifier` may be an email (contains '@'), a student register number or
    a username.
    """
    identifier = serializers.CharField(write_only=True)
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        identifier = attrs.get('identifier')
        password = attrs.get('password')

        if not identifier or not password:
            raise serializers.ValidationError('Must include "identifier" and "password".')

        user: Optional[User] = None

        # resolve by email
        if '@' in identifier:
            user = User.objects.filter(email__iexact=identifier).first()

        if user is None:
            from academics.models import StudentProfile
            sp = StudentProfile.objects.filter(register_number__iexact=identifier).select_related('user').first()
            if sp:
                user = sp.user

        if user is None:
            user = User.objects.filter(username__iexact=identifier).first()

        # generic error message to avoid leaking which part failed
        invalid_msg = 'Unable to log in with provided credentials.'

        if user is None:
            raise serializers.ValidationError(invalid_msg)

        if not user.check_password(password):
            raise serializers.ValidationError(invalid_msg)

        if not getattr(user, 'is_active', True):
            raise serializers.ValidationError('User account is disabled.')

        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role

        return {
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'role': user.role,
        }


class StudentProvisionSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    email = serializers.EmailField()
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')
    register_number = serializers.CharField(max_length=64)
    parent_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    gender = serializers.ChoiceField(choices=('Male', 'Female', 'Other'), required=False, allow_blank=True, default='')
    batch_id = serializers.IntegerField()
    tutor_id = serializers.IntegerField(required=False, allow_null=True)
    hod_id = serializers.IntegerField(required=False, allow_null=True)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True, min_length=6)
