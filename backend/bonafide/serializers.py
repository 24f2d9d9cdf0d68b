from rest_framework import serializers

from bonafide.models import BonafideRequest, CertificateIssue, RequestStatus


class BonafideRequestCreateSerializer(serializers.Serializer):
    type = serializers.CharField(max_length=100)
    sub_type = serializers.CharField(max_length=150, required=False, allow_blank=True, default='')
    reason = serializers.CharField()
    date = serializers.DateField(required=False)


class CertificateIssueSerializer(serializers.ModelSerializer):
    issued_by_name = serializers.SerializerMethodField()

    class Meta:
        model = CertificateIssue
        fields = ('issued_by', 'issued_by_name', 'issued_at', 'remarks', 'workflow_version')

    def get_issued_by_name(self, obj):
        user = obj.issued_by
        if user is None:
            return None
        return user.full_name or user.username


class BonafideRequestListSerializer(serializers.ModelSerializer):
    student_name = serializers.SerializerMethodField()
    register_number = serializers.CharField(source='student.register_number', read_only=True)
    is_issued = serializers.SerializerMethodField()

    class Meta:
        model = BonafideRequest
        fields = ('id', 'student', 'student_name', 'register_number', 'date', 'type', 'sub_type', 'status',
                  'template', 'created_at', 'updated_at', 'is_issued')

    def get_student_name(self, obj):
        return obj.student.user.full_name

    def get_is_issued(self, obj):
        return hasattr(obj, 'issue')


class BonafideRequestDetailSerializer(BonafideRequestListSerializer):
    template_name = serializers.CharField(source='template.name', read_only=True, default=None)
    template_type = serializers.CharField(source='template.template_type', read_only=True, default=None)
    issue = serializers.SerializerMethodField()
    allowed_transitions = serializers.SerializerMethodField()

    class Meta(BonafideRequestListSerializer.Meta):
        fields = BonafideRequestListSerializer.Meta.fields + (
            'reason', 'return_reason', 'template_name', 'template_type', 'issue', 'allowed_transitions',
        )

    def get_issue(self, obj):
        issue = getattr(obj, 'issue', None)
        return CertificateIssueSerializer(issue).data if issue is not None else None

    def get_allowed_transitions(self, obj):
        from bonafide.services import lifecycle
        actor = self.context.get('actor')
        if actor is None:
            return []
        return list(lifecycle.allowed_transitions(obj.status, actor.role))


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RequestStatus.choices)
    template_id = serializers.IntegerField(required=False, allow_null=True)
    return_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    add_signature = serializers.BooleanField(required=False, allow_null=True, default=None)


class IssueSerializer(serializers.Serializer):
    remarks = serializers.CharField(required=False, allow_blank=True, default='')
