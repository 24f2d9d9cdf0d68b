from rest_framework import serializers

from .models import Batch, Department, StudentProfile


class DepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ('id', 'name', 'established_year', 'created_at')
        read_only_fields = ('created_at',)


class BatchSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    department_name = serializers.CharField(source='department.name', read_only=True)
    tutor_name = serializers.SerializerMethodField()
    student_count = serializers.SerializerMethodField()

    class Meta:
        model = Batch
        fields = (
            'id', 'name', 'section', 'full_name', 'department', 'department_name', 'tutor', 'tutor_name', 'status',
            'current_semester', 'semester_from_date', 'semester_to_date', 'semester_override',
            'student_count', 'created_at',
        )
        read_only_fields = ('created_at',)

    def get_tutor_name(self, obj):
        if obj.tutor is None:
            return None
        return obj.tutor.full_name or obj.tutor.username

    def get_student_count(self, obj):
        count = getattr(obj, 'student_count', None)
        if count is None:
            count = obj.students.count()
        return count

    def validate_name(self, value):
        from academic_calendar.services.semester import parse_batch_name
        parsed = parse_batch_name(value)
        if parsed is None or parsed.start_year is None or parsed.end_year is None:
            raise serializers.ValidationError('Batch name must look like "2023-2027".')
        if parsed.end_year <= parsed.start_year:
            raise serializers.ValidationError('Batch end year must be after its start year.')
        return value.strip()

    def validate(self, attrs):
        override = attrs.get('semester_override', getattr(self.instance, 'semester_override', False))
        semester = attrs.get('current_semester', getattr(self.instance, 'current_semester', None))
        if override and not semester:
            raise serializers.ValidationError({'current_semester': 'Set the semester when overriding the calendar.'})
        if semester is not None and not 1 <= semester <= 8:
            raise serializers.ValidationError({'current_semester': 'Semester must be between 1 and 8.'})
        from_date = attrs.get('semester_from_date', getattr(self.instance, 'semester_from_date', None))
        to_date = attrs.get('semester_to_date', getattr(self.instance, 'semester_to_date', None))
        if from_date and to_date and to_date < from_date:
            raise serializers.ValidationError({'semester_to_date': 'Semester end date cannot be before its start date.'})
        return attrs


class StudentProfileListSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source='user.full_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    batch_name = serializers.CharField(source='batch.full_name', read_only=True, default=None)

    class Meta:
        model = StudentProfile
        fields = ('id', 'register_number', 'full_name', 'email', 'gender', 'batch', 'batch_name', 'tutor', 'hod')


class StudentProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = StudentProfile
        fields = ('parent_name', 'gender', 'batch', 'tutor', 'hod')
