from rest_framework import serializers

from .models import CertificateTemplate


class CertificateTemplateSerializer(serializers.ModelSerializer):
    file_url = serializers.CharField(read_only=True)

    class Meta:
        model = CertificateTemplate
        fields = ('id', 'name', 'template_type', 'content', 'file', 'file_url', 'created_at', 'updated_at')
        read_only_fields = ('created_at', 'updated_at')
        extra_kwargs = {'file': {'write_only': True, 'required': False}}

    def validate(self, attrs):
        template_type = attrs.get('template_type', getattr(self.instance, 'template_type', CertificateTemplate.TemplateType.HTML))
        content = attrs.get('content', getattr(self.instance, 'content', None))
        upload = attrs.get('file', getattr(self.instance, 'file', None))

        if template_type == CertificateTemplate.TemplateType.HTML:
            if not (content and content.strip()):
                raise serializers.ValidationError({'content': 'HTML templates require content.'})
            # switching to html drops a previously uploaded file
            attrs['file'] = None
        else:
            if not upload:
                raise serializers.ValidationError({'file': 'Upload the template file.'})
            attrs['content'] = None
        return attrs


class TemplatePreviewSerializer(serializers.Serializer):
    request_id = serializers.IntegerField(required=False)
    include_signature = serializers.BooleanField(required=False, default=False)
