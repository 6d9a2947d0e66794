from rest_framework import serializers

from orders.wizard import WizardError, check_upload

from .models import UserDocument


class UserDocumentSerializer(serializers.ModelSerializer):
    """Personal document; ``file`` is write-only, reads get ``file_url``."""

    file = serializers.FileField(write_only=True)
    file_url = serializers.SerializerMethodField()

    class Meta:
        model = UserDocument
        fields = ['id', 'user', 'file', 'file_name', 'file_url', 'document_type', 'created_at']
        read_only_fields = ['id', 'user', 'file_name', 'document_type', 'created_at']

    def get_file_url(self, obj):
        url = obj.file_url
        request = self.context.get('request')
        if url and request is not None:
            return request.build_absolute_uri(url)
        return url

    def validate_file(self, value):
        try:
            check_upload(value)
        except WizardError as exc:
            raise serializers.ValidationError(str(exc))
        return value

    def create(self, validated_data):
        upload = validated_data['file']
        validated_data['file_name'] = upload.name
        validated_data['document_type'] = getattr(upload, 'content_type', None) or None
        return super().create(validated_data)
