from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed

from .localization import localized_value, resolve_language
from .models import User, AuditLog


class SessionUserSerializer(serializers.ModelSerializer):
    """The small user payload returned by the admin session endpoints"""
    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name']


class AdminLoginSerializer(serializers.Serializer):
    # Credentials are trimmed; pasted passwords often carry stray whitespace
    username = serializers.CharField(max_length=150, trim_whitespace=True)
    password = serializers.CharField(max_length=128, trim_whitespace=True, write_only=True)


class AdminTokenObtainPairSerializer(TokenObtainPairSerializer):
    """JWT pair for scripted API clients; only staff users qualify"""
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_staff:
            raise AuthenticationFailed('Admin access required.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['is_admin'] = user.is_staff
        return token


class AuditLogSerializer(serializers.ModelSerializer):
    user = SessionUserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'changes', 'ip_address', 'created_at']


class LocalizedSerializerMixin(serializers.Serializer):
    """
    Adds a read-only ``display`` object holding translatable fields in the
    request's content language (see tajmap.core.localization).

    Subclasses list the translatable base fields in ``localized_fields``.
    """
    localized_fields = ()

    display = serializers.SerializerMethodField()

    def get_language(self):
        language = self.context.get('language')
        if language is None:
            language = resolve_language(self.context.get('request'))
            self.context['language'] = language
        return language

    def get_display(self, obj):
        language = self.get_language()
        return {field: localized_value(obj, field, language) for field in self.localized_fields}

    def to_internal_value(self, data):
        # Blank translations are stored as NULL so fallbacks apply
        if hasattr(data, 'copy'):
            data = data.copy()
        for field in getattr(self.Meta, 'nullable_text_fields', ()):
            if field in data and isinstance(data[field], str) and not data[field].strip():
                data[field] = None
        return super().to_internal_value(data)
