# apps/messaging/serializers.py
from django.conf import settings
from rest_framework import serializers

from . import content as content_types
from .exceptions import ValidationError as MessagingValidationError
from .models import Conversation, Message, MessageReport


def _max_page_size():
    return settings.MESSAGING['MAX_PAGE_SIZE']


def _conversation_page_size():
    return settings.MESSAGING['CONVERSATION_PAGE_SIZE']


def _message_page_size():
    return settings.MESSAGING['MESSAGE_PAGE_SIZE']


class ConversationSerializer(serializers.ModelSerializer):
    other_user_id = serializers.SerializerMethodField()
    other_user_name = serializers.SerializerMethodField()
    my_role = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()
    last_message_is_me = serializers.SerializerMethodField()
    blocked_by_me = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            'id',
            'job_id',
            'client_id',
            'worker_id',
            'status',
            'other_user_id',
            'other_user_name',
            'my_role',
            'client_unread_count',
            'worker_unread_count',
            'unread_count',
            'last_message_text',
            'last_message_time',
            'last_message_sender_id',
            'last_message_is_me',
            'blocked_by_me',
            'created_at',
            'updated_at',
        ]

    def _user(self):
        return self.context['request'].user

    def get_other_user_id(self, obj):
        return obj.other_participant_id(self._user().pk)

    def get_other_user_name(self, obj):
        other = obj.worker if obj.client_id == self._user().pk else obj.client
        return other.display_name

    def get_my_role(self, obj):
        return obj.role_of(self._user())

    def get_unread_count(self, obj):
        return obj.unread_count_for(self._user())

    def get_last_message_is_me(self, obj):
        return obj.last_message_sender_id == self._user().pk

    def get_blocked_by_me(self, obj):
        return obj.is_blocked and obj.blocked_by_id == self._user().pk


class MessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.SerializerMethodField()
    is_send_by_me = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = (
            'id',
            'conversation_id',
            'sender_id',
            'receiver_id',
            'sender_name',
            'message_type',
            'text',
            'file_url',
            'file_type',
            'file_name',
            'file_size',
            'status',
            'client_token',
            'created_at',
            'delivered_at',
            'read_at',
            'is_send_by_me',
        )

    def get_sender_name(self, obj):
        return obj.sender.display_name

    def get_is_send_by_me(self, obj):
        request = self.context.get("request")
        return obj.sender_id == request.user.pk if request else False


class CreateConversationSerializer(serializers.Serializer):
    job_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    client_id = serializers.IntegerField(min_value=1)
    worker_id = serializers.IntegerField(min_value=1)

    def validate(self, data):
        if data['client_id'] == data['worker_id']:
            raise serializers.ValidationError("Client and worker must be different users")
        return data


class ConversationFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['active', 'archived', 'blocked'], default='active')
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, default=_conversation_page_size)

    def validate_limit(self, value):
        if value > _max_page_size():
            raise serializers.ValidationError(f"Limit must be between 1 and {_max_page_size()}")
        return value


class MessagePageSerializer(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, default=_message_page_size)
    before = serializers.IntegerField(min_value=1, required=False)

    def validate_limit(self, value):
        if value > _max_page_size():
            raise serializers.ValidationError(f"Limit must be between 1 and {_max_page_size()}")
        return value


class SendMessageSerializer(serializers.Serializer):
    message_type = serializers.ChoiceField(
        choices=[content_types.TEXT, content_types.IMAGE, content_types.FILE],
        default=content_types.TEXT,
    )
    text = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    file_url = serializers.CharField(required=False, allow_blank=True)
    file_type = serializers.CharField(required=False, allow_blank=True, max_length=100)
    file_name = serializers.CharField(required=False, allow_blank=True)
    file_size = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    client_token = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, data):
        try:
            data['content'] = content_types.build_content(
                data['message_type'],
                text=data.get('text'),
                file_url=data.get('file_url'),
                file_type=data.get('file_type'),
                file_name=data.get('file_name'),
                file_size=data.get('file_size'),
            )
        except MessagingValidationError as exc:
            raise serializers.ValidationError(exc.message)
        return data


class ReportMessageSerializer(serializers.Serializer):
    reason = serializers.ChoiceField(choices=[value for value, _ in MessageReport.REASON_CHOICES])
    description = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class MessageReportSerializer(serializers.ModelSerializer):
    class Meta:
        model = MessageReport
        fields = ['id', 'message_id', 'reported_by_id', 'reason', 'description', 'created_at', 'updated_at']


class AttachmentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()

    def validate_file(self, value):
        max_size = settings.MESSAGING['MAX_FILE_SIZE']
        if value.size > max_size:
            raise serializers.ValidationError(f"File must be smaller than {max_size} bytes")
        return value
