# apps/messaging/admin.py
from django.contrib import admin
from .models import Conversation, Message, MessageReport


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ("id", "job_id", "client", "worker", "status", "client_unread_count", "worker_unread_count", "last_message_time")
    list_filter = ("status",)
    search_fields = ("client__email", "worker__email", "job_id")
    raw_id_fields = ("client", "worker", "blocked_by", "last_message_sender")
    readonly_fields = ("client_unread_count", "worker_unread_count", "created_at", "updated_at")


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "conversation", "sender", "message_type", "status", "is_deleted", "created_at")
    list_filter = ("message_type", "status", "is_deleted")
    raw_id_fields = ("conversation", "sender", "receiver")
    readonly_fields = ("created_at", "delivered_at", "read_at", "deleted_at", "client_token")


@admin.register(MessageReport)
class MessageReportAdmin(admin.ModelAdmin):
    list_display = ("id", "message", "reported_by", "reason", "created_at")
    list_filter = ("reason",)
    raw_id_fields = ("message", "reported_by")
