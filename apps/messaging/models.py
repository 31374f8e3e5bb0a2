# apps/messaging/models.py
from django.conf import settings
from django.db import models
from django.db.models import F, Q

from .content import TEXT, IMAGE, FILE, TextContent, ImageContent, FileContent


class Conversation(models.Model):
    ACTIVE = 'active'
    ARCHIVED_BY_CLIENT = 'archived_by_client'
    ARCHIVED_BY_WORKER = 'archived_by_worker'
    BLOCKED = 'blocked'

    STATUS_CHOICES = (
        (ACTIVE, 'Active'),
        (ARCHIVED_BY_CLIENT, 'Archived by client'),
        (ARCHIVED_BY_WORKER, 'Archived by worker'),
        (BLOCKED, 'Blocked'),
    )
    ARCHIVED_STATUSES = (ARCHIVED_BY_CLIENT, ARCHIVED_BY_WORKER)

    job_id = models.PositiveBigIntegerField(null=True, blank=True, db_index=True)
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='client_conversations')
    worker = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='worker_conversations')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ACTIVE)
    blocked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    client_unread_count = models.PositiveIntegerField(default=0)
    worker_unread_count = models.PositiveIntegerField(default=0)

    last_message_text = models.TextField(blank=True)
    last_message_time = models.DateTimeField(null=True, blank=True)
    last_message_sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['job_id', 'client', 'worker'],
                condition=Q(job_id__isnull=False),
                name='uniq_conversation_per_job',
            ),
            models.UniqueConstraint(
                fields=['client', 'worker'],
                condition=Q(job_id__isnull=True),
                name='uniq_conversation_without_job',
            ),
            models.CheckConstraint(
                condition=~Q(client=F('worker')),
                name='conversation_distinct_participants',
            ),
        ]
        indexes = [
            models.Index(fields=['client', 'status'], name='conv_client_status_idx'),
            models.Index(fields=['worker', 'status'], name='conv_worker_status_idx'),
        ]

    def __str__(self):
        return f"{self.client} ↔ {self.worker} (job {self.job_id})"

    def is_participant(self, user):
        return user.pk in (self.client_id, self.worker_id)

    def role_of(self, user):
        if user.pk == self.client_id:
            return 'client'
        if user.pk == self.worker_id:
            return 'worker'
        return None

    def other_participant_id(self, user_id):
        return self.worker_id if user_id == self.client_id else self.client_id

    def unread_field_for(self, user_id):
        return 'client_unread_count' if user_id == self.client_id else 'worker_unread_count'

    def unread_count_for(self, user):
        return getattr(self, self.unread_field_for(user.pk))

    @property
    def is_blocked(self):
        return self.status == self.BLOCKED

    @property
    def is_archived(self):
        return self.status in self.ARCHIVED_STATUSES


class Message(models.Model):
    MESSAGE_TYPE_CHOICES = (
        (TEXT, 'Text'),
        (IMAGE, 'Image'),
        (FILE, 'File'),
    )

    SENT = 'sent'
    DELIVERED = 'delivered'
    READ = 'read'

    STATUS_CHOICES = (
        (SENT, 'Sent'),
        (DELIVERED, 'Delivered'),
        (READ, 'Read'),
    )

    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sent_messages')
    receiver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='received_messages')

    message_type = models.CharField(max_length=10, choices=MESSAGE_TYPE_CHOICES, default=TEXT)
    text = models.TextField(blank=True)
    file_url = models.URLField(max_length=1000, blank=True)
    file_type = models.CharField(max_length=100, blank=True)
    file_name = models.CharField(max_length=255, blank=True)
    file_size = models.PositiveIntegerField(null=True, blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=SENT)
    client_token = models.UUIDField(null=True, blank=True)

    created_at = models.DateTimeField()
    delivered_at = models.DateTimeField(null=True, blank=True)
    read_at = models.DateTimeField(null=True, blank=True)

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['conversation', 'sender', 'client_token'],
                condition=Q(client_token__isnull=False),
                name='uniq_message_client_token',
            ),
            models.CheckConstraint(
                condition=(
                    Q(message_type=TEXT, file_url='')
                    | (Q(message_type__in=[IMAGE, FILE], text='') & ~Q(file_url=''))
                ),
                name='message_payload_matches_type',
            ),
        ]
        indexes = [
            models.Index(fields=['conversation', 'created_at', 'id'], name='msg_conv_created_idx'),
            models.Index(fields=['receiver', 'status'], name='msg_receiver_status_idx'),
        ]

    def __str__(self):
        return f"{self.sender}: {self.preview[:30]}"

    @property
    def content(self):
        if self.message_type == IMAGE:
            return ImageContent(self.file_url, self.file_type, self.file_size)
        if self.message_type == FILE:
            return FileContent(self.file_url, self.file_name, self.file_size, self.file_type)
        return TextContent(self.text)

    @property
    def preview(self):
        if self.message_type == TEXT:
            return self.text
        if self.message_type == IMAGE:
            return 'Image'
        return f'File: {self.file_name}'


class MessageReport(models.Model):
    REASON_CHOICES = (
        ('spam', 'Spam'),
        ('harassment', 'Harassment'),
        ('inappropriate', 'Inappropriate'),
        ('fraud', 'Fraud'),
        ('other', 'Other'),
    )

    message = models.ForeignKey(Message, on_delete=models.CASCADE, related_name='reports')
    reported_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='message_reports')
    reason = models.CharField(max_length=20, choices=REASON_CHOICES)
    description = models.TextField(blank=True, max_length=1000)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ('message', 'reported_by')
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.reported_by} reported #{self.message_id} ({self.reason})"
