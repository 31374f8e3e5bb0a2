import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Conversation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('job_id', models.PositiveBigIntegerField(blank=True, db_index=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('archived_by_client', 'Archived by client'), ('archived_by_worker', 'Archived by worker'), ('blocked', 'Blocked')], default='active', max_length=20)),
                ('client_unread_count', models.PositiveIntegerField(default=0)),
                ('worker_unread_count', models.PositiveIntegerField(default=0)),
                ('last_message_text', models.TextField(blank=True)),
                ('last_message_time', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('blocked_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='client_conversations', to=settings.AUTH_USER_MODEL)),
                ('last_message_sender', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('worker', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='worker_conversations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'indexes': [
                    models.Index(fields=['client', 'status'], name='conv_client_status_idx'),
                    models.Index(fields=['worker', 'status'], name='conv_worker_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('job_id__isnull', False)), fields=('job_id', 'client', 'worker'), name='uniq_conversation_per_job'),
                    models.UniqueConstraint(condition=models.Q(('job_id__isnull', True)), fields=('client', 'worker'), name='uniq_conversation_without_job'),
                    models.CheckConstraint(condition=models.Q(('client', models.F('worker')), _negated=True), name='conversation_distinct_participants'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Message',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('message_type', models.CharField(choices=[('text', 'Text'), ('image', 'Image'), ('file', 'File')], default='text', max_length=10)),
                ('text', models.TextField(blank=True)),
                ('file_url', models.URLField(blank=True, max_length=1000)),
                ('file_type', models.CharField(blank=True, max_length=100)),
                ('file_name', models.CharField(blank=True, max_length=255)),
                ('file_size', models.PositiveIntegerField(blank=True, null=True)),
                ('status', models.CharField(choices=[('sent', 'Sent'), ('delivered', 'Delivered'), ('read', 'Read')], default='sent', max_length=10)),
                ('client_token', models.UUIDField(blank=True, null=True)),
                ('created_at', models.DateTimeField()),
                ('delivered_at', models.DateTimeField(blank=True, null=True)),
                ('read_at', models.DateTimeField(blank=True, null=True)),
                ('is_deleted', models.BooleanField(default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('conversation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='messages', to='messaging.conversation')),
                ('receiver', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='received_messages', to=settings.AUTH_USER_MODEL)),
                ('sender', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='sent_messages', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['created_at', 'id'],
                'indexes': [
                    models.Index(fields=['conversation', 'created_at', 'id'], name='msg_conv_created_idx'),
                    models.Index(fields=['receiver', 'status'], name='msg_receiver_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('client_token__isnull', False)), fields=('conversation', 'sender', 'client_token'), name='uniq_message_client_token'),
                    models.CheckConstraint(condition=models.Q(models.Q(('file_url', ''), ('message_type', 'text')), models.Q(('message_type__in', ['image', 'file']), ('text', ''), models.Q(('file_url', ''), _negated=True)), _connector='OR'), name='message_payload_matches_type'),
                ],
            },
        ),
        migrations.CreateModel(
            name='MessageReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('reason', models.CharField(choices=[('spam', 'Spam'), ('harassment', 'Harassment'), ('inappropriate', 'Inappropriate'), ('fraud', 'Fraud'), ('other', 'Other')], max_length=20)),
                ('description', models.TextField(blank=True, max_length=1000)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('message', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='reports', to='messaging.message')),
                ('reported_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='message_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
                'unique_together': {('message', 'reported_by')},
            },
        ),
    ]
