from django.core.management.base import BaseCommand
from django.db import transaction

from apps.messaging.models import Conversation
from apps.messaging.services.unread import recount_unread


class Command(BaseCommand):
    help = "Recompute every conversation's unread counters from message read state."

    def add_arguments(self, parser):
        parser.add_argument('--dry-run', action='store_true', help="Report drift without fixing it")

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        checked = fixed = 0

        for conversation_id in Conversation.objects.values_list('id', flat=True).iterator():
            with transaction.atomic():
                conversation = Conversation.objects.select_for_update().get(pk=conversation_id)
                if recount_unread(conversation, save=not dry_run):
                    fixed += 1
                    self.stdout.write(
                        f"Conversation {conversation.id}: client={conversation.client_unread_count} "
                        f"worker={conversation.worker_unread_count}"
                    )
            checked += 1

        verb = "would fix" if dry_run else "fixed"
        self.stdout.write(self.style.SUCCESS(f"Checked {checked} conversations, {verb} {fixed}"))
