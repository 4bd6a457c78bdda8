from django.core.management.base import BaseCommand

from notifications_api.outbox import dispatch_pending


class Command(BaseCommand):
    help = 'Retry PENDING and FAILED outbox emails that still have attempts left.'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=100)

    def handle(self, *args, **options):
        counts = dispatch_pending(limit=options['limit'])
        self.stdout.write(self.style.SUCCESS(f"Outbox dispatch: {counts['sent']} sent, {counts['failed']} failed"))
