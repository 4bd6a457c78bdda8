from django.core.management.base import BaseCommand

from notifications_api import services


class Command(BaseCommand):
    help = 'Send reminders for sessions starting in 30 minutes and clean up old read notifications.'

    def add_arguments(self, parser):
        parser.add_argument('--cleanup-days', type=int, default=None,
                            help='Also delete read notifications older than this many days.')

    def handle(self, *args, **options):
        sent = services.check_upcoming_sessions()
        self.stdout.write(self.style.SUCCESS(f"Session reminders sent: {sent}"))
        days = options.get('cleanup_days')
        if days:
            deleted = services.cleanup_old_notifications(days)
            self.stdout.write(self.style.SUCCESS(f"Old notifications deleted: {deleted}"))
