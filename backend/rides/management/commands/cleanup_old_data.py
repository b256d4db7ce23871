from django.core.management.base import BaseCommand
from django.utils import timezone
from datetime import timedelta
from notifications.models import Notification
from rides.models import ActiveRide, TrackingSession
import logging

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Clean up old completed rides, stopped tracking sessions and read notifications."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=90,
            help="Delete records older than this many days (default: 90).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be deleted without actually deleting.",
        )

    def handle(self, *args, **options):
        days = options["days"]
        dry_run = options["dry_run"]
        cutoff = timezone.now() - timedelta(days=days)

        old_rides = ActiveRide.objects.filter(status='completed', date__lt=cutoff.date())
        old_sessions = TrackingSession.objects.filter(is_active=False, started_at__lt=cutoff)
        old_notifications = Notification.objects.filter(read=True, created_at__lt=cutoff)

        rides_count = old_rides.count()
        sessions_count = old_sessions.count()
        notifications_count = old_notifications.count()

        if dry_run:
            self.stdout.write(
                self.style.WARNING(
                    f"DRY RUN: Would delete {rides_count} rides, {sessions_count} tracking sessions and "
                    f"{notifications_count} read notifications older than {days} days."
                )
            )
            return

        old_sessions.delete()
        old_rides.delete()
        old_notifications.delete()
        logger.info(
            "Cleaned up %s rides, %s tracking sessions, %s notifications",
            rides_count, sessions_count, notifications_count,
        )
        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {rides_count} rides, {sessions_count} tracking sessions and "
                f"{notifications_count} read notifications older than {days} days."
            )
        )
