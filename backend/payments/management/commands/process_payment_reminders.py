from django.core.management.base import BaseCommand

from services.booking_management import complete_finished_bookings
from services.payments import send_balance_reminders, suspend_overdue_payments


class Command(BaseCommand):
    help = "Send balance reminders, suspend overdue payment plans and complete finished bookings."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reminders-only",
            action="store_true",
            help="Only send reminders; skip suspensions and booking completion.",
        )

    def handle(self, *args, **options):
        reminders = send_balance_reminders()
        message = f"Sent {reminders} reminder(s)"

        if not options["reminders_only"]:
            suspended = suspend_overdue_payments()
            completed = complete_finished_bookings()
            message += f"; suspended {suspended} payment plan(s); completed {completed} booking(s)"

        self.stdout.write(self.style.SUCCESS(message + "."))
