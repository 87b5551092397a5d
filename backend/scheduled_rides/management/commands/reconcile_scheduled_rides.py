from django.core.management.base import BaseCommand
from services.scheduling import run_reconciliation


class Command(BaseCommand):
    help = "Book scheduled rides that are due, expire stale ones and sync the remote mirror."

    def add_arguments(self, parser):
        parser.add_argument(
            "--skip-cleanup",
            action="store_true",
            help="Do not prune old records after the pass.",
        )

    def handle(self, *args, **options):
        summary = run_reconciliation(
            trigger="management_command",
            with_cleanup=not options["skip_cleanup"],
        )

        if summary is None:
            self.stdout.write(self.style.WARNING("Another reconciliation pass is running; nothing done."))
            return

        self.stdout.write(
            self.style.SUCCESS(
                f"Booked {len(summary.booked)} ride(s); expired {len(summary.expired)}; "
                f"{len(summary.failed)} booking attempt(s) failed and will be retried."
            )
        )
