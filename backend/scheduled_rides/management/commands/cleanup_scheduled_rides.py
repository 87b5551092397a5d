from datetime import timedelta
import logging

from django.core.management.base import BaseCommand
from services.scheduling import get_ride_manager

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Remove scheduled rides from the local store once they are past the retention window."

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Delete rides scheduled more than this many days ago (default: configured retention).",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be deleted without actually deleting.",
        )

    def handle(self, *args, **options):
        manager = get_ride_manager()
        retention = timedelta(days=options["days"]) if options["days"] is not None else None
        days = options["days"] if options["days"] is not None else manager.config.retention.days

        if options["dry_run"]:
            rides_count = len(manager.prunable(retention))
            self.stdout.write(
                self.style.WARNING(
                    f"DRY RUN: Would delete {rides_count} scheduled rides older than {days} days."
                )
            )
            return

        rides_count = manager.cleanup(retention)
        logger.info(f"Cleaned up {rides_count} old scheduled rides")
        self.stdout.write(
            self.style.SUCCESS(
                f"Deleted {rides_count} scheduled rides older than {days} days."
            )
        )
