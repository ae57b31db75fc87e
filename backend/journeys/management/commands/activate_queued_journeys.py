from django.core.management.base import BaseCommand

from journeys.models import FuelRecord
from journeys.services.classification import is_terminal_checkpoint_filled
from journeys.services.lifecycle import activate_next_queued, complete_and_activate_next
from journeys.services.truck_numbers import normalize_truck_no


class Command(BaseCommand):
    help = "Complete finished active journeys and promote each truck's next queued journey."

    def add_arguments(self, parser):
        parser.add_argument("--truck", type=str, help="Only sweep this truck number")
        parser.add_argument("--dry-run", action="store_true", help="Report what would change without saving")

    def handle(self, *args, **options):
        active = FuelRecord.objects.filter(
            journey_status=FuelRecord.STATUS_ACTIVE, is_cancelled=False, is_deleted=False, is_locked=False,
        )
        queued = FuelRecord.objects.filter(
            journey_status=FuelRecord.STATUS_QUEUED, is_cancelled=False, is_deleted=False,
        )
        if options.get("truck"):
            key = normalize_truck_no(options["truck"])
            active = active.filter(truck_no_normalized=key)
            queued = queued.filter(truck_no_normalized=key)

        dry_run = options["dry_run"]
        completed = 0
        activated = 0

        for record in active.order_by("truck_no_normalized", "date"):
            if dry_run:
                if record.balance == 0 and is_terminal_checkpoint_filled(record):
                    completed += 1
                    self.stdout.write(f"Would complete {record.truck_no} {record.going_do}")
                continue
            promoted = complete_and_activate_next(record)
            if record.journey_status == FuelRecord.STATUS_COMPLETED:
                completed += 1
                self.stdout.write(f"Completed {record.truck_no} {record.going_do}")
            if promoted is not None:
                activated += 1
                self.stdout.write(self.style.SUCCESS(f"Activated {promoted.truck_no} {promoted.going_do}"))

        # Trucks left with queued journeys but nothing active, e.g. after a cancellation
        if not dry_run:
            trucks = set(queued.values_list("truck_no", flat=True))
            for truck_no in sorted(trucks):
                promoted = activate_next_queued(truck_no)
                if promoted is not None:
                    activated += 1
                    self.stdout.write(self.style.SUCCESS(f"Activated {promoted.truck_no} {promoted.going_do}"))

        self.stdout.write(self.style.SUCCESS(f"Completed {completed} journeys, activated {activated} queued journeys."))
