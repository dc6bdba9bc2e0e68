from datetime import date
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from fleet.exceptions import FleetError
from fleet.models import Vehicle
from fleet.pdf_utils import generate_report_pdf
from fleet.services.reports import current_month_range, filter_report


def _parse_date(value, option):
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise CommandError(f"{option} must be a date in YYYY-MM-DD format, got {value!r}")


class Command(BaseCommand):
    help = "Write the fleet report PDF for a date range (defaults to the current month)."

    def add_arguments(self, parser):
        parser.add_argument("--start", help="First day of the period (YYYY-MM-DD).")
        parser.add_argument("--end", help="Last day of the period (YYYY-MM-DD).")
        parser.add_argument("--vehicle", type=int, help="Restrict the report to one vehicle id.")
        parser.add_argument(
            "--output",
            help="Target file or directory. Defaults to fleet_report_<start>_<end>.pdf in the current directory.",
        )

    def handle(self, *args, **options):
        default_start, default_end = current_month_range()
        start = _parse_date(options["start"], "--start") if options.get("start") else default_start
        end = _parse_date(options["end"], "--end") if options.get("end") else default_end

        vehicle = None
        if options.get("vehicle") is not None:
            vehicle = Vehicle.objects.filter(pk=options["vehicle"]).first()
            if vehicle is None:
                raise CommandError(f"Vehicle {options['vehicle']} does not exist.")

        try:
            report = filter_report(start, end, vehicle)
        except FleetError as exc:
            raise CommandError(str(exc))

        output = Path(options.get("output") or report.filename)
        if output.is_dir():
            output = output / report.filename
        output.write_bytes(generate_report_pdf(report))

        self.stdout.write(
            self.style.SUCCESS(
                f"Report written to {output} ({report.route_count} routes, {len(report.refuels)} refuels)"
            )
        )
