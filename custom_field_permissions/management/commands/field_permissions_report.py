import json

from django.core.management.base import BaseCommand
from django.db import OperationalError, ProgrammingError

from custom_field_permissions.report import FieldPermissionsReport
from custom_field_permissions.service import get_field_permissions_service


class Command(BaseCommand):
    help = "Print the field permissions overview."

    def add_arguments(self, parser):
        parser.add_argument(
            "--format",
            choices=("table", "json"),
            default="table",
            help="Output format (default: table).",
        )

    def handle(self, *args, **options):
        report = FieldPermissionsReport(get_field_permissions_service())
        try:
            overview = report.build()
        except (OperationalError, ProgrammingError) as exc:
            self.stderr.write(
                self.style.WARNING(f"Unable to build field permissions report (DB not ready): {exc}")
            )
            return

        if options.get("format") == "json":
            self.stdout.write(json.dumps(overview, indent=2, default=str))
            return

        self.stdout.write(" | ".join(str(cell) for cell in overview["header"]))
        for row in overview["rows"]:
            self.stdout.write(" | ".join(str(cell) for cell in row))
        if not overview["rows"]:
            self.stdout.write(self.style.WARNING("No field storages found."))
