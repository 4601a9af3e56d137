from django.core.management.base import BaseCommand

from custom_field_permissions.instances import InstanceRegistry


class Command(BaseCommand):
    help = "Clear the cached list of deployment instances used by field permissions."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reload",
            action="store_true",
            help="Reload the instance list right after clearing the cache.",
        )

    def handle(self, *args, **options):
        registry = InstanceRegistry()
        registry.invalidate()
        self.stdout.write(self.style.SUCCESS("Field permission instance cache cleared."))

        if options.get("reload"):
            instances = registry.list_instances()
            if instances:
                self.stdout.write(f"Loaded {len(instances)} instances: {', '.join(instances)}")
            else:
                self.stderr.write(
                    self.style.WARNING(
                        f"No instances loaded from {registry.source_file} "
                        f"(key '{registry.source_key}')."
                    )
                )
