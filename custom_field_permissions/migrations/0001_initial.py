from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="FieldStorageConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entity_type", models.CharField(max_length=64, verbose_name="Entity type")),
                ("field_name", models.CharField(max_length=128, verbose_name="Field name")),
                ("field_type", models.CharField(default="string", max_length=64, verbose_name="Field type")),
                (
                    "bundles",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="Bundles of the entity type that use this field.",
                        verbose_name="Bundles",
                    ),
                ),
                ("locked", models.BooleanField(default=False, verbose_name="Locked")),
                ("third_party_settings", models.JSONField(blank=True, default=dict)),
                ("version", models.PositiveIntegerField(default=0, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "custom_field_permissions_field_storage",
                "ordering": ["entity_type", "field_name"],
                "unique_together": {("entity_type", "field_name")},
                "verbose_name": "Field storage",
                "verbose_name_plural": "Field storages",
            },
        ),
        migrations.CreateModel(
            name="FieldRole",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False, verbose_name="Machine name")),
                ("label", models.CharField(max_length=128, verbose_name="Label")),
                (
                    "admin",
                    models.BooleanField(
                        default=False,
                        help_text="Administrator roles hold every permission.",
                        verbose_name="Administrator",
                    ),
                ),
                ("weight", models.IntegerField(default=0)),
                ("permissions", models.JSONField(blank=True, default=list)),
                (
                    "users",
                    models.ManyToManyField(
                        blank=True,
                        related_name="field_roles",
                        to=settings.AUTH_USER_MODEL,
                        verbose_name="Users",
                    ),
                ),
            ],
            options={
                "db_table": "custom_field_permissions_role",
                "ordering": ["weight", "id"],
                "verbose_name": "Role",
                "verbose_name_plural": "Roles",
            },
        ),
    ]
