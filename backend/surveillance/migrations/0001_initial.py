from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Station",
            fields=[
                ("sandre_id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("commune", models.CharField(blank=True, default="", max_length=255)),
                ("population", models.PositiveIntegerField(default=0)),
                ("lat", models.FloatField()),
                ("lng", models.FloatField()),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "stations",
                "indexes": [models.Index(fields=["name"], name="stations_name_idx")],
            },
        ),
        migrations.CreateModel(
            name="WastewaterIndicator",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("week", models.CharField(max_length=16)),
                ("station_id", models.CharField(max_length=255)),
                ("value", models.FloatField(blank=True, null=True)),
                ("smoothed_value", models.FloatField(blank=True, null=True)),
            ],
            options={
                "db_table": "wastewater_indicators",
                "indexes": [models.Index(fields=["week"], name="wastewater_week_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("station_id", "week"), name="uniq_wastewater_station_week")
                ],
            },
        ),
        migrations.CreateModel(
            name="ClinicalIndicator",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("week", models.CharField(max_length=16)),
                (
                    "disease_id",
                    models.CharField(
                        choices=[("flu", "Grippe"), ("bronchiolitis", "Bronchiolite"), ("covid_clinical", "COVID-19")],
                        max_length=32,
                    ),
                ),
                ("department", models.CharField(default="national", max_length=16)),
                ("er_visit_rate", models.FloatField(blank=True, null=True)),
            ],
            options={
                "db_table": "clinical_indicators",
                "indexes": [models.Index(fields=["department", "week"], name="clinical_department_week_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("disease_id", "week", "department"),
                        name="uniq_clinical_disease_week_department",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="RougeoleIndicator",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.CharField(max_length=16)),
                ("department", models.CharField(max_length=16)),
                ("notification_rate", models.FloatField(blank=True, null=True)),
                ("cases", models.IntegerField(blank=True, null=True)),
            ],
            options={
                "db_table": "rougeole_indicators",
                "constraints": [
                    models.UniqueConstraint(fields=("year", "department"), name="uniq_rougeole_year_department")
                ],
            },
        ),
        migrations.CreateModel(
            name="SyncRun",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("started_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("running", "Running"),
                            ("success", "Success"),
                            ("partial", "Partial"),
                            ("failed", "Failed"),
                        ],
                        default="running",
                        max_length=16,
                    ),
                ),
                ("stations_count", models.IntegerField(default=0)),
                ("wastewater_count", models.IntegerField(default=0)),
                ("clinical_count", models.IntegerField(default=0)),
                ("rougeole_count", models.IntegerField(default=0)),
                ("errors", models.JSONField(blank=True, null=True)),
            ],
            options={
                "db_table": "sync_runs",
                "indexes": [models.Index(fields=["started_at"], name="sync_runs_started_at_idx")],
            },
        ),
    ]
