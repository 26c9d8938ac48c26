from django.db import models

from .constants import BRONCHIOLITIS, COVID_CLINICAL, FLU, NATIONAL_DEPARTMENT


class Station(models.Model):
    """
    Wastewater treatment plant monitored by SUM'Eau.
    `name` is the join key used by WastewaterIndicator.station_id.
    """
    sandre_id = models.CharField(max_length=64, primary_key=True)
    name = models.CharField(max_length=255)
    commune = models.CharField(max_length=255, blank=True, default="")
    population = models.PositiveIntegerField(default=0)
    lat = models.FloatField()
    lng = models.FloatField()

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "stations"
        indexes = [
            models.Index(fields=["name"], name="stations_name_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.sandre_id})"


class WastewaterIndicator(models.Model):
    """
    Weekly viral load for one station (or the national aggregate).
    Idempotency is enforced by unique (station_id, week).
    """
    week = models.CharField(max_length=16)
    station_id = models.CharField(max_length=255)

    # null means "not measured", distinct from zero
    value = models.FloatField(null=True, blank=True)
    smoothed_value = models.FloatField(null=True, blank=True)

    class Meta:
        db_table = "wastewater_indicators"
        constraints = [
            models.UniqueConstraint(
                fields=["station_id", "week"],
                name="uniq_wastewater_station_week",
            )
        ]
        indexes = [
            models.Index(fields=["week"], name="wastewater_week_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.station_id} {self.week}"


class ClinicalIndicator(models.Model):
    DISEASE_CHOICES = [
        (FLU, "Grippe"),
        (BRONCHIOLITIS, "Bronchiolite"),
        (COVID_CLINICAL, "COVID-19"),
    ]

    week = models.CharField(max_length=16)
    disease_id = models.CharField(max_length=32, choices=DISEASE_CHOICES)
    department = models.CharField(max_length=16, default=NATIONAL_DEPARTMENT)
    er_visit_rate = models.FloatField(null=True, blank=True)

    class Meta:
        db_table = "clinical_indicators"
        constraints = [
            models.UniqueConstraint(
                fields=["disease_id", "week", "department"],
                name="uniq_clinical_disease_week_department",
            )
        ]
        indexes = [
            models.Index(fields=["department", "week"], name="clinical_department_week_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.disease_id} {self.department} {self.week}"


class RougeoleIndicator(models.Model):
    year = models.CharField(max_length=16)
    department = models.CharField(max_length=16)
    notification_rate = models.FloatField(null=True, blank=True)
    cases = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "rougeole_indicators"
        constraints = [
            models.UniqueConstraint(
                fields=["year", "department"],
                name="uniq_rougeole_year_department",
            )
        ]

    def __str__(self) -> str:
        return f"rougeole {self.department} {self.year}"


class SyncRun(models.Model):
    RUNNING = "running"
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    STATUS_CHOICES = [
        (RUNNING, "Running"),
        (SUCCESS, "Success"),
        (PARTIAL, "Partial"),
        (FAILED, "Failed"),
    ]

    started_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=RUNNING)

    stations_count = models.IntegerField(default=0)
    wastewater_count = models.IntegerField(default=0)
    clinical_count = models.IntegerField(default=0)
    rougeole_count = models.IntegerField(default=0)

    errors = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "sync_runs"
        indexes = [
            models.Index(fields=["started_at"], name="sync_runs_started_at_idx"),
        ]

    def __str__(self) -> str:
        return f"sync #{self.pk} {self.status}"
