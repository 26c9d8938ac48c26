"""
Storage handle used by the sync orchestrator and the read views.

Every write is a batched "insert, on unique-key conflict overwrite the
value columns" upsert, so re-running a sync over the same data is
idempotent. Each table is written in its own transaction; there is no
transaction spanning tables.
"""
import logging

from django.conf import settings
from django.db import connection, transaction
from django.utils import timezone

from .constants import NATIONAL_DEPARTMENT
from .models import ClinicalIndicator, RougeoleIndicator, Station, SyncRun, WastewaterIndicator
from .parsing import round_half_up

logger = logging.getLogger(__name__)


def _last_per_key(rows, key):
    # the same key twice in one INSERT ... ON CONFLICT is rejected by Postgres
    latest = {}
    for row in rows:
        latest[key(row)] = row
    return list(latest.values())


class SurveillanceStore:
    def __init__(self, batch_size=None):
        self.batch_size = batch_size or settings.SURVEILLANCE_BATCH_SIZE

    def _upsert(self, model, objs, unique_fields, update_fields) -> int:
        if not objs:
            return 0
        with transaction.atomic():
            model.objects.bulk_create(
                objs,
                batch_size=self.batch_size,
                update_conflicts=True,
                unique_fields=unique_fields,
                update_fields=update_fields,
            )
        logger.info("Upserted %d rows into %s", len(objs), model._meta.db_table)
        return len(objs)

    def upsert_stations(self, rows) -> int:
        now = timezone.now()
        rows = _last_per_key(rows, lambda r: r.sandre_id)
        objs = [
            Station(
                sandre_id=r.sandre_id,
                name=r.name,
                commune=r.commune,
                population=r.population,
                lat=r.lat,
                lng=r.lng,
                updated_at=now,
            )
            for r in rows
        ]
        return self._upsert(
            Station,
            objs,
            unique_fields=["sandre_id"],
            update_fields=["name", "commune", "population", "lat", "lng", "updated_at"],
        )

    def upsert_wastewater(self, rows) -> int:
        rows = _last_per_key(rows, lambda r: (r.station_id, r.week))
        objs = [
            WastewaterIndicator(
                week=r.week,
                station_id=r.station_id,
                value=r.value,
                smoothed_value=r.smoothed_value,
            )
            for r in rows
        ]
        return self._upsert(
            WastewaterIndicator,
            objs,
            unique_fields=["station_id", "week"],
            update_fields=["value", "smoothed_value"],
        )

    def upsert_clinical(self, rows) -> int:
        rows = _last_per_key(rows, lambda r: (r.disease_id, r.week, r.department))
        objs = [
            ClinicalIndicator(
                week=r.week,
                disease_id=r.disease_id,
                department=r.department,
                er_visit_rate=r.er_visit_rate,
            )
            for r in rows
        ]
        return self._upsert(
            ClinicalIndicator,
            objs,
            unique_fields=["disease_id", "week", "department"],
            update_fields=["er_visit_rate"],
        )

    def upsert_rougeole(self, rows) -> int:
        rows = _last_per_key(rows, lambda r: (r.year, r.department))
        objs = [
            RougeoleIndicator(
                year=r.year,
                department=r.department,
                notification_rate=r.notification_rate,
                cases=round_half_up(r.cases),
            )
            for r in rows
        ]
        return self._upsert(
            RougeoleIndicator,
            objs,
            unique_fields=["year", "department"],
            update_fields=["notification_rate", "cases"],
        )

    def start_run(self) -> SyncRun:
        return SyncRun.objects.create(status=SyncRun.RUNNING)

    def finish_run(self, run: SyncRun, *, status, stations_count, wastewater_count,
                   clinical_count, rougeole_count, errors) -> None:
        SyncRun.objects.filter(pk=run.pk).update(
            completed_at=timezone.now(),
            status=status,
            stations_count=stations_count,
            wastewater_count=wastewater_count,
            clinical_count=clinical_count,
            rougeole_count=rougeole_count,
            errors=list(errors) if errors else None,
        )

    def latest_run(self):
        return SyncRun.objects.order_by("-started_at", "-pk").first()

    def ping(self) -> None:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")

    def stations(self):
        return Station.objects.order_by("name")

    def wastewater(self, station_ids=None, week_from=None, week_to=None):
        qs = WastewaterIndicator.objects.all()
        if station_ids:
            qs = qs.filter(station_id__in=station_ids)
        if week_from:
            qs = qs.filter(week__gte=week_from)
        if week_to:
            qs = qs.filter(week__lte=week_to)
        return qs.order_by("week", "station_id")

    def clinical(self, disease_ids=None, department=NATIONAL_DEPARTMENT, week_from=None, week_to=None):
        qs = ClinicalIndicator.objects.filter(department=department)
        if disease_ids:
            qs = qs.filter(disease_id__in=disease_ids)
        if week_from:
            qs = qs.filter(week__gte=week_from)
        if week_to:
            qs = qs.filter(week__lte=week_to)
        return qs.order_by("week", "disease_id")

    def rougeole(self, department=NATIONAL_DEPARTMENT):
        return RougeoleIndicator.objects.filter(department=department).order_by("year")
