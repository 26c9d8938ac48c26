import hmac
import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .constants import CLINICAL_DISEASE_IDS, NATIONAL_DEPARTMENT
from .severity import classify_series
from .sources import build_session
from .store import SurveillanceStore
from .sync import run_sync

logger = logging.getLogger(__name__)


def _csv_param(request, name: str) -> list[str]:
    raw = request.GET.get(name) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


def _week_range(request):
    return (request.GET.get("from") or "").strip() or None, (request.GET.get("to") or "").strip() or None


def _is_authorized(request) -> bool:
    secret = settings.CRON_SECRET
    if not secret:
        return False
    header = request.headers.get("Authorization") or ""
    return hmac.compare_digest(header, f"Bearer {secret}")


@require_GET
def sync(request):
    """
    GET /api/sync/
    Header: Authorization: Bearer <CRON_SECRET>

    Always 200 once authorized: the sync outcome is in the body's "status".
    """
    if not _is_authorized(request):
        return JsonResponse({"error": "Unauthorized"}, status=401)

    session = build_session()
    try:
        result = run_sync(SurveillanceStore(), session)
    finally:
        session.close()
    return JsonResponse(result.as_dict())


@require_GET
def wastewater_indicators(request):
    """
    GET /api/wastewater/indicators/?stations=A,B&from=2024-W01&to=2024-W52

    Returns the stored weekly rows plus a severity classification of the
    latest week for each station.
    """
    station_ids = _csv_param(request, "stations")
    week_from, week_to = _week_range(request)

    rows = list(
        SurveillanceStore()
        .wastewater(station_ids, week_from, week_to)
        .values("week", "station_id", "value", "smoothed_value")
    )

    series = {}
    for row in rows:
        series.setdefault(row["station_id"], []).append(row["smoothed_value"])

    severity = {}
    for station_id, values in series.items():
        classification = classify_series(values)
        severity[station_id] = classification.as_dict() if classification else None

    return JsonResponse(
        {
            "indicators": [
                {
                    "week": r["week"],
                    "stationId": r["station_id"],
                    "value": r["value"],
                    "smoothedValue": r["smoothed_value"],
                }
                for r in rows
            ],
            "severity": severity,
        }
    )


@require_GET
def stations(request):
    data = [
        {
            "sandreId": s.sandre_id,
            "name": s.name,
            "commune": s.commune,
            "population": s.population,
            "lat": s.lat,
            "lng": s.lng,
        }
        for s in SurveillanceStore().stations()
    ]
    return JsonResponse({"stations": data})


@require_GET
def clinical_indicators(request):
    """
    GET /api/clinical/indicators/?diseases=flu,covid_clinical&department=75&from=..&to=..
    Department defaults to national.
    """
    disease_ids = _csv_param(request, "diseases")
    unknown = [d for d in disease_ids if d not in CLINICAL_DISEASE_IDS]
    if unknown:
        return JsonResponse(
            {"error": f"Unknown disease ids: {', '.join(unknown)}", "allowed": list(CLINICAL_DISEASE_IDS)},
            status=400,
        )

    department = (request.GET.get("department") or "").strip() or NATIONAL_DEPARTMENT
    week_from, week_to = _week_range(request)

    rows = SurveillanceStore().clinical(disease_ids, department, week_from, week_to)
    return JsonResponse(
        {
            "department": department,
            "indicators": [
                {"week": r.week, "diseaseId": r.disease_id, "erVisitRate": r.er_visit_rate}
                for r in rows
            ],
        }
    )


@require_GET
def rougeole_indicators(request):
    """GET /api/rougeole/indicators/?department=75 (defaults to national)"""
    department = (request.GET.get("department") or "").strip() or NATIONAL_DEPARTMENT
    rows = SurveillanceStore().rougeole(department)
    return JsonResponse(
        {
            "department": department,
            "indicators": [
                {"year": r.year, "notificationRate": r.notification_rate, "cases": r.cases}
                for r in rows
            ],
        }
    )
