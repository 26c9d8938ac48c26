import logging
import time

from django.db import DatabaseError
from django.http import JsonResponse

from surveillance.store import SurveillanceStore

logger = logging.getLogger(__name__)


def health_check(request):
    return JsonResponse({"status": "ok"})


def health_db(request):
    """
    GET /api/health/db/
    Database connectivity plus a summary of the last sync run.
    """
    start = time.perf_counter()
    store = SurveillanceStore()
    try:
        store.ping()
        last = store.latest_run()
    except DatabaseError:
        logger.exception("Database health check failed")
        return JsonResponse(
            {
                "connected": False,
                "lastSync": None,
                "responseTimeMs": round((time.perf_counter() - start) * 1000),
            },
            status=503,
        )

    last_sync = None
    if last is not None:
        last_sync = {
            "status": last.status,
            "startedAt": last.started_at.isoformat(),
            "completedAt": last.completed_at.isoformat() if last.completed_at else None,
            "stationsCount": last.stations_count,
            "wastewaterCount": last.wastewater_count,
            "clinicalCount": last.clinical_count,
            "rougeoleCount": last.rougeole_count,
            "errors": last.errors,
        }

    return JsonResponse(
        {
            "connected": True,
            "lastSync": last_sync,
            "responseTimeMs": round((time.perf_counter() - start) * 1000),
        }
    )
