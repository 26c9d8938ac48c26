"""
Sync orchestrator: fetch -> parse -> batched upsert for every subsystem.

A run is recorded as a SyncRun row: created in "running" state, updated
once at the end with the counts, the error list and the final status.
Subsystem failures are recorded, never raised; only failures of the run
bookkeeping itself propagate to the caller.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings

from .clinical import fetch_clinical_indicators
from .models import SyncRun
from .rougeole import fetch_rougeole_indicators, national_aggregates
from .wastewater import fetch_indicators, fetch_stations

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    status: str
    stations_count: int = 0
    wastewater_count: int = 0
    clinical_count: int = 0
    rougeole_count: int = 0
    errors: List[str] = field(default_factory=list)
    duration_ms: int = 0

    def as_dict(self) -> dict:
        return {
            "status": self.status,
            "stationsCount": self.stations_count,
            "wastewaterCount": self.wastewater_count,
            "clinicalCount": self.clinical_count,
            "rougeoleCount": self.rougeole_count,
            "errors": list(self.errors) if self.errors else None,
            "durationMs": self.duration_ms,
        }


def derive_status(errors, counts) -> str:
    if not errors:
        return SyncRun.SUCCESS
    if any(count > 0 for count in counts):
        return SyncRun.PARTIAL
    return SyncRun.FAILED


def fetch_wastewater(session, timeout: float):
    """
    Indicators and stations are independent: fetch both concurrently over
    the shared session (GETs only, see build_session()).
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        indicators = pool.submit(fetch_indicators, session, timeout)
        stations = pool.submit(fetch_stations, session, timeout)
        return indicators.result(), stations.result()


def sync_wastewater_data(store, session, timeout: float):
    """Returns (stations_count, indicators_count)."""
    indicators, stations = fetch_wastewater(session, timeout)
    stations_count = store.upsert_stations(stations)
    indicators_count = store.upsert_wastewater(indicators)
    return stations_count, indicators_count


def sync_clinical_data(store, session, timeout: float, departments=()) -> int:
    """
    National rows for every disease, then department rows for each listed
    department. A failing disease only loses its own rows.
    """
    count = 0
    for department in [None, *departments]:
        indicators = fetch_clinical_indicators(session, department=department, timeout=timeout)
        count += store.upsert_clinical(indicators)
    return count


def sync_rougeole_data(store, session, timeout: float) -> int:
    departments = fetch_rougeole_indicators(session, timeout=timeout)
    count = store.upsert_rougeole(departments)
    count += store.upsert_rougeole(national_aggregates(departments))
    return count


def run_sync(store, session, *, timeout: Optional[float] = None, rougeole_timeout: Optional[float] = None,
             departments=None, include_rougeole: Optional[bool] = None) -> SyncResult:
    timeout = timeout if timeout is not None else settings.SURVEILLANCE_HTTP_TIMEOUT
    rougeole_timeout = rougeole_timeout if rougeole_timeout is not None else settings.SURVEILLANCE_ROUGEOLE_TIMEOUT
    if departments is None:
        departments = settings.SURVEILLANCE_CLINICAL_DEPARTMENTS
    if include_rougeole is None:
        include_rougeole = settings.SURVEILLANCE_SYNC_ROUGEOLE

    started = time.monotonic()
    result = SyncResult(status=SyncRun.RUNNING)

    run = store.start_run()
    logger.info("Sync run #%s started", run.pk)

    try:
        try:
            result.stations_count, result.wastewater_count = sync_wastewater_data(store, session, timeout)
        except Exception as exc:
            logger.exception("Wastewater sync failed")
            result.errors.append(f"Wastewater sync failed: {exc}")

        try:
            result.clinical_count = sync_clinical_data(store, session, timeout, departments)
        except Exception as exc:
            logger.exception("Clinical sync failed")
            result.errors.append(f"Clinical sync failed: {exc}")

        if include_rougeole:
            try:
                result.rougeole_count = sync_rougeole_data(store, session, rougeole_timeout)
            except Exception as exc:
                logger.exception("Rougeole sync failed")
                result.errors.append(f"Rougeole sync failed: {exc}")

        result.status = derive_status(
            result.errors,
            [result.stations_count, result.wastewater_count, result.clinical_count, result.rougeole_count],
        )
        _finish(store, run, result)
    except Exception as exc:
        logger.exception("Sync run #%s failed", run.pk)
        result.status = SyncRun.FAILED
        result.errors.append(str(exc))
        _finish(store, run, result)

    result.duration_ms = int((time.monotonic() - started) * 1000)
    logger.info(
        "Sync run #%s finished: %s (stations=%d wastewater=%d clinical=%d rougeole=%d errors=%d) in %d ms",
        run.pk,
        result.status,
        result.stations_count,
        result.wastewater_count,
        result.clinical_count,
        result.rougeole_count,
        len(result.errors),
        result.duration_ms,
    )
    return result


def _finish(store, run, result: SyncResult) -> None:
    store.finish_run(
        run,
        status=result.status,
        stations_count=result.stations_count,
        wastewater_count=result.wastewater_count,
        clinical_count=result.clinical_count,
        rougeole_count=result.rougeole_count,
        errors=result.errors,
    )
