"""
Clinical surveillance (ER visit rates) from the Odissé v2.1 records API.

Each disease is fetched independently; a failing disease is logged and
contributes no rows, it never aborts the others.
"""
import logging
from concurrent.futures import ThreadPoolExecutor

from .constants import (
    CLINICAL_DATASETS,
    CLINICAL_DISEASE_IDS,
    CLINICAL_PAGE_SIZE,
    NATIONAL_DEPARTMENT,
    ODISSE_API_BASE,
)
from .parsing import finite_number, normalize_week
from .records import ClinicalRow, Parsed
from .sources import ClinicalFetchError, describe_status

logger = logging.getLogger(__name__)


def build_query(disease_id: str, department=None):
    """Return (url, params) for the first page of a disease's records query."""
    meta = CLINICAL_DATASETS[disease_id]
    dataset_id = meta.department_dataset_id if department else meta.dataset_id

    where = f"sursaud_cl_age_gene='{meta.age_filter}'"
    if department:
        where += f" AND dep='{department}'"

    params = {
        "where": where,
        "select": f"semaine,{meta.rate_field}",
        "order_by": "semaine ASC",
        "limit": CLINICAL_PAGE_SIZE,
        "offset": 0,
    }
    return f"{ODISSE_API_BASE}/{dataset_id}/records", params


def parse_clinical_records(records, disease_id: str, department=None) -> Parsed[ClinicalRow]:
    rate_field = CLINICAL_DATASETS[disease_id].rate_field
    parsed: Parsed[ClinicalRow] = Parsed()
    for record in records:
        week_raw = record.get("semaine") if isinstance(record, dict) else None
        if not isinstance(week_raw, str) or not week_raw:
            parsed.dropped += 1
            continue
        parsed.rows.append(
            ClinicalRow(
                week=normalize_week(week_raw),
                disease_id=disease_id,
                er_visit_rate=finite_number(record.get(rate_field)),
                department=department or NATIONAL_DEPARTMENT,
            )
        )
    return parsed


def fetch_single_disease(session, disease_id: str, department=None, timeout: float = 15) -> list[ClinicalRow]:
    """
    Walk the paginated records of one disease, in offset order.

    Raises ClinicalFetchError on the first non-success page.
    """
    url, params = build_query(disease_id, department)

    rows = []
    dropped = 0
    offset = 0
    while True:
        params["offset"] = offset
        response = session.get(url, params=dict(params), timeout=timeout)
        if not response.ok:
            raise ClinicalFetchError(f"Odissé API error for {disease_id}: {describe_status(response)}")

        payload = response.json()
        results = payload.get("results") or []
        parsed = parse_clinical_records(results, disease_id, department)
        rows.extend(parsed.rows)
        dropped += parsed.dropped

        offset += len(results)
        total_count = payload.get("total_count")
        if len(results) < CLINICAL_PAGE_SIZE:
            break
        # no usable total_count means no further page
        if not isinstance(total_count, (int, float)) or offset >= total_count:
            break

    if dropped:
        logger.warning("Dropped %d %s records without a week label", dropped, disease_id)
    return rows


def fetch_clinical_indicators_by_disease(session, disease_ids, department=None, timeout: float = 15) -> list[ClinicalRow]:
    """
    Fetch several diseases in parallel and merge the successful ones,
    sorted by week.
    """
    disease_ids = list(disease_ids)
    if not disease_ids:
        return []

    # workers share the session for GETs only, see build_session()
    rows: list[ClinicalRow] = []
    with ThreadPoolExecutor(max_workers=len(disease_ids)) as pool:
        futures = [
            (disease_id, pool.submit(fetch_single_disease, session, disease_id, department, timeout))
            for disease_id in disease_ids
        ]
        for disease_id, future in futures:
            try:
                rows.extend(future.result())
            except Exception as exc:
                logger.warning("Failed to fetch clinical data for %s: %s", disease_id, exc)

    # canonical weeks are fixed-width, so string order is chronological
    rows.sort(key=lambda row: row.week)
    return rows


def fetch_clinical_indicators(session, department=None, timeout: float = 15) -> list[ClinicalRow]:
    return fetch_clinical_indicators_by_disease(session, CLINICAL_DISEASE_IDS, department, timeout)
