"""
Rougeole (measles) mandatory notifications, yearly per department.

The export URL is pre-filtered server-side to the "Tous âges" stratum and
returns a flat JSON array (no `fields` wrapper).
"""
import logging

from .constants import NATIONAL_DEPARTMENT, RATE_PER_POPULATION, ROUGEOLE_API_URL
from .parsing import finite_number, round_half_up
from .records import Parsed, RougeoleRow
from .sources import RougeoleFetchError, describe_status

logger = logging.getLogger(__name__)


def parse_rougeole_records(records) -> Parsed[RougeoleRow]:
    if not isinstance(records, list):
        raise RougeoleFetchError("Odissé rougeole API returned an unexpected payload")

    parsed: Parsed[RougeoleRow] = Parsed()
    for record in records:
        if not isinstance(record, dict):
            parsed.dropped += 1
            continue
        year = record.get("annee")
        department = record.get("dep")
        if isinstance(year, bool) or not isinstance(year, (str, int, float)) or not isinstance(department, str):
            parsed.dropped += 1
            continue
        if isinstance(year, float):
            # fractional or non-finite years are not year labels
            if not year.is_integer():
                parsed.dropped += 1
                continue
            year = int(year)

        label = record.get("libgeo")
        parsed.rows.append(
            RougeoleRow(
                year=str(year),
                department=department,
                notification_rate=finite_number(record.get("tx")),
                cases=finite_number(record.get("rou")),
                population=finite_number(record.get("population")),
                label=label if isinstance(label, str) else "",
            )
        )
    return parsed


def fetch_rougeole_indicators(session, timeout: float = 30) -> list[RougeoleRow]:
    """
    Single request, no fallback: any failure propagates to the caller.
    """
    response = session.get(ROUGEOLE_API_URL, timeout=timeout)
    if not response.ok:
        raise RougeoleFetchError(f"Odissé rougeole API error: {describe_status(response)}")

    parsed = parse_rougeole_records(response.json())
    if parsed.dropped:
        logger.warning("Dropped %d rougeole records without a usable year or department", parsed.dropped)
    return parsed.rows


def national_aggregates(rows) -> list[RougeoleRow]:
    """
    One synthetic "national" row per year: cases and population summed over
    departments that report both, rate = cases / population * 100 000.
    """
    # year -> [cases, population, reporting departments]
    totals: "dict[str, list]" = {}
    for row in rows:
        totals.setdefault(row.year, [0.0, 0.0, 0])
        if row.cases is None or row.population is None:
            continue
        totals[row.year][0] += row.cases
        totals[row.year][1] += row.population
        totals[row.year][2] += 1

    national = []
    for year, (total_cases, total_population, reporting) in totals.items():
        rate = None
        if reporting and total_population > 0:
            rate = total_cases / total_population * RATE_PER_POPULATION
        national.append(
            RougeoleRow(
                year=year,
                department=NATIONAL_DEPARTMENT,
                notification_rate=rate,
                cases=round_half_up(total_cases) if reporting else None,
                population=total_population if reporting else None,
            )
        )
    return national
