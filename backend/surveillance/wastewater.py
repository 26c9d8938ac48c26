"""
SUM'Eau wastewater sources.

Primary: data.gouv.fr semicolon CSVs (French-locale numbers).
Fallback: Odissé JSON exports (`[{"fields": {...}, "geometry": {...}}]`).
"""
import csv
import io
import logging

from .constants import (
    INDICATORS_FALLBACK_URL,
    INDICATORS_PRIMARY_URL,
    JSON_NON_STATION_FIELDS,
    STATIONS_FALLBACK_URL,
    STATIONS_PRIMARY_URL,
    WEEK_COLUMN,
)
from .parsing import finite_number, normalize_week, parse_int, parse_locale_number, strip_quotes
from .records import Parsed, StationRow, WastewaterRow
from .sources import AttemptSource, fetch_first

logger = logging.getLogger(__name__)

CSV_DELIMITER = ";"


def _read_csv(text: str) -> csv.DictReader:
    return csv.DictReader(io.StringIO(text), delimiter=CSV_DELIMITER)


def _clean(value) -> str:
    return (value or "").strip()


def parse_indicators_csv(text: str) -> Parsed[WastewaterRow]:
    """
    Pivot the wide indicators CSV (one column per station) to long rows.

    The CSV carries a single (already smoothed) series, so `value` and
    `smoothed_value` receive the same number.
    """
    reader = _read_csv(text)
    headers = reader.fieldnames or []
    week_col = next((h for h in headers if h.strip().lower() == WEEK_COLUMN), WEEK_COLUMN)
    station_cols = [h for h in headers if h.strip().lower() != WEEK_COLUMN]

    parsed: Parsed[WastewaterRow] = Parsed()
    for raw in reader:
        week_raw = _clean(raw.get(week_col))
        if not week_raw:
            parsed.dropped += 1
            continue
        week = normalize_week(week_raw)

        for col in station_cols:
            value = parse_locale_number(raw.get(col))
            parsed.rows.append(
                WastewaterRow(week=week, station_id=col, value=value, smoothed_value=value)
            )
    return parsed


def parse_indicators_json(records) -> Parsed[WastewaterRow]:
    """Same pivot for the JSON export; only native numbers count as values."""
    if not isinstance(records, list):
        raise ValueError("expected a JSON array of records")

    parsed: Parsed[WastewaterRow] = Parsed()
    for record in records:
        fields = record.get("fields") if isinstance(record, dict) else None
        if not isinstance(fields, dict):
            parsed.dropped += 1
            continue
        week_raw = fields.get(WEEK_COLUMN)
        if not isinstance(week_raw, str) or not week_raw:
            parsed.dropped += 1
            continue
        week = normalize_week(week_raw)

        for key, raw_value in fields.items():
            if key == WEEK_COLUMN or key in JSON_NON_STATION_FIELDS:
                continue
            value = finite_number(raw_value)
            parsed.rows.append(
                WastewaterRow(week=week, station_id=key, value=value, smoothed_value=value)
            )
    return parsed


def parse_stations_csv(text: str) -> Parsed[StationRow]:
    parsed: Parsed[StationRow] = Parsed()
    for raw in _read_csv(text):
        name = _clean(raw.get("nom"))
        sandre_id = strip_quotes(_clean(raw.get("sandre")))
        if not name or not sandre_id:
            parsed.dropped += 1
            continue

        parsed.rows.append(
            StationRow(
                sandre_id=sandre_id,
                name=name,
                commune=_clean(raw.get("commune")),
                population=max(parse_int(raw.get("population")), 0),
                lat=parse_locale_number(raw.get("latitude")) or 0.0,
                lng=parse_locale_number(raw.get("longitude")) or 0.0,
            )
        )
    return parsed


def _pair_item(pair, index):
    if isinstance(pair, (list, tuple)) and len(pair) > index:
        return finite_number(pair[index])
    return None


def _json_coordinates(record: dict, fields: dict):
    # precedence: centroide [lat, lng] > French-locale strings > GeoJSON [lng, lat]
    centroid = fields.get("centroide")
    geometry = record.get("geometry") if isinstance(record.get("geometry"), dict) else {}
    coordinates = geometry.get("coordinates")

    lat = _pair_item(centroid, 0)
    if lat is None:
        lat = parse_locale_number(fields.get("latitude"))
    if lat is None:
        lat = _pair_item(coordinates, 1)

    lng = _pair_item(centroid, 1)
    if lng is None:
        lng = parse_locale_number(fields.get("longitude"))
    if lng is None:
        lng = _pair_item(coordinates, 0)

    return (lat if lat is not None else 0.0, lng if lng is not None else 0.0)


def _json_population(raw) -> int:
    number = finite_number(raw)
    if number is not None:
        return max(int(number), 0)
    return max(parse_int(raw), 0)


def parse_stations_json(records) -> Parsed[StationRow]:
    if not isinstance(records, list):
        raise ValueError("expected a JSON array of records")

    parsed: Parsed[StationRow] = Parsed()
    for record in records:
        fields = record.get("fields") if isinstance(record, dict) else None
        if not isinstance(fields, dict):
            parsed.dropped += 1
            continue
        name = fields.get("nom")
        sandre = fields.get("sandre")
        if not isinstance(name, str) or not name.strip() or sandre is None or str(sandre).strip() == "":
            parsed.dropped += 1
            continue

        commune = fields.get("commune")
        lat, lng = _json_coordinates(record, fields)
        parsed.rows.append(
            StationRow(
                sandre_id=strip_quotes(str(sandre).strip()),
                name=name.strip(),
                commune=commune.strip() if isinstance(commune, str) else "",
                population=_json_population(fields.get("population")),
                lat=lat,
                lng=lng,
            )
        )
    return parsed


def _csv_text(response) -> str:
    return response.content.decode("utf-8-sig")  # handles BOM too


def _rows(parsed: Parsed, dataset: str, source: str) -> list:
    if parsed.dropped:
        logger.warning("Dropped %d %s records from %s source", parsed.dropped, dataset, source)
    logger.info("Parsed %d %s rows from %s source", len(parsed.rows), dataset, source)
    return parsed.rows


def indicator_sources():
    return [
        AttemptSource(
            "primary",
            INDICATORS_PRIMARY_URL,
            lambda response: _rows(parse_indicators_csv(_csv_text(response)), "indicator", "primary"),
        ),
        AttemptSource(
            "fallback",
            INDICATORS_FALLBACK_URL,
            lambda response: _rows(parse_indicators_json(response.json()), "indicator", "fallback"),
        ),
    ]


def station_sources():
    return [
        AttemptSource(
            "primary",
            STATIONS_PRIMARY_URL,
            lambda response: _rows(parse_stations_csv(_csv_text(response)), "station", "primary"),
        ),
        AttemptSource(
            "fallback",
            STATIONS_FALLBACK_URL,
            lambda response: _rows(parse_stations_json(response.json()), "station", "fallback"),
        ),
    ]


def fetch_indicators(session, timeout: float = 15) -> list[WastewaterRow]:
    return fetch_first(session, indicator_sources(), dataset="indicators", timeout=timeout)


def fetch_stations(session, timeout: float = 15) -> list[StationRow]:
    return fetch_first(session, station_sources(), dataset="stations", timeout=timeout)
