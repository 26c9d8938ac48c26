import requests
from django.test import SimpleTestCase

from surveillance.constants import (
    INDICATORS_FALLBACK_URL,
    INDICATORS_PRIMARY_URL,
    STATIONS_FALLBACK_URL,
    STATIONS_PRIMARY_URL,
)
from surveillance.records import WastewaterRow
from surveillance.sources import SourceExhaustedError
from surveillance.tests.fakes import FakeResponse, FakeSession
from surveillance.wastewater import (
    fetch_indicators,
    fetch_stations,
    parse_indicators_csv,
    parse_indicators_json,
    parse_stations_csv,
    parse_stations_json,
)

INDICATORS_CSV = (
    "semaine;StationA;StationB\n"
    "2024-S01;10,5;NA\n"
    "2024-S02;11;12\n"
)

STATIONS_CSV = (
    "nom;sandre;commune;population;longitude;latitude\n"
    'Paris Seine Aval;"037800000000";Achères;6000000;2,1234;48,9567\n'
    "Lyon;069000000001;Lyon;;4,85;45,75\n"
    ";069000000002;Nowhere;10;1;1\n"
    "Orphan;;Nowhere;10;1;1\n"
)


class IndicatorsCsvTests(SimpleTestCase):
    def test_wide_to_long_pivot(self):
        parsed = parse_indicators_csv(INDICATORS_CSV)

        self.assertEqual(len(parsed.rows), 4)
        self.assertIn(WastewaterRow("2024-W01", "StationA", 10.5, 10.5), parsed.rows)
        self.assertIn(WastewaterRow("2024-W01", "StationB", None, None), parsed.rows)
        self.assertIn(WastewaterRow("2024-W02", "StationB", 12.0, 12.0), parsed.rows)

    def test_value_and_smoothed_value_are_identical(self):
        for row in parse_indicators_csv(INDICATORS_CSV).rows:
            self.assertEqual(row.value, row.smoothed_value)

    def test_rows_without_week_are_dropped(self):
        csv_text = (
            "semaine;StationA\n"
            "2024-S01;1\n"
            ";2\n"
            "   ;3\n"
        )
        parsed = parse_indicators_csv(csv_text)
        self.assertEqual([r.week for r in parsed.rows], ["2024-W01"])
        self.assertEqual(parsed.dropped, 2)

    def test_short_row_yields_null_values(self):
        parsed = parse_indicators_csv("semaine;StationA;StationB\n2024-S05;1,5\n")
        self.assertEqual(
            parsed.rows,
            [
                WastewaterRow("2024-W05", "StationA", 1.5, 1.5),
                WastewaterRow("2024-W05", "StationB", None, None),
            ],
        )

    def test_national_column_is_kept_as_a_station(self):
        parsed = parse_indicators_csv("semaine;National_54\n2024-S10;42,0\n")
        self.assertEqual(parsed.rows, [WastewaterRow("2024-W10", "National_54", 42.0, 42.0)])


class IndicatorsJsonTests(SimpleTestCase):
    def test_pivot_excludes_date_complet_and_non_numbers(self):
        records = [
            {"fields": {"semaine": "2024-S01", "date_complet": "2024-01-01", "StationA": 3.5, "StationB": "4,2"}},
            {"fields": {"semaine": "2024-S02", "StationA": 4, "StationB": None}},
        ]
        parsed = parse_indicators_json(records)

        self.assertEqual(
            parsed.rows,
            [
                WastewaterRow("2024-W01", "StationA", 3.5, 3.5),
                WastewaterRow("2024-W01", "StationB", None, None),
                WastewaterRow("2024-W02", "StationA", 4, 4),
                WastewaterRow("2024-W02", "StationB", None, None),
            ],
        )

    def test_records_without_week_are_dropped(self):
        records = [
            {"fields": {"StationA": 1}},
            {"fields": {"semaine": "", "StationA": 1}},
            {"nofields": True},
            "garbage",
        ]
        parsed = parse_indicators_json(records)
        self.assertEqual(parsed.rows, [])
        self.assertEqual(parsed.dropped, 4)

    def test_non_list_payload_is_rejected(self):
        with self.assertRaises(ValueError):
            parse_indicators_json({"error": "quota"})


class StationsCsvTests(SimpleTestCase):
    def test_parses_and_cleans_rows(self):
        parsed = parse_stations_csv(STATIONS_CSV)

        self.assertEqual(len(parsed.rows), 2)
        self.assertEqual(parsed.dropped, 2)

        paris, lyon = parsed.rows
        self.assertEqual(paris.sandre_id, "037800000000")
        self.assertEqual(paris.name, "Paris Seine Aval")
        self.assertEqual(paris.commune, "Achères")
        self.assertEqual(paris.population, 6000000)
        self.assertAlmostEqual(paris.lat, 48.9567)
        self.assertAlmostEqual(paris.lng, 2.1234)

        self.assertEqual(lyon.population, 0)
        self.assertAlmostEqual(lyon.lat, 45.75)

    def test_stray_quotes_inside_field_are_stripped(self):
        csv_text = "nom;sandre;commune;population;longitude;latitude\nX;'0123';C;1;NA;NA\n"
        station = parse_stations_csv(csv_text).rows[0]
        self.assertEqual(station.sandre_id, "0123")
        self.assertEqual((station.lat, station.lng), (0.0, 0.0))


class StationsJsonTests(SimpleTestCase):
    def test_centroid_takes_precedence(self):
        records = [
            {
                "fields": {
                    "nom": " Marseille ",
                    "sandre": "061305500001",
                    "commune": "Marseille",
                    "population": 1800000,
                    "latitude": "1,0",
                    "longitude": "2,0",
                    "centroide": [43.3, 5.4],
                }
            }
        ]
        station = parse_stations_json(records).rows[0]
        self.assertEqual(station.name, "Marseille")
        self.assertEqual((station.lat, station.lng), (43.3, 5.4))
        self.assertEqual(station.population, 1800000)

    def test_locale_strings_then_geometry(self):
        records = [
            {"fields": {"nom": "A", "sandre": "1", "latitude": "47,2", "longitude": "-1,55"}},
            {"fields": {"nom": "B", "sandre": "2"}, "geometry": {"coordinates": [3.1, 50.6]}},
        ]
        a, b = parse_stations_json(records).rows
        self.assertEqual((a.lat, a.lng), (47.2, -1.55))
        self.assertEqual((b.lat, b.lng), (50.6, 3.1))
        self.assertEqual(a.population, 0)
        self.assertEqual(a.commune, "")

    def test_missing_name_or_sandre_dropped(self):
        records = [
            {"fields": {"nom": "A"}},
            {"fields": {"sandre": "2"}},
            {"fields": {"nom": "C", "sandre": '"3"'}},
        ]
        parsed = parse_stations_json(records)
        self.assertEqual([s.sandre_id for s in parsed.rows], ["3"])
        self.assertEqual(parsed.dropped, 2)


class FallbackChainTests(SimpleTestCase):
    def test_primary_csv_is_used_when_available(self):
        session = FakeSession({INDICATORS_PRIMARY_URL: FakeResponse(text=INDICATORS_CSV)})

        rows = fetch_indicators(session, timeout=15)

        self.assertEqual(len(rows), 4)
        self.assertEqual(session.calls, [(INDICATORS_PRIMARY_URL, None, 15)])

    def test_http_error_falls_back_to_json(self):
        session = FakeSession(
            {
                INDICATORS_PRIMARY_URL: FakeResponse(503),
                INDICATORS_FALLBACK_URL: FakeResponse(json_data=[{"fields": {"semaine": "2024-S07", "S": 2.0}}]),
            }
        )
        rows = fetch_indicators(session)
        self.assertEqual(rows, [WastewaterRow("2024-W07", "S", 2.0, 2.0)])

    def test_network_error_falls_back_to_json(self):
        session = FakeSession(
            {
                STATIONS_PRIMARY_URL: requests.Timeout("timed out"),
                STATIONS_FALLBACK_URL: FakeResponse(json_data=[{"fields": {"nom": "A", "sandre": "1"}}]),
            }
        )
        stations = fetch_stations(session)
        self.assertEqual([s.sandre_id for s in stations], ["1"])

    def test_both_sources_failing_raises(self):
        session = FakeSession(
            {
                INDICATORS_PRIMARY_URL: requests.ConnectionError("refused"),
                INDICATORS_FALLBACK_URL: FakeResponse(500),
            }
        )
        with self.assertRaises(SourceExhaustedError) as ctx:
            fetch_indicators(session)

        message = str(ctx.exception)
        self.assertIn("indicators", message)
        self.assertIn("primary", message)
        self.assertIn("fallback", message)

    def test_unreadable_fallback_payload_counts_as_failure(self):
        session = FakeSession(
            {
                STATIONS_PRIMARY_URL: FakeResponse(404),
                STATIONS_FALLBACK_URL: FakeResponse(text="<html>maintenance</html>"),
            }
        )
        with self.assertRaises(SourceExhaustedError):
            fetch_stations(session)
