from unittest import mock

from django.db import DatabaseError
from django.test import Client, TestCase, override_settings

from surveillance.models import ClinicalIndicator, RougeoleIndicator, Station, SyncRun, WastewaterIndicator
from surveillance.sync import SyncResult


@override_settings(CRON_SECRET="s3cret")
class SyncViewTests(TestCase):
    def setUp(self):
        self.client = Client()

    def test_missing_token_returns_401(self):
        resp = self.client.get("/api/sync/")
        self.assertEqual(resp.status_code, 401)
        self.assertIn("error", resp.json())

    def test_wrong_token_returns_401(self):
        resp = self.client.get("/api/sync/", HTTP_AUTHORIZATION="Bearer nope")
        self.assertEqual(resp.status_code, 401)

    @override_settings(CRON_SECRET="")
    def test_unset_secret_rejects_everything(self):
        resp = self.client.get("/api/sync/", HTTP_AUTHORIZATION="Bearer ")
        self.assertEqual(resp.status_code, 401)

    def test_failed_sync_still_returns_200(self):
        result = SyncResult(status="failed", errors=["Wastewater sync failed: down"], duration_ms=12)
        with mock.patch("surveillance.views.run_sync", return_value=result) as run_sync:
            resp = self.client.get("/api/sync/", HTTP_AUTHORIZATION="Bearer s3cret")

        self.assertEqual(resp.status_code, 200)
        run_sync.assert_called_once()
        data = resp.json()
        self.assertEqual(data["status"], "failed")
        self.assertEqual(data["errors"], ["Wastewater sync failed: down"])
        self.assertEqual(data["durationMs"], 12)

    def test_post_not_allowed(self):
        resp = self.client.post("/api/sync/", HTTP_AUTHORIZATION="Bearer s3cret")
        self.assertEqual(resp.status_code, 405)


class HealthViewTests(TestCase):
    def test_health(self):
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_db_health_without_runs(self):
        resp = self.client.get("/api/health/db/")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertTrue(data["connected"])
        self.assertIsNone(data["lastSync"])

    def test_db_health_reports_last_run(self):
        SyncRun.objects.create(status="failed")
        SyncRun.objects.create(status="success", stations_count=3, wastewater_count=30)

        data = self.client.get("/api/health/db/").json()

        self.assertEqual(data["lastSync"]["status"], "success")
        self.assertEqual(data["lastSync"]["stationsCount"], 3)
        self.assertEqual(data["lastSync"]["wastewaterCount"], 30)

    def test_db_unreachable_returns_503(self):
        with mock.patch("surveillance.store.SurveillanceStore.ping", side_effect=DatabaseError("down")):
            resp = self.client.get("/api/health/db/")
        self.assertEqual(resp.status_code, 503)
        self.assertFalse(resp.json()["connected"])


class WastewaterViewTests(TestCase):
    def setUp(self):
        values = [1, 2, 3, 4, 10, 5, 20]
        WastewaterIndicator.objects.bulk_create(
            [
                WastewaterIndicator(week=f"2024-W{i + 1:02d}", station_id="Paris", value=v, smoothed_value=v)
                for i, v in enumerate(values)
            ]
            + [WastewaterIndicator(week="2024-W01", station_id="Lyon", value=None, smoothed_value=None)]
        )
        Station.objects.create(sandre_id="1", name="Paris", commune="Achères", population=10, lat=48.9, lng=2.1)

    def test_indicators_with_severity(self):
        data = self.client.get("/api/wastewater/indicators/", {"stations": "Paris"}).json()

        self.assertEqual(len(data["indicators"]), 7)
        self.assertEqual(data["indicators"][0], {"week": "2024-W01", "stationId": "Paris", "value": 1.0, "smoothedValue": 1.0})
        self.assertEqual(data["severity"]["Paris"]["level"], 5)
        self.assertEqual(data["severity"]["Paris"]["trend"], "increasing")

    def test_week_range_filter(self):
        data = self.client.get(
            "/api/wastewater/indicators/", {"stations": "Paris,Lyon", "from": "2024-W02", "to": "2024-W03"}
        ).json()
        self.assertEqual([r["week"] for r in data["indicators"]], ["2024-W02", "2024-W03"])

    def test_station_without_values_is_moderate(self):
        data = self.client.get("/api/wastewater/indicators/", {"stations": "Lyon"}).json()
        self.assertEqual(data["severity"]["Lyon"]["level"], 3)
        self.assertEqual(data["severity"]["Lyon"]["trend"], "stable")

    def test_stations(self):
        data = self.client.get("/api/wastewater/stations/").json()
        self.assertEqual(data["stations"][0]["sandreId"], "1")


class ClinicalViewTests(TestCase):
    def setUp(self):
        ClinicalIndicator.objects.bulk_create(
            [
                ClinicalIndicator(week="2024-W02", disease_id="flu", er_visit_rate=3.0),
                ClinicalIndicator(week="2024-W01", disease_id="flu", er_visit_rate=2.0),
                ClinicalIndicator(week="2024-W01", disease_id="covid_clinical", er_visit_rate=None),
                ClinicalIndicator(week="2024-W01", disease_id="flu", department="75", er_visit_rate=9.0),
            ]
        )

    def test_national_by_default(self):
        data = self.client.get("/api/clinical/indicators/").json()
        self.assertEqual(data["department"], "national")
        self.assertEqual(
            [(r["week"], r["diseaseId"]) for r in data["indicators"]],
            [("2024-W01", "covid_clinical"), ("2024-W01", "flu"), ("2024-W02", "flu")],
        )

    def test_filters(self):
        data = self.client.get("/api/clinical/indicators/", {"diseases": "flu", "department": "75"}).json()
        self.assertEqual(data["indicators"], [{"week": "2024-W01", "diseaseId": "flu", "erVisitRate": 9.0}])

    def test_unknown_disease_is_400(self):
        resp = self.client.get("/api/clinical/indicators/", {"diseases": "flu,measles"})
        self.assertEqual(resp.status_code, 400)
        self.assertIn("measles", resp.json()["error"])


class RougeoleViewTests(TestCase):
    def test_national_by_default_ordered_by_year(self):
        RougeoleIndicator.objects.create(year="2023", department="national", notification_rate=1.0, cases=600)
        RougeoleIndicator.objects.create(year="2022", department="national", notification_rate=0.5, cases=300)
        RougeoleIndicator.objects.create(year="2023", department="75", notification_rate=3.0, cases=60)

        data = self.client.get("/api/rougeole/indicators/").json()

        self.assertEqual(
            data["indicators"],
            [
                {"year": "2022", "notificationRate": 0.5, "cases": 300},
                {"year": "2023", "notificationRate": 1.0, "cases": 600},
            ],
        )

        dep = self.client.get("/api/rougeole/indicators/", {"department": "75"}).json()
        self.assertEqual(dep["indicators"], [{"year": "2023", "notificationRate": 3.0, "cases": 60}])
