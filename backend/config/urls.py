"""
URL configuration for the surveillance backend.
"""

from django.urls import path
from config.views import health_check, health_db
from surveillance.views import clinical_indicators
from surveillance.views import rougeole_indicators
from surveillance.views import stations
from surveillance.views import sync
from surveillance.views import wastewater_indicators

urlpatterns = [
    path("api/health/", health_check),
    path("api/health/db/", health_db),
    path("api/sync/", sync),
    path("api/wastewater/indicators/", wastewater_indicators),
    path("api/wastewater/stations/", stations),
    path("api/clinical/indicators/", clinical_indicators),
    path("api/rougeole/indicators/", rougeole_indicators),
]
