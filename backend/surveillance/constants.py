"""
Upstream endpoints, dataset metadata and classification thresholds.
"""
from dataclasses import dataclass

# SUM'Eau (wastewater)
INDICATORS_PRIMARY_URL = "https://www.data.gouv.fr/api/1/datasets/r/2963ccb5-344d-4978-bdd3-08aaf9efe514"
INDICATORS_FALLBACK_URL = (
    "https://odisse.santepubliquefrance.fr/explore/dataset/sum-eau-indicateurs/download?format=json"
)
STATIONS_PRIMARY_URL = "https://www.data.gouv.fr/api/1/datasets/r/dd9cf705-a759-46c6-afd6-bc85cf25f363"
STATIONS_FALLBACK_URL = (
    "https://odisse.santepubliquefrance.fr/explore/dataset/sumeau_stations/download?format=json"
)

# Column of the indicators CSV holding the national aggregate
NATIONAL_STATION_ID = "National_54"

WEEK_COLUMN = "semaine"
JSON_NON_STATION_FIELDS = {"date_complet"}

# Odissé v2.1 (clinical)
ODISSE_API_BASE = "https://odisse.santepubliquefrance.fr/api/explore/v2.1/catalog/datasets"
CLINICAL_PAGE_SIZE = 100
NATIONAL_DEPARTMENT = "national"

FLU = "flu"
BRONCHIOLITIS = "bronchiolitis"
COVID_CLINICAL = "covid_clinical"


@dataclass(frozen=True)
class ClinicalDataset:
    disease_id: str
    label: str
    dataset_id: str
    department_dataset_id: str
    rate_field: str
    age_filter: str


CLINICAL_DATASETS = {
    FLU: ClinicalDataset(
        disease_id=FLU,
        label="Grippe",
        dataset_id="grippe-passages-aux-urgences-et-actes-sos-medecins-france",
        department_dataset_id="grippe-passages-aux-urgences-et-actes-sos-medecins-departement",
        rate_field="taux_passages_grippe_sau",
        age_filter="Tous âges",
    ),
    BRONCHIOLITIS: ClinicalDataset(
        disease_id=BRONCHIOLITIS,
        label="Bronchiolite <1 an",
        dataset_id="bronchiolite-passages-aux-urgences-et-actes-sos-medecins-france",
        department_dataset_id="bronchiolite-passages-aux-urgences-et-actes-sos-medecins-departement",
        rate_field="taux_passages_bronchio_sau",
        age_filter="0 an",
    ),
    COVID_CLINICAL: ClinicalDataset(
        disease_id=COVID_CLINICAL,
        label="COVID-19",
        dataset_id="covid-19-passages-aux-urgences-et-actes-sos-medecins-france",
        department_dataset_id="covid-19-passages-aux-urgences-et-actes-sos-medecins-departement",
        rate_field="taux_passages_covid_sau",
        age_filter="Tous âges",
    ),
}

CLINICAL_DISEASE_IDS = (FLU, BRONCHIOLITIS, COVID_CLINICAL)

# Rougeole (measles)
ROUGEOLE_API_URL = (
    "https://odisse.santepubliquefrance.fr/api/explore/v2.1/catalog/datasets/"
    "rougeole-donnees-declaration-obligatoire/exports/json"
    "?where=mdo_cl_age_rougeole%3D%22Tous%20%C3%A2ges%22"
)
RATE_PER_POPULATION = 100_000

# Severity
PERCENTILE_THRESHOLDS = (20, 40, 60, 80)
TREND_THRESHOLD = 0.10
# Trend compares the latest value with the one this many periods earlier
TREND_LOOKBACK = 2

SEVERITY_LEVELS = {
    1: ("Très faible", "#22c55e"),
    2: ("Faible", "#84cc16"),
    3: ("Modéré", "#eab308"),
    4: ("Élevé", "#f97316"),
    5: ("Très élevé", "#ef4444"),
}
