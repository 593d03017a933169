"""Environment-driven settings for the inspections service."""

import os

DB_PATH = os.environ.get("DB_PATH", "establishments.db")
ESTABLISHMENTS_FILE = os.environ.get("ESTABLISHMENTS_FILE", "data/establishments.json")

INSPECTIONS_BASE_URL = os.environ.get("INSPECTIONS_BASE_URL", "https://data.kingcounty.gov")
INSPECTIONS_RELATIVE_PATH = os.environ.get("INSPECTIONS_RELATIVE_PATH", "/resource/f29f-zza5.json")
INSPECTIONS_APP_TOKEN = os.environ.get("INSPECTIONS_APP_TOKEN", "")
INSPECTIONS_START_DATE = os.environ.get("INSPECTIONS_START_DATE", "2020-01-01")

FETCH_WORKERS = int(os.environ.get("FETCH_WORKERS", "4"))
REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "30"))

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
