"""FastAPI backend for the Food Inspector service."""

import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Response

import config
from database import EstablishmentStore
from inspections.aggregate import aggregate_all, aggregate_latest, latest_rows
from inspections.errors import StoreUnavailable
from inspections.fetcher import InspectionFetcher, make_client
from inspections.models import AggregatedInspection, EstablishmentIdentity, InspectionRow

logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Food Inspector",
    description="King County food establishment inspections, grouped by visit",
    version="1.0.0",
)

store = EstablishmentStore(config.DB_PATH)
_fetcher: Optional[InspectionFetcher] = None

# Empty, or an ISO date the inspections API can compare against
START_DATE_PATTERN = r"^(\d{4}-\d{2}-\d{2})?$"


@app.on_event("startup")
def startup():
    global _fetcher
    try:
        store.populate(config.ESTABLISHMENTS_FILE)
    except StoreUnavailable as e:
        logger.error(f"Establishment store could not be populated: {e}")
        raise
    if _fetcher is None:
        _fetcher = InspectionFetcher(
            client=make_client(config.INSPECTIONS_APP_TOKEN, config.REQUEST_TIMEOUT),
            store=store,
            base_url=config.INSPECTIONS_BASE_URL,
            relative_path=config.INSPECTIONS_RELATIVE_PATH,
            start_date=config.INSPECTIONS_START_DATE,
            max_workers=config.FETCH_WORKERS,
        )


@app.on_event("shutdown")
def shutdown():
    global _fetcher
    if _fetcher is not None:
        _fetcher.client.close()
        _fetcher = None


def get_store() -> EstablishmentStore:
    return store


def get_fetcher() -> InspectionFetcher:
    if _fetcher is None:
        raise HTTPException(status_code=503, detail="Inspections service is not started")
    return _fetcher


def _fetch_all(fetcher: InspectionFetcher, response: Response) -> list[InspectionRow]:
    try:
        report = fetcher.fetch_all_report()
    except StoreUnavailable as e:
        logger.error(f"Cannot list establishments: {e}")
        raise HTTPException(status_code=503, detail="Establishment store is unavailable")
    response.headers["X-Fetch-Failures"] = str(len(report.failures))
    return report.rows


@app.get("/api/establishments", response_model=list[EstablishmentIdentity])
def list_establishments(store: EstablishmentStore = Depends(get_store)):
    """Establishments whose inspections are fetched by the default routes."""
    try:
        return store.list_all()
    except StoreUnavailable:
        raise HTTPException(status_code=503, detail="Establishment store is unavailable")


@app.get("/api/default/inspections", response_model=list[InspectionRow])
def default_inspections(response: Response, fetcher: InspectionFetcher = Depends(get_fetcher)):
    """Raw violation rows for every known establishment."""
    return _fetch_all(fetcher, response)


@app.get("/api/default/inspections/aggregated", response_model=list[AggregatedInspection])
def default_inspections_aggregated(response: Response, fetcher: InspectionFetcher = Depends(get_fetcher)):
    return aggregate_all(_fetch_all(fetcher, response))


@app.get("/api/default/inspections/latest", response_model=list[AggregatedInspection])
def default_inspections_latest(response: Response, fetcher: InspectionFetcher = Depends(get_fetcher)):
    return aggregate_latest(_fetch_all(fetcher, response))


@app.get("/api/default/inspections/latest/raw", response_model=list[InspectionRow])
def default_inspections_latest_raw(response: Response, fetcher: InspectionFetcher = Depends(get_fetcher)):
    return latest_rows(_fetch_all(fetcher, response))


@app.get("/api/userconfigured/inspections", response_model=list[InspectionRow])
def userconfigured_inspections(
    name: str = Query("", description="Program identifier of the establishment"),
    city: str = Query("", description="City of the establishment"),
    startdate: str = Query("", pattern=START_DATE_PATTERN, description="Earliest inspection date (YYYY-MM-DD)"),
    fetcher: InspectionFetcher = Depends(get_fetcher),
):
    """Raw violation rows for one establishment."""
    return fetcher.fetch_for_identity(name, city, startdate)


@app.get("/api/userconfigured/inspections/aggregated", response_model=list[AggregatedInspection])
def userconfigured_inspections_aggregated(
    name: str = Query(""),
    city: str = Query(""),
    startdate: str = Query("", pattern=START_DATE_PATTERN),
    fetcher: InspectionFetcher = Depends(get_fetcher),
):
    return aggregate_all(fetcher.fetch_for_identity(name, city, startdate))


@app.get("/api/userconfigured/inspections/latest", response_model=list[AggregatedInspection])
def userconfigured_inspections_latest(
    name: str = Query(""),
    city: str = Query(""),
    startdate: str = Query("", pattern=START_DATE_PATTERN),
    fetcher: InspectionFetcher = Depends(get_fetcher),
):
    return aggregate_latest(fetcher.fetch_for_identity(name, city, startdate))


@app.get("/api/userconfigured/inspections/latest/raw", response_model=list[InspectionRow])
def userconfigured_inspections_latest_raw(
    name: str = Query(""),
    city: str = Query(""),
    startdate: str = Query("", pattern=START_DATE_PATTERN),
    fetcher: InspectionFetcher = Depends(get_fetcher),
):
    return latest_rows(fetcher.fetch_for_identity(name, city, startdate))
