"""
Fetches food inspection rows from the King County open data API.

Every establishment is queried on its own. A failed query (network error,
timeout, bad status, body that is not a JSON array of rows) is logged and
recorded as a FetchFailure; it never aborts the other establishments.

API docs: https://dev.socrata.com/foundry/data.kingcounty.gov/f29f-zza5
"""

import logging
from concurrent.futures import ThreadPoolExecutor

import httpx
from pydantic import TypeAdapter, ValidationError

from inspections.errors import FetchFailed, MalformedResponse
from inspections.indexer import assign_violation_ids
from inspections.models import BulkFetchReport, FetchFailure, InspectionRow
from inspections.query import build_inspection_query

logger = logging.getLogger(__name__)

APP_TOKEN_HEADER = "X-App-Token"

_rows = TypeAdapter(list[InspectionRow])


def make_client(app_token: str = "", timeout: float = 30) -> httpx.Client:
    headers = {APP_TOKEN_HEADER: app_token} if app_token else {}
    return httpx.Client(headers=headers, timeout=timeout)


def parse_inspection_rows(payload) -> list[InspectionRow]:
    if not isinstance(payload, list):
        raise MalformedResponse(f"expected a JSON array, got {type(payload).__name__}")
    try:
        return _rows.validate_python(payload)
    except ValidationError as e:
        raise MalformedResponse(f"{e.error_count()} invalid field(s) in inspection rows") from e


class InspectionFetcher:
    def __init__(
        self,
        client: httpx.Client,
        store,
        base_url: str,
        relative_path: str,
        start_date: str = "",
        max_workers: int = 4,
    ):
        self.client = client
        self.store = store
        self.base_url = base_url
        self.relative_path = relative_path
        self.start_date = start_date
        self.max_workers = max(1, max_workers)

    def _get_rows(self, program_identifier: str, city: str, start_date: str) -> list[InspectionRow]:
        """Run one query; raises FetchFailed (or MalformedResponse) on any failure."""
        query = build_inspection_query(
            self.base_url, self.relative_path, program_identifier, city, start_date
        )
        logger.info(f"Querying inspections for {program_identifier!r} in {city!r} since {start_date or 'default'}")
        try:
            resp = self.client.get(query.url)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise FetchFailed(f"HTTP {e.response.status_code} from inspections API") from e
        except httpx.HTTPError as e:
            raise FetchFailed(f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise MalformedResponse(f"response body is not JSON: {e}") from e
        return parse_inspection_rows(payload)

    def _fetch_one(self, program_identifier: str, city: str, start_date: str):
        """Return ``(rows, failure)``; exactly one of the two is meaningful."""
        try:
            return self._get_rows(program_identifier, city, start_date), None
        except FetchFailed as e:
            logger.warning(
                f"Establishment fetch failed for {program_identifier!r} in {city!r}: "
                f"{type(e).__name__}: {e}"
            )
            failure = FetchFailure(
                program_identifier=program_identifier,
                city=city,
                error=type(e).__name__,
                detail=str(e),
            )
            return [], failure

    def fetch_for_identity(self, program_identifier: str, city: str, start_date: str = "") -> list[InspectionRow]:
        """Inspection rows for one establishment; an empty list if the query fails."""
        rows, _ = self._fetch_one(program_identifier or "", city or "", start_date or "")
        return assign_violation_ids(rows)

    def fetch_all_report(self) -> BulkFetchReport:
        """Query every establishment in the store and report which ones failed.

        Results are joined in store order, whatever order the queries finish in.
        A StoreUnavailable from the store propagates.
        """
        targets = [
            e for e in self.store.list_all()
            if e.program_identifier and e.city
        ]
        if not targets:
            return BulkFetchReport()

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(targets))) as pool:
            futures = [
                pool.submit(self._fetch_one, e.program_identifier, e.city, self.start_date)
                for e in targets
            ]
            outcomes = [f.result() for f in futures]

        rows = []
        failures = []
        for target_rows, failure in outcomes:
            rows.extend(target_rows)
            if failure is not None:
                failures.append(failure)

        if failures:
            logger.warning(f"{len(failures)} of {len(targets)} establishment fetches failed")
        logger.info(f"Fetched {len(rows)} inspection rows for {len(targets) - len(failures)} establishments")

        return BulkFetchReport(
            rows=assign_violation_ids(rows),
            failures=failures,
            attempted=len(targets),
        )

    def fetch_all(self) -> list[InspectionRow]:
        """Inspection rows for every known establishment; failed ones contribute nothing."""
        return self.fetch_all_report().rows
