"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime
from pathlib import Path

import httpx
import pytest

TESTS_DIR = Path(__file__).parent

# Set test environment variables before importing app modules
os.environ.setdefault("DB_PATH", os.path.join(tempfile.mkdtemp(prefix="food_inspector_"), "test.db"))
os.environ.setdefault("ESTABLISHMENTS_FILE", str(TESTS_DIR / "data" / "establishments.json"))
os.environ.setdefault("INSPECTIONS_BASE_URL", "https://inspections.test")
os.environ.setdefault("INSPECTIONS_RELATIVE_PATH", "/resource/f29f-zza5.json")
os.environ.setdefault("INSPECTIONS_APP_TOKEN", "test-token")

BASE_URL = "https://inspections.test"
RELATIVE_PATH = "/resource/f29f-zza5.json"


@pytest.fixture
def make_row():
    """Build an InspectionRow with sensible establishment defaults."""
    from inspections.models import InspectionRow

    def _make_row(program_identifier="A", inspection_date="2021-01-01", **fields):
        fields.setdefault("name", f"Establishment {program_identifier}")
        fields.setdefault("city", "SEATTLE")
        return InspectionRow(
            program_identifier=program_identifier,
            inspection_date=datetime.fromisoformat(inspection_date),
            **fields,
        )

    return _make_row


@pytest.fixture
def api_row():
    """Build a row dict the way the inspections API returns it."""

    def _api_row(program_identifier, serial, date="2022-06-15", description=None, **fields):
        row = {
            "name": program_identifier.title(),
            "program_identifier": program_identifier,
            "inspection_date": f"{date}T00:00:00.000",
            "description": "Seating 0-12 - Risk Category III",
            "address": "2666 ALKI AVE SW",
            "city": "SEATTLE",
            "zip_code": "98116",
            "phone": "(206) 938-0606",
            "inspection_business_name": program_identifier,
            "inspection_type": "Routine Inspection/Field Review",
            "inspection_score": "10",
            "inspection_result": "Unsatisfactory",
            "inspection_closed_business": "false",
            "inspection_serial_num": serial,
            "grade": "1",
        }
        if description:
            row.update(
                violation_type="RED",
                violation_description=description,
                violation_points="5",
            )
        row.update(fields)
        return row

    return _api_row


@pytest.fixture
def store(tmp_path):
    from database import EstablishmentStore

    return EstablishmentStore(str(tmp_path / "establishments.db"))


@pytest.fixture
def make_fetcher(store):
    """Build an InspectionFetcher whose HTTP calls go to ``handler``."""
    from inspections.fetcher import InspectionFetcher

    clients = []

    def _make_fetcher(handler, max_workers=4, start_date="2020-01-01"):
        client = httpx.Client(
            transport=httpx.MockTransport(handler),
            headers={"X-App-Token": "test-token"},
        )
        clients.append(client)
        return InspectionFetcher(
            client=client,
            store=store,
            base_url=BASE_URL,
            relative_path=RELATIVE_PATH,
            start_date=start_date,
            max_workers=max_workers,
        )

    yield _make_fetcher

    for client in clients:
        client.close()
