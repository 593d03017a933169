"""
Builds SoQL queries for the King County food inspections API.

The API filters with a ``$where`` clause written in SoQL, where string
literals are single-quoted and a literal quote is written as two quotes:

    upper(program_identifier)=upper('O''BRIEN''S') AND
    inspection_date > '2020-01-01T00:00:00.000'

API docs: https://dev.socrata.com/docs/queries/where.html
"""

from urllib.parse import quote

from inspections.models import InspectionQuery

ROW_LIMIT = 50000
DEFAULT_START_DATE = "2020-01-01"


def escape_soql(value: str) -> str:
    """Double every single quote so the value is safe inside a SoQL string literal."""
    return value.replace("'", "''")


def build_where_clause(program_identifier: str = "", city: str = "", start_date: str = "") -> str:
    clauses = []
    if program_identifier:
        clauses.append(f"upper(program_identifier)=upper('{escape_soql(program_identifier)}')")
    if city:
        clauses.append(f"upper(city)=upper('{escape_soql(city)}')")
    clauses.append(f"inspection_date > '{escape_soql(start_date or DEFAULT_START_DATE)}T00:00:00.000'")
    return " AND ".join(clauses)


def build_inspection_query(
    base_url: str,
    relative_path: str,
    program_identifier: str = "",
    city: str = "",
    start_date: str = "",
) -> InspectionQuery:
    """Build the request descriptor for one establishment (or any, if no filters are given)."""
    program_identifier = program_identifier or ""
    city = city or ""
    start_date = start_date or ""

    where = build_where_clause(program_identifier, city, start_date)
    url = f"{base_url}{relative_path}?$limit={ROW_LIMIT}&$where={quote(where, safe='')}"

    return InspectionQuery(
        program_identifier=program_identifier,
        city=city,
        start_date=start_date,
        where=where,
        url=url,
    )
