"""Collapses violation-level rows into one record per inspection visit."""

from datetime import datetime, timezone

from inspections.models import AggregatedInspection, InspectionRow, Violation


def _group_by(rows, key) -> dict:
    groups: dict = {}
    for row in rows:
        groups.setdefault(key(row), []).append(row)
    return groups


def _date_key(row: InspectionRow) -> datetime:
    """Sortable inspection date: aware dates as naive UTC, missing dates first."""
    value = row.inspection_date
    if value is None:
        return datetime.min
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _violations(rows) -> list[Violation]:
    # Rows of a clean inspection carry no violation text and add nothing.
    return [
        Violation(
            type=r.violation_type,
            description=r.violation_description,
            points=r.violation_points,
        )
        for r in rows
        if r.violation_description
    ]


def _aggregated(representative: InspectionRow, violations) -> AggregatedInspection:
    return AggregatedInspection(
        program_identifier=representative.program_identifier,
        name=representative.name,
        description=representative.description,
        address=representative.address,
        city=representative.city,
        zip_code=representative.zip_code,
        inspection_business_name=representative.inspection_business_name,
        inspection_type=representative.inspection_type,
        inspection_score=representative.inspection_score,
        inspection_result=representative.inspection_result,
        inspection_closed_business=representative.inspection_closed_business,
        inspection_serial_num=representative.inspection_serial_num,
        inspection_date=representative.inspection_date,
        violations=violations,
    )


def aggregate_all(rows) -> list[AggregatedInspection]:
    """One record per (establishment, inspection date), in first-seen order."""
    groups = _group_by(rows, lambda r: (r.program_identifier, r.inspection_date))
    return [_aggregated(group[0], _violations(group)) for group in groups.values()]


def aggregate_latest(rows) -> list[AggregatedInspection]:
    """One record per establishment, holding only its most recent inspection.

    When several rows share the latest date, the first of them is used for
    the inspection fields.
    """
    aggregated = []
    for group in _group_by(rows, lambda r: r.program_identifier).values():
        latest = max(group, key=_date_key)
        at_latest = [r for r in group if _date_key(r) == _date_key(latest)]
        aggregated.append(_aggregated(latest, _violations(at_latest)))
    return aggregated


def latest_rows(rows) -> list[InspectionRow]:
    """Raw rows of each establishment's most recent inspection date, in input order."""
    rows = list(rows)
    latest_dates = {}
    for row in rows:
        current = latest_dates.get(row.program_identifier)
        if current is None or _date_key(row) > current:
            latest_dates[row.program_identifier] = _date_key(row)
    return [r for r in rows if _date_key(r) == latest_dates[r.program_identifier]]
