"""Numbers the violations of each inspection visit."""

from inspections.models import InspectionRow


def assign_violation_ids(rows) -> list[InspectionRow]:
    """Return copies of ``rows`` with ``id`` set to the row's ordinal within its visit.

    A visit is identified by ``inspection_serial_num``: the rows of one visit
    are numbered 0, 1, 2, ... in their input order. A row without a serial
    number is a visit of its own and gets 0. Input order is kept.
    """
    next_id: dict[str, int] = {}
    indexed = []
    for row in rows:
        serial = row.inspection_serial_num
        if serial:
            ordinal = next_id.get(serial, 0)
            next_id[serial] = ordinal + 1
        else:
            ordinal = 0
        indexed.append(row.model_copy(update={"id": ordinal}))
    return indexed
