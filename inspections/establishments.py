"""Reads the static establishment descriptor file."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from inspections.models import EstablishmentIdentity

logger = logging.getLogger(__name__)


def read_establishments_file(path) -> list[EstablishmentIdentity]:
    """Load the JSON array of establishments to track.

    Entries missing ``program_identifier`` or ``city`` are kept (they are
    skipped when fetching); entries that are not establishment objects at all
    are logged and dropped.
    """
    with open(Path(path), encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must hold a JSON array of establishments")

    establishments = []
    for position, entry in enumerate(data):
        try:
            establishments.append(EstablishmentIdentity.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Skipping establishment #{position} in {path}: {e.error_count()} invalid field(s)")
    logger.info(f"Read {len(establishments)} establishments from {path}")
    return establishments
