"""SQLite-backed cache of the establishments to query for inspections."""

import logging
import sqlite3
import threading

from config import DB_PATH
from inspections.errors import StoreUnavailable
from inspections.establishments import read_establishments_file
from inspections.models import EstablishmentIdentity

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS establishments (
        program_identifier TEXT NOT NULL,
        city TEXT NOT NULL,
        name TEXT,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (program_identifier, city)
    );
"""


def get_connection(db_path=None):
    db_path = db_path or DB_PATH
    try:
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.executescript(SCHEMA)
    except sqlite3.Error as e:
        logger.error(f"Establishment store at {db_path} is unavailable: {e}")
        raise StoreUnavailable(f"Cannot open establishment store at {db_path}: {e}") from e
    return conn


def init_db(db_path=None):
    get_connection(db_path).close()


def upsert_establishment(conn, establishment: EstablishmentIdentity):
    """Insert an establishment, or overwrite the attributes stored under its key."""
    conn.execute("""
        INSERT INTO establishments (program_identifier, city, name)
        VALUES (:program_identifier, :city, :name)
        ON CONFLICT (program_identifier, city) DO UPDATE SET
            name = excluded.name,
            updated_at = CURRENT_TIMESTAMP
    """, establishment.model_dump())


class EstablishmentStore:
    """Durable mapping of ``(program_identifier, city)`` to establishment attributes."""

    def __init__(self, db_path=None):
        self.db_path = db_path or DB_PATH
        self._populated = False
        self._populate_lock = threading.Lock()

    def upsert(self, establishments) -> int:
        """Write each establishment; a failing entry is logged and skipped."""
        conn = get_connection(self.db_path)
        written = 0
        try:
            for establishment in establishments:
                logger.info(
                    f"Upserting establishment {establishment.program_identifier!r} "
                    f"({establishment.name!r}) in {establishment.city!r}"
                )
                try:
                    upsert_establishment(conn, establishment)
                    written += 1
                except sqlite3.Error as e:
                    logger.warning(f"Failed to upsert {establishment.program_identifier!r}: {e}")
            conn.commit()
        finally:
            conn.close()
        return written

    def list_all(self) -> list[EstablishmentIdentity]:
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                "SELECT program_identifier, city, name FROM establishments ORDER BY rowid"
            ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to list establishments: {e}")
            raise StoreUnavailable(f"Cannot read establishment store: {e}") from e
        finally:
            conn.close()
        return [
            EstablishmentIdentity(
                program_identifier=r["program_identifier"],
                city=r["city"],
                name=r["name"] or "",
            )
            for r in rows
        ]

    def populate(self, descriptor_path) -> int:
        """Load the descriptor file into the store, once per store instance.

        Concurrent callers wait for the first population to finish; every
        later call is a no-op returning 0.
        """
        with self._populate_lock:
            if self._populated:
                return 0
            count = self.upsert(read_establishments_file(descriptor_path))
            self._populated = True
        logger.info(f"Establishment store populated with {count} entries")
        return count

    @property
    def populated(self) -> bool:
        return self._populated


if __name__ == "__main__":
    init_db()
    print(f"Database initialized at {DB_PATH}")
