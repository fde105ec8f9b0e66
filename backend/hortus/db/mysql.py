"""MySQL/MariaDB binding of the plant store, on PyMySQL connections."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from pymysql.err import Error as DriverError, OperationalError
from sqlalchemy import exc
from sqlalchemy.pool import QueuePool

from . import core
from .port import PlantNames, PlantStore
from ..config import StoreSettings
from ..errors import (
    ConnectionFailedError,
    InsertFailedError,
    PlantNotFoundError,
    QueryFailedError,
    SchemaMissingError,
    StorageError,
    StoreUnavailableError,
)
from ..schemas.plant import PlantLog, PlantShortDesc

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("plant", "plant_log")

# Client-side codes: can't connect, server gone away, lost connection.
CONNECTION_ERROR_CODES = frozenset({2003, 2006, 2013})


def to_storage_error(err: Exception, kind: type[StorageError]) -> StorageError:
    """Wrap a driver or pool error, keeping its text as the message."""
    if isinstance(err, exc.TimeoutError):
        return StoreUnavailableError(f"connection pool exhausted: {err}")
    if isinstance(err, OperationalError) and err.args and err.args[0] in CONNECTION_ERROR_CODES:
        return StoreUnavailableError(str(err))
    return kind(str(err))


class MySQLPlantStore(PlantStore):
    """
    PlantStore backed by the ``plant`` and ``plant_log`` tables.

    Usage:
      store = MySQLPlantStore(settings.store)
      store.connect()
      ...
      store.close()
    """

    def __init__(self, settings: StoreSettings):
        self._settings = settings
        self._pool: Optional[QueuePool] = None

    def connect(self) -> None:
        target = core.parse_db_url(self._settings.url)
        pool = core.create_pool(target, self._settings)
        try:
            with core.connect(pool) as conn, core.cursor(conn) as cur:
                cur.execute(
                    """
                    SELECT table_name
                    FROM information_schema.tables
                    WHERE table_schema = %s
                      AND table_name IN (%s, %s)
                    """,
                    (target.database, *REQUIRED_TABLES),
                )
                found = {str(row[0]).lower() for row in cur.fetchall() or []}
        except (DriverError, exc.SQLAlchemyError) as e:
            pool.dispose()
            raise ConnectionFailedError(str(e)) from e

        if not set(REQUIRED_TABLES) <= found:
            pool.dispose()
            raise SchemaMissingError("database: Schema and tables not found")

        self._pool = pool
        logger.info(
            "Connected to %s:%s/%s (pool_size=%s)",
            target.host,
            target.port,
            target.database,
            self._settings.pool_size,
        )

    def close(self) -> None:
        pool, self._pool = self._pool, None
        if pool is None:
            return
        try:
            pool.dispose()
        except Exception as e:
            logger.warning("Error while closing the connection pool: %s", e)

    @contextmanager
    def _cursor(self, kind: type[StorageError]) -> Iterator:
        """Yield a cursor on a pooled connection, translating failures to ``kind``."""
        if self._pool is None:
            raise StoreUnavailableError("database: store is not connected")
        try:
            with core.connect(self._pool) as conn, core.cursor(conn) as cur:
                yield cur
        except (DriverError, exc.SQLAlchemyError) as e:
            raise to_storage_error(e, kind) from e
        except UnicodeEncodeError as e:
            # Parameters holding invalid UTF-8 cannot be sent on a utf8mb4 connection.
            raise kind(f"Incorrect string value: {e}") from e

    def list_plants_short_description(self) -> list[PlantShortDesc]:
        with self._cursor(QueryFailedError) as cur:
            cur.execute("SELECT id, common_name FROM plant ORDER BY id")
            rows = cur.fetchall() or []
        return [PlantShortDesc(id=row[0], common_name=row[1]) for row in rows]

    def add_plant(self, common_name: str, generic_name: str, specific_name: str) -> int:
        with self._cursor(InsertFailedError) as cur:
            cur.execute(
                "INSERT INTO plant (common_name, generic_name, specific_name) VALUES (%s, %s, %s)",
                (common_name, generic_name, specific_name),
            )
            return int(cur.lastrowid)

    def get_plant_names(self, plant_id: int) -> PlantNames:
        with self._cursor(QueryFailedError) as cur:
            cur.execute(
                "SELECT common_name, generic_name, specific_name FROM plant WHERE id=%s",
                (plant_id,),
            )
            row = cur.fetchone()
        if not row:
            raise PlantNotFoundError(plant_id)
        return row[0], row[1], row[2]

    def list_plant_logs(self, plant_id: int) -> list[PlantLog]:
        with self._cursor(QueryFailedError) as cur:
            cur.execute(
                "SELECT id, plant_id, description, event_type FROM plant_log WHERE plant_id=%s ORDER BY id",
                (plant_id,),
            )
            rows = cur.fetchall() or []
        return [PlantLog(id=row[0], plant_id=row[1], desc=row[2], event_type=row[3]) for row in rows]

    def add_plant_log(self, plant_id: int, desc: str, event_type: int) -> int:
        with self._cursor(InsertFailedError) as cur:
            cur.execute(
                "INSERT INTO plant_log (plant_id, description, event_type) VALUES (%s, %s, %s)",
                (plant_id, desc, event_type),
            )
            return int(cur.lastrowid)
