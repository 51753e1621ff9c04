import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from clearstock.config import Settings, get_settings


app_settings: Settings = get_settings()
logger = logging.getLogger(__name__)

_SQLITE_BUSY_TIMEOUT_SECONDS = 30
_SQLITE_BUSY_TIMEOUT_MS = _SQLITE_BUSY_TIMEOUT_SECONDS * 1000


def _is_sqlite_memory(url) -> bool:
    if url.get_backend_name() != "sqlite":
        return False
    if url.database in (None, "", ":memory:"):
        return True
    return url.query.get("mode") == "memory"


def build_engine(database_url: str):
    url = make_url(database_url)
    sqlite = url.get_backend_name() == "sqlite"
    memory = _is_sqlite_memory(url)

    connect_args = {}
    engine_kwargs: dict[str, object] = dict(pool_pre_ping=True)
    if sqlite:
        connect_args = {"check_same_thread": False, "timeout": _SQLITE_BUSY_TIMEOUT_SECONDS}
        if memory:
            engine_kwargs.update(poolclass=StaticPool)

    new_engine = create_engine(database_url, connect_args=connect_args, **engine_kwargs)

    if sqlite:
        @event.listens_for(new_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute(f"PRAGMA busy_timeout={_SQLITE_BUSY_TIMEOUT_MS}")
                if not memory:
                    try:
                        cursor.execute("PRAGMA journal_mode=WAL")
                        cursor.execute("PRAGMA synchronous=NORMAL")
                    except sqlite3.DatabaseError:
                        pass
            finally:
                cursor.close()

    return new_engine


engine = build_engine(app_settings.DATABASE_URL)


# Columns added after the first release; older SQLite files get them on boot.
_SQLITE_COLUMN_DEFAULTS = {
    "restaurants": {
        "alert_days_before_expiry": "INTEGER NOT NULL DEFAULT 3",
    },
    "categories": {
        "kind": "TEXT NOT NULL DEFAULT 'raw'",
        "alert_days_before_expiry": "INTEGER",
        "warning_days_before_expiry": "INTEGER",
    },
    "product_batches": {
        "unit": "TEXT NOT NULL DEFAULT 'un'",
        "status": "TEXT NOT NULL DEFAULT 'ACTIVE'",
        "location_id": "INTEGER",
    },
    "stock_events": {
        "batch_id": "INTEGER",
    },
}

# (table, index name, columns) that back the find-or-create paths.
_SQLITE_UNIQUE_INDEXES = (
    ("categories", "uq_categories_restaurant_name", ("restaurant_id", "name")),
    ("locations", "uq_locations_restaurant_name", ("restaurant_id", "name")),
)


def _escape_sqlite_identifier(value: str) -> str:
    return value.replace('"', '""')


def _get_sqlite_columns(conn, table_name: str):
    escaped_table = _escape_sqlite_identifier(table_name)
    # noinspection SqlNoDataSourceInspection
    result = conn.exec_driver_sql(
        f'PRAGMA table_info("{escaped_table}")'
    ).mappings()
    return {row["name"] for row in result}


def _get_sqlite_index_columns(conn, index_name: str):
    escaped_index = _escape_sqlite_identifier(index_name)
    # noinspection SqlNoDataSourceInspection
    result = conn.exec_driver_sql(
        f'PRAGMA index_info("{escaped_index}")'
    ).mappings()
    return [row["name"] for row in result]


def _has_unique_index(conn, table_name: str, columns) -> bool:
    escaped_table = _escape_sqlite_identifier(table_name)
    # noinspection SqlNoDataSourceInspection
    indexes = conn.exec_driver_sql(
        f'PRAGMA index_list("{escaped_table}")'
    ).mappings().all()
    for index in indexes:
        if not index.get("unique"):
            continue
        index_name = index.get("name")
        if not index_name:
            continue
        if set(_get_sqlite_index_columns(conn, index_name)) == set(columns):
            return True
    return False


def _ensure_unique_index(conn, table_name: str, index_name: str, columns) -> None:
    if _has_unique_index(conn, table_name, columns):
        return
    escaped_table = _escape_sqlite_identifier(table_name)
    column_list = ", ".join(f'"{_escape_sqlite_identifier(c)}"' for c in columns)
    # noinspection SqlNoDataSourceInspection
    duplicate = conn.exec_driver_sql(
        f'SELECT {column_list} FROM "{escaped_table}" '
        f"GROUP BY {column_list} HAVING COUNT(*) > 1 LIMIT 1"
    ).fetchone()
    if duplicate:
        logger.warning(
            "Skipping unique index on %s(%s) due to duplicates.",
            table_name,
            ", ".join(columns),
        )
        return
    try:
        with conn.begin_nested():
            # noinspection SqlNoDataSourceInspection
            conn.exec_driver_sql(
                f'CREATE UNIQUE INDEX IF NOT EXISTS "{_escape_sqlite_identifier(index_name)}" '
                f'ON "{escaped_table}"({column_list})'
            )
    except SQLAlchemyError:
        logger.warning("Unable to create unique index %s on %s.", index_name, table_name)


def ensure_sqlite_schema(bind=None):
    bind = bind if bind is not None else engine
    if bind.url.get_backend_name() != "sqlite":
        return
    with bind.connect() as conn:
        with conn.begin():
            for table_name, columns in _SQLITE_COLUMN_DEFAULTS.items():
                existing = _get_sqlite_columns(conn, table_name)
                if not existing:
                    continue
                for column_name, ddl in columns.items():
                    if column_name in existing:
                        continue
                    escaped_table = _escape_sqlite_identifier(table_name)
                    escaped_column = _escape_sqlite_identifier(column_name)
                    # noinspection SqlNoDataSourceInspection
                    conn.exec_driver_sql(
                        f'ALTER TABLE "{escaped_table}" ADD COLUMN "{escaped_column}" {ddl}'
                    )
                    logger.info("Added column %s.%s", table_name, column_name)

        with conn.begin():
            for table_name, index_name, columns in _SQLITE_UNIQUE_INDEXES:
                if not _get_sqlite_columns(conn, table_name):
                    continue
                _ensure_unique_index(conn, table_name, index_name, columns)


__all__ = ["build_engine", "engine", "ensure_sqlite_schema"]
