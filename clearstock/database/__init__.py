from clearstock.database.base import Base
from clearstock.database.engine import engine, ensure_sqlite_schema
from clearstock.database.session import SessionLocal, get_db

__all__ = ["Base", "engine", "ensure_sqlite_schema", "SessionLocal", "get_db"]
