"""
Database module - per-request datastore sessions and local schema.
"""
from app.db.postgres import get_db, test_datastore_connection
from app.db.schema import create_schema, drop_schema

__all__ = [
    "get_db",
    "test_datastore_connection",
    "create_schema",
    "drop_schema",
]
