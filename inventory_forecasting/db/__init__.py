# inventory_forecasting/db/__init__.py
from .connection import (
    DatabaseConnection, session_scope, get_engine, get_session,
    create_all_tables, drop_all_tables
)

__all__ = [
    'DatabaseConnection',
    'session_scope',
    'get_engine',
    'get_session',
    'create_all_tables',
    'drop_all_tables'
]
