"""Database package."""

from db.base import Base
from db.session import ConnectivityMonitor, SchemaGuard, build_engine, build_session_factory, create_tables

__all__ = ["Base", "ConnectivityMonitor", "SchemaGuard", "build_engine", "build_session_factory", "create_tables"]
