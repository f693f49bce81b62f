"""Database layer - engine, base classes and the repository adapter."""

from tax_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from tax_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from tax_kernel.db.repository import SqlAlchemyRepository

__all__ = [
    "UUID",
    "Base",
    "TrackedBase",
    "UUIDString",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
    "SqlAlchemyRepository",
]
