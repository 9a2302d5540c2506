"""
Database layer: engine, sessions, declarative base and transaction helpers.
"""
from progression.db.base import Base
from progression.db.session import async_session_maker, engine, get_db
from progression.db.transaction import atomic, savepoint
from progression.db.utils import get_or_create

__all__ = ["Base", "async_session_maker", "engine", "get_db", "atomic", "savepoint", "get_or_create"]
