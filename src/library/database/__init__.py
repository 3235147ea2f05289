"""
Database module for the Library backend
"""

from .connection import create_schema, get_async_session, get_engine, init_database

__all__ = ["create_schema", "get_async_session", "get_engine", "init_database"]
