"""
Database engine construction.

Dependencies: sqlalchemy
"""

from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool


def get_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine for *database_url*.

    ``pool_pre_ping=True`` verifies pooled connections before use.  An
    in-memory SQLite URL gets a single shared connection so that every
    session sees the same database.
    """
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=echo, pool_pre_ping=True)
