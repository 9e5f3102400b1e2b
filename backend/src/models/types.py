"""
Custom SQLAlchemy types for cross-database compatibility.

Nested record structures (locations, budgets, pricing, preferences,
recurring schedules) are stored as JSON documents. PostgreSQL gets JSONB,
SQLite (tests) gets plain JSON.
"""

from sqlalchemy import JSON, Numeric, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB


class JSONBType(TypeDecorator):
    """JSONB on PostgreSQL, JSON elsewhere."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())


def Money():
    """Fixed-point column type for currency amounts, read back as float."""
    return Numeric(12, 2, asdecimal=False)
