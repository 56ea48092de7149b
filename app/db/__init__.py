"""Relational persistence (SQLAlchemy engine, sessions and ORM models)."""
