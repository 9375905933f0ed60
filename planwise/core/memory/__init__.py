"""Persistence for the schedule store (SQLite via SQLAlchemy)."""
