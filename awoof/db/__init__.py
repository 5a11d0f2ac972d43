"""Database Package — SQLAlchemy declarative Base and column mixins.

Invariants:
    - Base is defined once (db/base.py); engines and sessions live in infrastructure/database.py,
      which scripts share through init_db()

Design Decisions:
    - asyncpg driver for PostgreSQL (ADR: native async, no thread pool overhead)
"""
