"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach real services or need a .env file
os.environ.setdefault("JWT_SECRET", "test-access-secret-with-at-least-32-chars")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-with-at-least-32-chars")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")
