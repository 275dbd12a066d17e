"""Root conftest - shared test configuration."""

import os

# Settings are cached on first import: pin test values before anything loads
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IDENTITY_JWT_SECRET", "test-secret")
os.environ.setdefault("PROMPT_OPERATOR_IDS", '["operator"]')
os.environ.setdefault("LOG_FORMAT", "text")
