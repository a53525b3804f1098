"""Global pytest configuration."""

import os

# Set environment for tests before any imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
# Never reach a real model from tests; an empty key selects the stub client
os.environ["OPENAI_API_KEY"] = ""
os.environ["REDIS_URL"] = ""
