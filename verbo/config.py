# Configuration module for server-side constants and defaults.

import os
from pathlib import Path

# Every daily verb and every guess has exactly this many letters.
WORD_LENGTH = 5

# The game calendar follows Brazil time (UTC-3), regardless of server zone.
BRAZIL_UTC_OFFSET_HOURS = -3

# Newline-separated list of verbs imported by `seed_verbs`.
VERBS_PATH = Path(os.environ.get("VERBS_PATH", Path(__file__).parent / "data" / "verbs.txt"))

# SQLAlchemy database URL. Defaults to a SQLite file next to the package.
DATABASE_URL = os.environ.get("DATABASE_URL", f"sqlite:///{Path(__file__).parent / 'verbo.db'}")

# Secret key for signing admin session tokens.
SECRET_KEY = os.environ.get("SECRET_KEY", "change-me-in-prod-please")

# Password exchanged for an admin token on /api/admin/login.
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin")

# Admin token validity, in seconds (8h).
ADMIN_TOKEN_MAX_AGE = int(os.environ.get("ADMIN_TOKEN_MAX_AGE", 60 * 60 * 8))

# CORS origins (if you deploy the client separately, add its domain here).
CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")

# Root log level applied on startup.
LOG_LEVEL = os.environ.get("VERBO_LOG_LEVEL", "INFO")

# How many past days /api/verb/debug reports.
DEBUG_DAYS = 10

# Default page size for admin listings.
DEFAULT_PAGE_SIZE = 20
