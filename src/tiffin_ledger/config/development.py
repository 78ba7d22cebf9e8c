import os

from .base import ADMIN_USERNAME, JWT_ALGORITHM, TOKEN_TTL_HOURS, db_config_from_env, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config_from_env(default_password="root")

# Development-only credentials, mirrors the demo admin of the mess front-end.
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, the app applies database/schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also insert demo members on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
