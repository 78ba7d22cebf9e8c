import os

from .base import JWT_ALGORITHM, db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env(default_password="12345")

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"
TOKEN_TTL_HOURS = 1

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = False
AUTO_SEED_DB = False
