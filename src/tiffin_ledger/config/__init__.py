import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; anything unknown falls back to development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "tiffin_ledger.config.production"

    if env in {"test", "testing"}:
        return "tiffin_ledger.config.testing"

    return "tiffin_ledger.config.development"
