from __future__ import annotations

import importlib

from dotenv import load_dotenv

from tiffin_ledger.config import get_settings_module
from tiffin_ledger.database.bootstrap import apply_schema, seed_demo_members
from tiffin_ledger.main import SCHEMA_PATH


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=SCHEMA_PATH)
    inserted = seed_demo_members(db_config)
    print(f"OK: demo members ready ({inserted} inserted) in {db_config.get('database')}")


if __name__ == "__main__":
    main()
