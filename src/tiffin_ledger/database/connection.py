from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Dict

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "tiffin_ledger"

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        defaults = cls()
        return cls(
            host=str(db_config.get("host", defaults.host)),
            port=int(db_config.get("port", defaults.port)),
            user=str(db_config.get("user", defaults.user)),
            password=str(db_config.get("password", defaults.password)),
            database=str(db_config.get("database", defaults.database)),
        )


class DatabaseConnection:
    """Connection factory, one shared instance per DBConfig.

    Connections are short-lived: one per ``db_cursor`` call, or one per
    ``mysql_base.transaction`` block. Autocommit is off so the caller decides
    when to commit.
    """

    _instances: Dict[DBConfig, "DatabaseConnection"] = {}
    _guard = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        with cls._guard:
            if config not in cls._instances:
                cls._instances[config] = cls(config)
            return cls._instances[config]

    def connect(self):
        return mysql.connector.connect(autocommit=False, **asdict(self._config))
