from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from core.paths import get_database_path
from core.resources import get_schema_path

SCHEMA_VERSION = 1


class DatabaseManager:
    def __init__(self, db_path: Path | None = None, logger: logging.Logger | None = None) -> None:
        self._db_path = db_path or get_database_path()
        self._logger = logger or logging.getLogger("sheephole.storage")
        self._connection: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        if self._connection is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self._db_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys = ON")
            self._initialize_schema_if_needed()
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def _initialize_schema_if_needed(self) -> None:
        if self._connection is None:
            raise RuntimeError("Database connection not initialized")

        current_version = self._connection.execute("PRAGMA user_version").fetchone()[0]
        if current_version >= SCHEMA_VERSION:
            return

        self._logger.info("Applying database schema")
        schema_sql = get_schema_path().read_text(encoding="utf-8")
        self._connection.executescript(schema_sql)
        self._connection.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        self._connection.commit()
        self._logger.info("Database schema applied with user_version=%s", SCHEMA_VERSION)

    @property
    def connection(self) -> sqlite3.Connection:
        return self.connect()
