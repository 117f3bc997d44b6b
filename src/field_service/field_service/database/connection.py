from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    charset: str = "utf8mb4"
    connect_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config.get("password", "")),
            database=str(db_config["database"]),
            charset=str(db_config.get("charset", "utf8mb4")),
            connect_timeout=int(db_config.get("connect_timeout", 10)),
        )


class DatabaseConnection:
    """Connection factory shared by the MySQL repositories.

    Note: one short-lived connection per unit of work; callers commit or roll
    back through `db_cursor`.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        logger.debug("Opening MySQL connection to %s:%s/%s", self._config.host, self._config.port, self._config.database)
        return mysql.connector.connect(
            host=self._config.host,
            port=self._config.port,
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            charset=self._config.charset,
            connection_timeout=self._config.connect_timeout,
            autocommit=False,
        )
