from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DBConfig":
        return cls(
            host=str(values["host"]),
            port=int(values.get("port") or 3306),
            user=str(values["user"]),
            password=str(values.get("password") or ""),
            database=str(values["database"]),
            connect_timeout=int(values.get("connect_timeout") or 10),
        )

    def describe(self) -> str:
        """``user@host:port/database`` (never the password), for logs."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Connection factory for the remote record store, one per target database.

    Note: Connections are short-lived (one per store operation); the row lock
    taken by ``locked`` lives exactly as long as its connection.
    """

    _instances: dict[tuple, "DatabaseConnection"] = {}
    _instances_lock = threading.Lock()

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        key = (config.host, config.port, config.user, config.database)
        with cls._instances_lock:
            instance: Optional[DatabaseConnection] = cls._instances.get(key)
            if instance is None:
                instance = DatabaseConnection(config)
                cls._instances[key] = instance
            return instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self, *, with_database: bool = True):
        kwargs = dict(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            connection_timeout=int(self._config.connect_timeout),
            use_pure=True,
        )
        if with_database:
            kwargs["database"] = self._config.database
        return mysql.connector.connect(**kwargs)
