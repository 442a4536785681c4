from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from roster_node.config.runtime import RuntimeSettings
from roster_node.db.init_db import auto_migrate
from roster_node.db.repositories import DBPlayerRepository


def database_url(settings: RuntimeSettings | None = None) -> str:
    return (settings or RuntimeSettings.from_env()).database_url


def build_engine(settings: RuntimeSettings) -> Engine:
    return create_engine(settings.database_url, pool_pre_ping=True)


class DatabaseStore:
    """Owns the engine for the lifetime of the API worker.

    Opened in the app lifespan, disposed at shutdown; each request gets its
    own `Session` wrapped in a `DBPlayerRepository`.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def open(cls, settings: RuntimeSettings) -> "DatabaseStore":
        engine = build_engine(settings)
        if settings.auto_migrate:
            auto_migrate(engine)
        return cls(engine)

    @contextmanager
    def session(self) -> Iterator[DBPlayerRepository]:
        with Session(self.engine) as session:
            yield DBPlayerRepository(session)

    def close(self) -> None:
        self.engine.dispose()
