"""Persistence and SQLModel definitions for the fintrans web frontend."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, create_engine

from ..config import SQLITE_FILE_NAME
from ..models import utcnow
from ..storage import KeyValueStorage

engine = create_engine(
    f"sqlite:///{SQLITE_FILE_NAME}",
    echo=False,
    connect_args={"check_same_thread": False},
)

# Ensure fresh metadata when re-importing in test contexts.
SQLModel.metadata.clear()


class StorageEntry(SQLModel, table=True):
    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=utcnow)


class SqlStorage(KeyValueStorage):
    """Key-value storage kept in the ``storageentry`` table."""

    def __init__(self, bind: Engine) -> None:
        self.bind = bind

    def get_item(self, key: str) -> Optional[str]:
        with Session(self.bind) as session:
            entry = session.get(StorageEntry, key)
            return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        with Session(self.bind) as session:
            entry = session.get(StorageEntry, key)
            if entry is None:
                entry = StorageEntry(key=key, value=value)
            else:
                entry.value = value
                entry.updated_at = utcnow()
            session.add(entry)
            session.commit()

    def remove_item(self, key: str) -> None:
        with Session(self.bind) as session:
            entry = session.get(StorageEntry, key)
            if entry is not None:
                session.delete(entry)
                session.commit()


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)


create_db_and_tables()


__all__ = [
    "engine",
    "StorageEntry",
    "SqlStorage",
    "create_db_and_tables",
]
