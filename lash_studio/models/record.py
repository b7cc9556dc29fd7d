import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredRecord(SQLModel, table=True):
    # coleção + id formam a chave; o registro em si vai inteiro no JSON
    collection: str = Field(primary_key=True)
    id: str = Field(primary_key=True)

    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    owner_id: Optional[str] = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class StudioRecord(SQLModel):
    """Campos que o RecordStore atribui a todo registro salvo."""

    id: Optional[str] = None
    owner_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    def to_record(self) -> Dict[str, Any]:
        # campos calculados nunca vão para o banco
        return self.model_dump(mode="json", exclude=set(type(self).model_computed_fields))

    @classmethod
    def from_record(cls, record: Dict[str, Any]):
        return cls.model_validate(record)
