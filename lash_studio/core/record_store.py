import copy
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from lash_studio.config import RECORD_STORE_BACKEND, STUDIO_OWNER_ID
from lash_studio.core.errors import RecordStoreError
from lash_studio.database import get_session
from lash_studio.models.record import StoredRecord, new_id, utcnow


logger = logging.getLogger(__name__)


# coleções usadas pelo estúdio
APPOINTMENTS = "appointments"
CLIENTS = "clients"

Record = Dict[str, Any]


class RecordStore(Protocol):
    """Persistência genérica de coleções de registros com ``id`` único."""

    def get_collection(self, name: str) -> List[Record]:
        ...

    def get_item(self, name: str, item_id: str) -> Optional[Record]:
        ...

    def save_item(self, name: str, record: Record) -> Record:
        ...

    def delete_item(self, name: str, item_id: str) -> None:
        ...


def _stamp(record: Record, item_id: str, owner_id: str, now: datetime) -> Record:
    stamped = copy.deepcopy(record)
    stamped["id"] = item_id
    stamped["owner_id"] = stamped.get("owner_id") or owner_id
    stamped["updated_at"] = now.isoformat()
    return stamped


# =========================
# MEMÓRIA
# =========================

class MemoryRecordStore:
    def __init__(self, owner_id: str = STUDIO_OWNER_ID):
        self.owner_id = owner_id
        self._collections: Dict[str, Dict[str, Record]] = {}

    def get_collection(self, name: str) -> List[Record]:
        return [copy.deepcopy(r) for r in self._collections.get(name, {}).values()]

    def get_item(self, name: str, item_id: str) -> Optional[Record]:
        record = self._collections.get(name, {}).get(item_id)
        return copy.deepcopy(record) if record is not None else None

    def save_item(self, name: str, record: Record) -> Record:
        item_id = record.get("id") or new_id()
        stamped = _stamp(record, item_id, self.owner_id, utcnow())
        self._collections.setdefault(name, {})[item_id] = stamped
        logger.debug("Registro %s/%s salvo (memória)", name, item_id)
        return copy.deepcopy(stamped)

    def delete_item(self, name: str, item_id: str) -> None:
        self._collections.get(name, {}).pop(item_id, None)


# =========================
# SQL (SQLModel)
# =========================

class SQLRecordStore:
    def __init__(self, session: Session, owner_id: str = STUDIO_OWNER_ID):
        self.session = session
        self.owner_id = owner_id

    def _failure(self, action: str, name: str, exc: SQLAlchemyError) -> RecordStoreError:
        self.session.rollback()
        logger.error("Falha ao %s na coleção %s: %s", action, name, exc)
        return RecordStoreError(f"Falha ao {action} na coleção {name}")

    def _row(self, name: str, item_id: str) -> Optional[StoredRecord]:
        return self.session.get(StoredRecord, {"collection": name, "id": item_id})

    def get_collection(self, name: str) -> List[Record]:
        try:
            rows = self.session.exec(
                select(StoredRecord)
                .where(StoredRecord.collection == name)
                .order_by(StoredRecord.created_at)
            ).all()
        except SQLAlchemyError as exc:
            raise self._failure("listar", name, exc) from exc

        return [copy.deepcopy(row.data) for row in rows]

    def get_item(self, name: str, item_id: str) -> Optional[Record]:
        try:
            row = self._row(name, item_id)
        except SQLAlchemyError as exc:
            raise self._failure("ler", name, exc) from exc

        return copy.deepcopy(row.data) if row else None

    def save_item(self, name: str, record: Record) -> Record:
        item_id = record.get("id") or new_id()
        now = utcnow()
        stamped = _stamp(record, item_id, self.owner_id, now)

        try:
            row = self._row(name, item_id)
            if row is None:
                row = StoredRecord(collection=name, id=item_id, created_at=now)
            row.data = stamped
            row.owner_id = stamped["owner_id"]
            row.updated_at = now

            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._failure("salvar", name, exc) from exc

        logger.debug("Registro %s/%s salvo", name, item_id)
        return copy.deepcopy(stamped)

    def delete_item(self, name: str, item_id: str) -> None:
        try:
            row = self._row(name, item_id)
            if row is None:
                return
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._failure("remover", name, exc) from exc


# =========================
# DEPENDÊNCIA (FastAPI)
# =========================

_memory_store = MemoryRecordStore()


def get_record_store(session: Session = Depends(get_session)) -> RecordStore:
    if RECORD_STORE_BACKEND == "memory":
        return _memory_store
    return SQLRecordStore(session)
