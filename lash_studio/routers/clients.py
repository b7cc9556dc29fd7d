from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from lash_studio.core.finance import local_today
from lash_studio.core.record_store import CLIENTS, RecordStore, get_record_store
from lash_studio.models.client import Client, ClientCreate, DossieEntry, DossieEntryCreate


router = APIRouter(prefix="/clients", tags=["clients"])


def _get_client(store: RecordStore, client_id: str) -> Client:
    record = store.get_item(CLIENTS, client_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Cliente não encontrada")
    return Client.from_record(record)


@router.get("/", response_model=List[Client])
def list_clients(
    q: Optional[str] = None,
    store: RecordStore = Depends(get_record_store),
):
    clients = [Client.from_record(r) for r in store.get_collection(CLIENTS)]

    if q:
        term = q.strip().lower()
        clients = [
            c for c in clients
            if term in c.name.lower() or term in c.phone or term in c.email.lower()
        ]

    return sorted(clients, key=lambda c: c.name.lower())


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=Client)
def create_client(
    data: ClientCreate,
    store: RecordStore = Depends(get_record_store),
):
    client = Client.model_validate(data.model_dump())
    return Client.from_record(store.save_item(CLIENTS, client.to_record()))


@router.get("/{client_id}", response_model=Client)
def get_client(
    client_id: str,
    store: RecordStore = Depends(get_record_store),
):
    return _get_client(store, client_id)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_client(
    client_id: str,
    store: RecordStore = Depends(get_record_store),
):
    _get_client(store, client_id)
    store.delete_item(CLIENTS, client_id)


# =========================
# DOSSIÊ
# =========================
@router.get("/{client_id}/dossie", response_model=List[DossieEntry])
def get_dossie(
    client_id: str,
    store: RecordStore = Depends(get_record_store),
):
    return _get_client(store, client_id).sorted_dossie()


@router.post("/{client_id}/dossie", status_code=status.HTTP_201_CREATED, response_model=DossieEntry)
def add_dossie_entry(
    client_id: str,
    data: DossieEntryCreate,
    store: RecordStore = Depends(get_record_store),
):
    """Registra um procedimento com ficha de anamnese e termo assinado."""
    client = _get_client(store, client_id)

    entry = DossieEntry.model_validate(
        {**data.model_dump(), "procedure_date": data.procedure_date or local_today()}
    )
    client.dossie.insert(0, entry)
    client.last_visit = "Hoje"
    store.save_item(CLIENTS, client.to_record())

    return entry
