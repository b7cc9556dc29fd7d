from datetime import date, time
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from lash_studio.core.errors import RecordStoreError
from lash_studio.core.record_store import APPOINTMENTS, CLIENTS, MemoryRecordStore, get_record_store
from lash_studio.main import app
from lash_studio.models.appointment import Appointment, PaymentMethod
from lash_studio.models.client import Client


class BrokenClientsStore(MemoryRecordStore):
    """Grava agendamentos normalmente, mas falha ao salvar clientes."""

    broken = False

    def save_item(self, name, record):
        if name == CLIENTS and self.broken:
            raise RecordStoreError("Falha ao salvar na coleção clients")
        return super().save_item(name, record)


@pytest.fixture
def store():
    return MemoryRecordStore(owner_id="owner-test")


@pytest.fixture
def api(store):
    app.dependency_overrides[get_record_store] = lambda: store
    # sem "with": o startup (criação das tabelas) não roda nos testes
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_appointment(
    price,
    deposit="0",
    day=date(2024, 5, 15),
    at=time(10, 0),
    client_id="guest",
    method=PaymentMethod.PIX,
    **extra,
) -> Appointment:
    return Appointment(
        client_id=client_id,
        appointment_date=day,
        appointment_time=at,
        price=Decimal(str(price)),
        deposit_value=Decimal(str(deposit)),
        payment_method=method,
        **extra,
    )


def save_appointment(store, *args, **kwargs) -> Appointment:
    appt = make_appointment(*args, **kwargs)
    return Appointment.from_record(store.save_item(APPOINTMENTS, appt.to_record()))


def save_client(store, name="Ana Souza", **extra) -> Client:
    client = Client(name=name, **extra)
    return Client.from_record(store.save_item(CLIENTS, client.to_record()))
