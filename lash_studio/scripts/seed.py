from datetime import time, timedelta
from decimal import Decimal
from typing import List, Tuple

from sqlmodel import Session

from lash_studio.core.finance import local_today
from lash_studio.core.record_store import APPOINTMENTS, CLIENTS, RecordStore, SQLRecordStore
from lash_studio.core.scheduling import SchedulingService
from lash_studio.database import create_db_and_tables, engine
from lash_studio.models.appointment import AppointmentCreate, PaymentMethod
from lash_studio.models.client import Client, EyeShape


DEMO_CLIENTS = [
    dict(name="Ana Souza", phone="11999990001", email="ana@gmail.com", eye_shape=EyeShape.ALMOND),
    dict(name="Beatriz Lima", phone="11999990002", email="bia@gmail.com", eye_shape=EyeShape.HOODED),
]


def seed(store: RecordStore) -> Tuple[List[Client], int]:
    """Popula o estúdio de demonstração; rodar de novo não duplica nada."""

    # 1) clientes de teste (se não existir nenhuma)
    existing = store.get_collection(CLIENTS)
    if existing:
        clients = [Client.from_record(r) for r in existing]
    else:
        clients = [
            Client.from_record(store.save_item(CLIENTS, Client(**data).to_record()))
            for data in DEMO_CLIENTS
        ]

    # 2) agenda da semana (se ainda não houver agendamentos):
    #    um pago, um com sinal, um avulso pendente
    if store.get_collection(APPOINTMENTS):
        return clients, 0

    today = local_today()
    bookings = [
        AppointmentCreate(
            client_id=clients[0].id,
            appointment_date=today,
            appointment_time=time(9, 0),
            service_type="Volume Brasileiro",
            price=Decimal("180.00"),
            deposit_value=Decimal("180.00"),
            payment_method=PaymentMethod.PIX,
        ),
        AppointmentCreate(
            client_id=clients[-1].id,
            appointment_date=today + timedelta(days=1),
            appointment_time=time(14, 30),
            service_type="Fio a Fio",
            price=Decimal("150.00"),
            deposit_value=Decimal("50.00"),
            payment_method=PaymentMethod.CREDIT_CARD,
            installments=2,
        ),
        AppointmentCreate(
            appointment_date=today,
            appointment_time=time(19, 0),
            service_type="Manutenção",
            price=Decimal("90.00"),
            payment_method=PaymentMethod.CASH,
        ),
    ]

    scheduling = SchedulingService(store)
    for data in bookings:
        scheduling.book(data)

    return clients, len(bookings)


def main():
    create_db_and_tables()

    with Session(engine) as session:
        clients, booked = seed(SQLRecordStore(session))

    print("✅ Seed concluído!")
    print(f"Clientes: {', '.join(c.name for c in clients)}")
    print(f"Agenda: {booked} agendamentos novos (pulado se já havia agenda)")


if __name__ == "__main__":
    main()
