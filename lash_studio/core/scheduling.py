import logging
from datetime import date
from typing import List, Optional

from pydantic import ValidationError

from lash_studio.core.errors import AppointmentNotFound, ClientNotFound, RecordStoreError
from lash_studio.core.finance import PAID_IN_FULL_NOTE, in_period, local_today
from lash_studio.core.record_store import APPOINTMENTS, CLIENTS, RecordStore
from lash_studio.models.appointment import (
    GUEST_CLIENT_ID,
    GUEST_CLIENT_LABEL,
    Appointment,
    AppointmentCreate,
    PaymentMethod,
    TimelineItem,
)
from lash_studio.models.client import Client, DossieEntry
from lash_studio.models.finance import DossieSyncStatus, Period


logger = logging.getLogger(__name__)


def payment_note(appointment: Appointment) -> str:
    """Resumo do pagamento gravado na entrada do dossiê."""
    note = f"Pagamento via {appointment.payment_method.value}"
    if appointment.payment_method == PaymentMethod.CREDIT_CARD and appointment.installments:
        note += f" em {appointment.installments}x"
    note += "."

    if appointment.is_paid:
        return f"{note} {PAID_IN_FULL_NOTE}"

    if appointment.deposit_value > 0:
        note += f" Sinal de R$ {appointment.deposit_value:.2f} pago."
    remaining = appointment.price - appointment.deposit_value
    return f"{note} Valor restante: R$ {remaining:.2f}."


class SchedulingService:
    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, appointment_id: str) -> Appointment:
        record = self.store.get_item(APPOINTMENTS, appointment_id)
        if record is None:
            raise AppointmentNotFound(appointment_id)
        return Appointment.from_record(record)

    def _client(self, client_id: str) -> Optional[Client]:
        record = self.store.get_item(CLIENTS, client_id)
        return Client.from_record(record) if record else None

    def _require_client(self, client_id: str) -> None:
        if client_id != GUEST_CLIENT_ID and self._client(client_id) is None:
            raise ClientNotFound(client_id)

    # =========================
    # SINCRONIA COM O DOSSIÊ
    # =========================

    def _sync_dossie(self, action, appointment: Appointment) -> DossieSyncStatus:
        # o agendamento já foi gravado; falha no dossiê não desfaz a operação
        try:
            return action(appointment)
        except (RecordStoreError, ValidationError) as exc:
            logger.error(
                "Agendamento %s salvo, mas o dossiê da cliente %s não foi atualizado: %s",
                appointment.id,
                appointment.client_id,
                exc,
            )
            return DossieSyncStatus.FAILED

    def _attach_entry(self, appointment: Appointment) -> DossieSyncStatus:
        if not appointment.has_client_profile:
            return DossieSyncStatus.NO_CLIENT

        client = self._client(appointment.client_id)
        if client is None:
            logger.warning("Cliente %s não existe; dossiê não atualizado", appointment.client_id)
            return DossieSyncStatus.NO_CLIENT

        fields = dict(
            procedure_date=appointment.appointment_date,
            procedure_time=appointment.appointment_time,
            procedure=appointment.service_type,
            value=appointment.price,
            payment_method=appointment.payment_method,
            notes=payment_note(appointment),
        )

        entry = client.entry_for_appointment(appointment.id)
        if entry is None:
            client.dossie.insert(0, DossieEntry(appointment_id=appointment.id, **fields))
        else:
            # fotos e ficha de anamnese da entrada são preservadas
            for key, value in fields.items():
                setattr(entry, key, value)

        client.last_visit = "Hoje"
        self.store.save_item(CLIENTS, client.to_record())
        return DossieSyncStatus.PATCHED

    def _detach_entry(self, appointment: Appointment) -> DossieSyncStatus:
        if not appointment.has_client_profile:
            return DossieSyncStatus.NO_CLIENT

        client = self._client(appointment.client_id)
        if client is None:
            return DossieSyncStatus.NO_CLIENT
        if client.entry_for_appointment(appointment.id) is None:
            return DossieSyncStatus.NO_ENTRY

        client.dossie = [e for e in client.dossie if e.appointment_id != appointment.id]
        self.store.save_item(CLIENTS, client.to_record())
        return DossieSyncStatus.PATCHED

    # =========================
    # OPERAÇÕES
    # =========================

    def book(self, data: AppointmentCreate) -> Appointment:
        self._require_client(data.client_id)

        appointment = Appointment.model_validate(data.model_dump())
        saved = Appointment.from_record(self.store.save_item(APPOINTMENTS, appointment.to_record()))
        logger.info("Agendamento %s registrado para %s", saved.id, saved.client_id)

        self._sync_dossie(self._attach_entry, saved)
        return saved

    def update(self, appointment_id: str, data: AppointmentCreate) -> Appointment:
        current = self.get(appointment_id)
        self._require_client(data.client_id)

        updated = Appointment.model_validate(
            {**data.model_dump(), "id": current.id, "owner_id": current.owner_id}
        )
        saved = Appointment.from_record(self.store.save_item(APPOINTMENTS, updated.to_record()))

        if current.client_id != saved.client_id:
            self._sync_dossie(self._detach_entry, current)
        self._sync_dossie(self._attach_entry, saved)
        return saved

    def delete(self, appointment_id: str) -> None:
        current = self.get(appointment_id)
        self.store.delete_item(APPOINTMENTS, appointment_id)
        logger.info("Agendamento %s removido", appointment_id)
        self._sync_dossie(self._detach_entry, current)

    def timeline(self, period: Optional[Period] = None, reference: Optional[date] = None) -> List[TimelineItem]:
        names = {
            r["id"]: r.get("name", GUEST_CLIENT_LABEL)
            for r in self.store.get_collection(CLIENTS)
        }
        appointments = [Appointment.from_record(r) for r in self.store.get_collection(APPOINTMENTS)]

        if period is not None:
            reference = reference or local_today()
            appointments = [a for a in appointments if in_period(a.appointment_date, period, reference)]

        appointments.sort(key=lambda a: (a.appointment_date, a.appointment_time))
        return [
            TimelineItem.model_validate(
                {**a.to_record(), "client_name": names.get(a.client_id, GUEST_CLIENT_LABEL)}
            )
            for a in appointments
        ]
