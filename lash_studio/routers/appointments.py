from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from lash_studio.core.errors import AppointmentNotFound, ClientNotFound
from lash_studio.core.record_store import RecordStore, get_record_store
from lash_studio.core.scheduling import SchedulingService
from lash_studio.models.appointment import Appointment, AppointmentCreate, TimelineItem
from lash_studio.models.finance import Period


router = APIRouter(prefix="/appointments", tags=["appointments"])


# =========================
# CRIAR AGENDAMENTO
# =========================
@router.post("/", status_code=status.HTTP_201_CREATED, response_model=Appointment)
def create_appointment(
    data: AppointmentCreate,
    store: RecordStore = Depends(get_record_store),
):
    try:
        return SchedulingService(store).book(data)
    except ClientNotFound:
        raise HTTPException(status_code=404, detail="Cliente não encontrada")


# =========================
# AGENDA (linha do tempo)
# =========================
@router.get("/", response_model=List[TimelineItem])
def list_appointments(
    period: Optional[Period] = None,
    reference: Optional[date] = None,
    store: RecordStore = Depends(get_record_store),
):
    return SchedulingService(store).timeline(period, reference)


@router.get("/{appointment_id}", response_model=Appointment)
def get_appointment(
    appointment_id: str,
    store: RecordStore = Depends(get_record_store),
):
    try:
        return SchedulingService(store).get(appointment_id)
    except AppointmentNotFound:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")


@router.put("/{appointment_id}", response_model=Appointment)
def update_appointment(
    appointment_id: str,
    data: AppointmentCreate,
    store: RecordStore = Depends(get_record_store),
):
    try:
        return SchedulingService(store).update(appointment_id, data)
    except AppointmentNotFound:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")
    except ClientNotFound:
        raise HTTPException(status_code=404, detail="Cliente não encontrada")


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: str,
    store: RecordStore = Depends(get_record_store),
):
    try:
        SchedulingService(store).delete(appointment_id)
    except AppointmentNotFound:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")
