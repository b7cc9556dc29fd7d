from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from lash_studio.core.errors import AppointmentNotFound
from lash_studio.core.finance import FinanceService
from lash_studio.core.record_store import RecordStore, get_record_store
from lash_studio.models.finance import (
    FinanceDashboard,
    Period,
    ReceivablesLedger,
    SettlementResult,
    Transaction,
)


router = APIRouter(prefix="/finance", tags=["finance"])


@router.get("/summary", response_model=FinanceDashboard)
def finance_summary(
    period: Period = Period.MONTH,
    reference: Optional[date] = None,
    store: RecordStore = Depends(get_record_store),
):
    """Métricas + gráfico de entradas do período (padrão: mês atual)."""
    return FinanceService(store).dashboard(period, reference)


@router.get("/transactions", response_model=List[Transaction])
def list_transactions(
    period: Optional[Period] = None,
    reference: Optional[date] = None,
    store: RecordStore = Depends(get_record_store),
):
    return FinanceService(store).ledger(period, reference)


# =========================
# A RECEBER / QUITAÇÃO
# =========================
@router.get("/receivables", response_model=ReceivablesLedger)
def list_receivables(store: RecordStore = Depends(get_record_store)):
    return FinanceService(store).receivables_ledger()


@router.post("/receivables/{appointment_id}/settle", response_model=SettlementResult)
def settle_receivable(
    appointment_id: str,
    store: RecordStore = Depends(get_record_store),
):
    try:
        return FinanceService(store).settle(appointment_id)
    except AppointmentNotFound:
        raise HTTPException(status_code=404, detail="Agendamento não encontrado")
