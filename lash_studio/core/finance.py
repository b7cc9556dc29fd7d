import calendar
import logging
import re
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from lash_studio.config import STUDIO_TIMEZONE
from lash_studio.core.errors import AppointmentNotFound, RecordStoreError
from lash_studio.core.record_store import APPOINTMENTS, CLIENTS, RecordStore
from lash_studio.models.appointment import GUEST_CLIENT_LABEL, Appointment
from lash_studio.models.client import Client
from lash_studio.models.finance import (
    ChartPoint,
    DossieSyncStatus,
    FinanceDashboard,
    Metrics,
    Period,
    ReceivablesLedger,
    SettlementResult,
    Transaction,
    TransactionStatus,
)


logger = logging.getLogger(__name__)


ZERO = Decimal("0")
CENTS = Decimal("0.01")

# nota gravada no dossiê na marcação e trocada na quitação
BALANCE_NOTE = re.compile(r"Valor restante: R\$ .*")
PAID_IN_FULL_NOTE = "Pagamento integral recebido."

DAY_LABELS = ["Manhã", "Tarde", "Noite"]
WEEKDAY_LABELS = ["Dom", "Seg", "Ter", "Qua", "Qui", "Sex", "Sáb"]
MONTH_WEEK_LABELS = ["Sem 1", "Sem 2", "Sem 3", "Sem 4", "Sem 5"]
MONTH_LABELS = ["Jan", "Fev", "Mar", "Abr", "Mai", "Jun", "Jul", "Ago", "Set", "Out", "Nov", "Dez"]


def local_today() -> date:
    return datetime.now(ZoneInfo(STUDIO_TIMEZONE)).date()


# =========================
# TRANSAÇÕES DERIVADAS
# =========================

def to_transaction(appointment: Appointment, client_names: Dict[str, str]) -> Transaction:
    inflow = appointment.price if appointment.is_paid else appointment.deposit_value
    receivable = max(appointment.price - inflow, ZERO)

    return Transaction(
        id=appointment.id,
        client_id=appointment.client_id,
        client_name=client_names.get(appointment.client_id, GUEST_CLIENT_LABEL),
        procedure=appointment.service_type,
        total=appointment.price,
        method=appointment.payment_method,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
        inflow=inflow,
        receivable=receivable,
        status=TransactionStatus.PAID if appointment.is_paid else TransactionStatus.PENDING,
    )


def compute_transactions(
    appointments: Iterable[Appointment],
    clients: Iterable[Client],
) -> List[Transaction]:
    """Uma transação por agendamento, na mesma ordem da entrada."""
    client_names = {c.id: c.name for c in clients}
    return [to_transaction(a, client_names) for a in appointments]


# =========================
# FILTRO POR PERÍODO
# =========================

def period_bounds(period: Period, reference: date) -> Tuple[date, date]:
    """Intervalo [início, fim] (inclusivo) do período que contém ``reference``.

    Semana = semana de calendário, de domingo a sábado.
    """
    if period == Period.DAY:
        return reference, reference

    if period == Period.WEEK:
        # weekday(): segunda=0 ... domingo=6
        start = reference - timedelta(days=(reference.weekday() + 1) % 7)
        return start, start + timedelta(days=6)

    if period == Period.MONTH:
        last_day = calendar.monthrange(reference.year, reference.month)[1]
        return reference.replace(day=1), reference.replace(day=last_day)

    if period == Period.YEAR:
        return date(reference.year, 1, 1), date(reference.year, 12, 31)

    raise ValueError(f"Período desconhecido: {period}")


def in_period(day: date, period: Period, reference: date) -> bool:
    start, end = period_bounds(period, reference)
    return start <= day <= end


def filter_by_period(
    transactions: Iterable[Transaction],
    period: Period,
    reference: date,
) -> List[Transaction]:
    start, end = period_bounds(period, reference)
    return [t for t in transactions if start <= t.appointment_date <= end]


# =========================
# MÉTRICAS
# =========================

def summarize(
    transactions: Sequence[Transaction],
    period: Optional[Period] = None,
    reference: Optional[date] = None,
) -> Metrics:
    transactions = list(transactions)
    if period is None:
        scoped = transactions
    else:
        scoped = filter_by_period(transactions, period, reference or local_today())

    total_gross = sum((t.total for t in scoped), ZERO)
    total_inflow = sum((t.inflow for t in scoped), ZERO)

    # saldo devedor não "expira" com o filtro: sempre sobre o conjunto inteiro
    total_receivable = sum((t.receivable for t in transactions), ZERO)

    ticket_average = ZERO
    if scoped:
        ticket_average = (total_gross / len(scoped)).quantize(CENTS, rounding=ROUND_HALF_UP)

    return Metrics(
        total_gross=total_gross,
        total_inflow=total_inflow,
        total_receivable=total_receivable,
        ticket_average=ticket_average,
        count=len(scoped),
    )


def _most_recent_first(transactions: Iterable[Transaction]) -> List[Transaction]:
    return sorted(
        transactions,
        key=lambda t: (t.appointment_date, t.appointment_time),
        reverse=True,
    )


def receivables(transactions: Iterable[Transaction]) -> List[Transaction]:
    return _most_recent_first(t for t in transactions if t.receivable > 0)


# =========================
# GRÁFICO (fluxo de caixa)
# =========================

def _chart_labels(period: Period) -> List[str]:
    return {
        Period.DAY: DAY_LABELS,
        Period.WEEK: WEEKDAY_LABELS,
        Period.MONTH: MONTH_WEEK_LABELS,
        Period.YEAR: MONTH_LABELS,
    }[period]


def _chart_bucket(transaction: Transaction, period: Period) -> int:
    if period == Period.DAY:
        hour = transaction.appointment_time.hour
        if hour < 12:
            return 0
        return 1 if hour < 18 else 2
    if period == Period.WEEK:
        return (transaction.appointment_date.weekday() + 1) % 7
    if period == Period.MONTH:
        return (transaction.appointment_date.day - 1) // 7
    return transaction.appointment_date.month - 1


def chart_series(
    transactions: Iterable[Transaction],
    period: Period,
    reference: date,
) -> List[ChartPoint]:
    labels = _chart_labels(period)
    totals = [ZERO] * len(labels)

    for t in filter_by_period(transactions, period, reference):
        totals[_chart_bucket(t, period)] += t.inflow

    return [ChartPoint(label=label, value=value) for label, value in zip(labels, totals)]


# =========================
# QUITAÇÃO
# =========================

def settle_note(notes: str) -> str:
    if BALANCE_NOTE.search(notes):
        return BALANCE_NOTE.sub(PAID_IN_FULL_NOTE, notes)
    if PAID_IN_FULL_NOTE in notes:
        return notes
    return f"{notes} {PAID_IN_FULL_NOTE}".strip()


class FinanceService:
    def __init__(self, store: RecordStore):
        self.store = store

    def _appointments(self) -> List[Appointment]:
        return [Appointment.from_record(r) for r in self.store.get_collection(APPOINTMENTS)]

    def _clients(self) -> List[Client]:
        return [Client.from_record(r) for r in self.store.get_collection(CLIENTS)]

    def transactions(self) -> List[Transaction]:
        return compute_transactions(self._appointments(), self._clients())

    def dashboard(self, period: Period, reference: Optional[date] = None) -> FinanceDashboard:
        reference = reference or local_today()
        transactions = self.transactions()
        start, end = period_bounds(period, reference)

        return FinanceDashboard(
            period=period,
            reference=reference,
            start=start,
            end=end,
            metrics=summarize(transactions, period, reference),
            chart=chart_series(transactions, period, reference),
        )

    def ledger(self, period: Optional[Period] = None, reference: Optional[date] = None) -> List[Transaction]:
        transactions = self.transactions()
        if period is not None:
            transactions = filter_by_period(transactions, period, reference or local_today())
        return _most_recent_first(transactions)

    def receivables_ledger(self) -> ReceivablesLedger:
        items = receivables(self.transactions())
        return ReceivablesLedger(total=sum((t.receivable for t in items), ZERO), items=items)

    def settle(self, appointment_id: str) -> SettlementResult:
        """Quita o saldo de um agendamento e anota o dossiê da cliente.

        Dois passos independentes, sem rollback: o agendamento é gravado
        primeiro (obrigatório); a anotação do dossiê é best-effort e é
        refeita em toda chamada, então repetir a quitação é seguro.
        """
        record = self.store.get_item(APPOINTMENTS, appointment_id)
        if record is None:
            raise AppointmentNotFound(appointment_id)
        appointment = Appointment.from_record(record)

        already_paid = appointment.is_paid
        if already_paid:
            logger.info("Agendamento %s já estava quitado", appointment_id)
        else:
            appointment.deposit_value = appointment.price
            saved = self.store.save_item(APPOINTMENTS, appointment.to_record())
            appointment = Appointment.from_record(saved)
            logger.info("Agendamento %s quitado (total %s)", appointment_id, appointment.price)

        return SettlementResult(
            appointment=appointment,
            already_paid=already_paid,
            dossie_status=self._annotate_dossie(appointment),
        )

    def _annotate_dossie(self, appointment: Appointment) -> DossieSyncStatus:
        if not appointment.has_client_profile:
            return DossieSyncStatus.NO_CLIENT

        try:
            record = self.store.get_item(CLIENTS, appointment.client_id)
            if record is None:
                logger.warning(
                    "Agendamento %s aponta para cliente inexistente %s; dossiê não anotado",
                    appointment.id,
                    appointment.client_id,
                )
                return DossieSyncStatus.NO_CLIENT

            client = Client.from_record(record)
            entry = client.entry_for_appointment(appointment.id)
            if entry is None:
                return DossieSyncStatus.NO_ENTRY

            notes = settle_note(entry.notes)
            if notes == entry.notes:
                return DossieSyncStatus.UNCHANGED

            entry.notes = notes
            self.store.save_item(CLIENTS, client.to_record())
        except (RecordStoreError, ValidationError) as exc:
            logger.error(
                "Agendamento %s quitado, mas o dossiê da cliente %s não foi atualizado: %s",
                appointment.id,
                appointment.client_id,
                exc,
            )
            return DossieSyncStatus.FAILED

        return DossieSyncStatus.PATCHED
