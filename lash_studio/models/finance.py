from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlmodel import SQLModel

from lash_studio.models.appointment import Appointment, PaymentMethod


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class TransactionStatus(str, Enum):
    PAID = "Pago"
    PENDING = "Pendente"


class Transaction(SQLModel):
    # visão derivada de um agendamento; nunca é persistida
    id: Optional[str] = None
    client_id: str
    client_name: str
    procedure: str
    total: Decimal
    method: PaymentMethod
    appointment_date: date
    appointment_time: time
    inflow: Decimal
    receivable: Decimal
    status: TransactionStatus


class Metrics(SQLModel):
    total_gross: Decimal = Decimal("0")
    total_inflow: Decimal = Decimal("0")
    total_receivable: Decimal = Decimal("0")
    ticket_average: Decimal = Decimal("0")
    count: int = 0


class ChartPoint(SQLModel):
    label: str
    value: Decimal = Decimal("0")


class FinanceDashboard(SQLModel):
    period: Period
    reference: date
    start: date
    end: date
    metrics: Metrics
    chart: List[ChartPoint]


class ReceivablesLedger(SQLModel):
    total: Decimal
    items: List[Transaction]


class DossieSyncStatus(str, Enum):
    PATCHED = "patched"
    UNCHANGED = "unchanged"
    NO_CLIENT = "no_client"
    NO_ENTRY = "no_entry"
    FAILED = "failed"


class SettlementResult(SQLModel):
    appointment: Appointment
    already_paid: bool
    dossie_status: DossieSyncStatus
