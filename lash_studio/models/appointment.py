from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import computed_field, field_validator, model_validator
from sqlmodel import SQLModel, Field

from lash_studio.models.record import StudioRecord


# cliente avulso, sem perfil cadastrado
GUEST_CLIENT_ID = "guest"
DEFAULT_SERVICE_TYPE = "Atendimento Personalizado"
GUEST_CLIENT_LABEL = "Cliente Externo"


class PaymentMethod(str, Enum):
    CASH = "Dinheiro"
    PIX = "PIX"
    CREDIT_CARD = "Cartão de Crédito"
    DEBIT_CARD = "Cartão de Débito"


class PaymentStatus(str, Enum):
    PAID = "paid"
    PARTIAL = "partial"
    PENDING = "pending"


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def payment_status_for(price: Decimal, deposit_value: Decimal) -> PaymentStatus:
    if deposit_value >= price:
        return PaymentStatus.PAID
    if deposit_value > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


class AppointmentBase(SQLModel):
    client_id: str = GUEST_CLIENT_ID

    appointment_date: date
    appointment_time: time

    service_type: str = DEFAULT_SERVICE_TYPE

    # valor contratado e sinal já recebido
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    deposit_value: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)

    payment_method: PaymentMethod = PaymentMethod.PIX
    installments: Optional[int] = Field(default=None, ge=1)

    status: AppointmentStatus = AppointmentStatus.SCHEDULED

    @field_validator("client_id", mode="before")
    @classmethod
    def _guest_when_empty(cls, value):
        return value or GUEST_CLIENT_ID

    @field_validator("service_type", mode="before")
    @classmethod
    def _default_service(cls, value):
        if value is None or not str(value).strip():
            return DEFAULT_SERVICE_TYPE
        return str(value).strip()

    @model_validator(mode="after")
    def _check_payment(self):
        if self.deposit_value > self.price:
            raise ValueError("O sinal não pode ser maior que o valor total")

        # parcelamento só existe no cartão de crédito
        if self.payment_method != PaymentMethod.CREDIT_CARD:
            self.installments = None
        elif self.installments is None:
            self.installments = 1
        return self


class AppointmentCreate(AppointmentBase):
    pass


class Appointment(StudioRecord, AppointmentBase):
    # status de pagamento é sempre derivado de price x deposit_value
    @computed_field
    @property
    def payment_status(self) -> PaymentStatus:
        return payment_status_for(self.price, self.deposit_value)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def has_client_profile(self) -> bool:
        return self.client_id != GUEST_CLIENT_ID


class TimelineItem(Appointment):
    client_name: str = GUEST_CLIENT_LABEL
