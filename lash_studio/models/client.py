from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import field_validator
from sqlmodel import SQLModel, Field

from lash_studio.core.signature import is_signature_data_url
from lash_studio.models.appointment import PaymentMethod
from lash_studio.models.record import StudioRecord, new_id


class EyeShape(str, Enum):
    ALMOND = "Almendoada"
    ROUND = "Redonda"
    HOODED = "Caída"
    MONOLID = "Oriental"
    DOWNTURNED = "Descendente"
    UPTURNED = "Ascendente"


class Analysis(SQLModel):
    """Ficha de anamnese + termo de consentimento assinado."""

    # Saúde ocular
    is_wearing_mascara: bool = False
    is_pregnant: bool = False
    has_allergies: bool = False
    thyroid_glaucoma_issues: bool = False
    oncological_treatment: bool = False
    recent_procedures: bool = False

    # Ficha técnica
    technique: str = ""
    mapping: str = ""
    style: str = ""
    curvature: str = ""
    thickness: str = ""
    adhesive_used: str = ""

    additional_notes: str = ""

    # data URL PNG do pad de assinatura; vazio = ainda não assinou
    signature: str = ""

    @field_validator("signature")
    @classmethod
    def _check_signature(cls, value: str) -> str:
        if value and not is_signature_data_url(value):
            raise ValueError("Assinatura inválida: esperado data URL PNG")
        return value

    @property
    def is_signed(self) -> bool:
        return bool(self.signature)


class DossieEntry(SQLModel):
    id: str = Field(default_factory=new_id)

    # agendamento que gerou a entrada (None quando registrada direto no dossiê)
    appointment_id: Optional[str] = None

    procedure_date: date
    procedure_time: Optional[time] = None
    procedure: str
    value: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    payment_method: Optional[PaymentMethod] = None

    notes: str = ""
    photos: List[str] = Field(default_factory=list)
    analysis: Optional[Analysis] = None


class DossieEntryCreate(SQLModel):
    procedure: str = Field(min_length=1)
    procedure_date: Optional[date] = None
    procedure_time: Optional[time] = None
    value: Decimal = Field(default=Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    payment_method: Optional[PaymentMethod] = PaymentMethod.PIX
    notes: str = ""
    photos: List[str] = Field(default_factory=list)
    analysis: Analysis = Field(default_factory=Analysis)


class ClientBase(SQLModel):
    name: str = Field(min_length=1)
    phone: str = ""
    email: str = ""
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    birthday: Optional[date] = None
    eye_shape: EyeShape = EyeShape.ALMOND
    notes: str = ""
    photo_url: Optional[str] = None
    gallery: List[str] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class ClientCreate(ClientBase):
    pass


class Client(StudioRecord, ClientBase):
    dossie: List[DossieEntry] = Field(default_factory=list)

    # rótulo livre ("Novo", "Hoje"...), não é calculado
    last_visit: str = "Novo"

    def sorted_dossie(self) -> List[DossieEntry]:
        return sorted(
            self.dossie,
            key=lambda e: (e.procedure_date, e.procedure_time or time.min),
            reverse=True,
        )

    def entry_for_appointment(self, appointment_id: str) -> Optional[DossieEntry]:
        for entry in self.dossie:
            if entry.appointment_id == appointment_id:
                return entry
        return None
