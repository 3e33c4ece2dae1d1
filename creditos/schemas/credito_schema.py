from pydantic import BaseModel, Field
from enum import Enum
from datetime import date
from typing import Optional


class EstadoCreditoEnum(str, Enum):
    en_proceso = "En proceso"
    aprobado = "Aprobado"
    rechazado = "Rechazado"
    completado = "Completado"


class CreditoCreate(BaseModel):
    cliente_id: str = Field(..., min_length=1)
    coordinador_id: str = Field(..., min_length=1)
    monto: float = Field(..., gt=0)
    estado: EstadoCreditoEnum = EstadoCreditoEnum.en_proceso
    fecha: date = Field(default_factory=date.today)
    notas: Optional[str] = None


class CreditoUpdate(BaseModel):
    """Fields editable after creation; client and coordinator are fixed."""
    estado: EstadoCreditoEnum
    monto: float = Field(..., gt=0)
    notas: Optional[str] = None
