from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date
from typing import Optional


class CoordinadorCreate(BaseModel):
    """Staff member who administers credits."""
    nombres: str = Field(..., min_length=1)
    apellidos: str = Field(..., min_length=1)
    celular: str = Field(..., min_length=1)
    email: EmailStr
    fecha_contratacion: date
    departamento: str = Field(..., min_length=1)
    municipio: str = Field(..., min_length=1)
    pais: str = "Guatemala"
    direccion: str = Field(..., min_length=1)

    @field_validator("nombres", "apellidos", "celular", "departamento", "municipio", "direccion")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CoordinadorResponse(BaseModel):
    id: str
    nombres: str
    apellidos: str
    celular: str
    email: str
    fecha_contratacion: date
    departamento: str
    municipio: str
    pais: str
    direccion: str
    tiempo_trabajo: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
