from pydantic import BaseModel, Field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class EstadoCivilEnum(str, Enum):
    soltero = "Soltero"
    casado = "Casado"
    divorciado = "Divorciado"
    viudo = "Viudo"
    union_libre = "Union Libre"


class IntakeSectionEnum(str, Enum):
    personal = "personal"
    residencia = "residencia"
    economica = "economica"
    referencias = "referencias"
    beneficiarios = "beneficiarios"
    garantias = "garantias"


class IntakeStateEnum(str, Enum):
    editing = "editing"
    submitting = "submitting"
    done = "done"


DEPARTAMENTOS = [
    "Alta Verapaz",
    "Baja Verapaz",
    "Chimaltenango",
    "Chiquimula",
    "El Progreso",
    "Escuintla",
    "Guatemala",
    "Huehuetenango",
    "Izabal",
    "Jalapa",
    "Jutiapa",
    "Petén",
    "Quetzaltenango",
    "Quiché",
    "Retalhuleu",
    "Sacatepéquez",
    "San Marcos",
    "Santa Rosa",
    "Sololá",
    "Suchitepéquez",
    "Totonicapán",
    "Zacapa",
]

# Suggested values; parentesco is still free text
PARENTESCOS = [
    "Padre",
    "Madre",
    "Hijo/a",
    "Hermano/a",
    "Esposo/a",
    "Tío/a",
    "Primo/a",
    "Abuelo/a",
    "Nieto/a",
    "Amigo/a",
    "Vecino/a",
    "Compañero/a trabajo",
    "Otro",
]


class ClienteDraft(BaseModel):
    """Client intake form as typed by the user: blank strings mean "not filled in yet"."""
    # Información personal
    celular: str = ""
    dpi: str = ""
    primer_nombre: str = ""
    segundo_nombre: str = ""
    primer_apellido: str = ""
    segundo_apellido: str = ""
    fecha_nacimiento: str = Field("", description="ISO date, YYYY-MM-DD")
    estado_civil: EstadoCivilEnum = EstadoCivilEnum.soltero
    email: str = ""

    # Información de residencia
    direccion_completa: str = ""
    departamento: str = "Guatemala"
    municipio: str = ""
    pais: str = "Guatemala"
    observacion_domicilio: str = ""

    # Información económica
    ingreso_mensual: Union[str, float, None] = ""
    dependientes_economicos: Union[str, int, None] = "0"
    actividad_economica: str = ""
    observacion_actividad: str = ""


class ReferenciaDraft(BaseModel):
    nombre_apellido: str = ""
    parentesco: str = ""
    celular: str = ""

    def is_complete(self) -> bool:
        return bool(self.nombre_apellido and self.parentesco and self.celular)


class BeneficiarioDraft(BaseModel):
    nombre_apellido: str = ""
    parentesco: str = ""
    celular: str = ""

    def is_complete(self) -> bool:
        return bool(self.nombre_apellido and self.parentesco)


class GarantiaDraft(BaseModel):
    nombre: str = ""
    marca: str = ""
    tiempo: str = ""
    descripcion: str = ""
    valor_estimado: Union[float, str, None] = 0

    def is_complete(self) -> bool:
        return bool(self.nombre)


class ClienteIntakeRequest(BaseModel):
    """One-shot submission of the whole intake form."""
    cliente: ClienteDraft
    referencias: List[ReferenciaDraft] = []
    beneficiarios: List[BeneficiarioDraft] = []
    garantias: List[GarantiaDraft] = []


class SectionChangeRequest(BaseModel):
    section: IntakeSectionEnum


class FieldUpdateRequest(BaseModel):
    field: str
    value: Any = None


class IntakeSnapshot(BaseModel):
    intake_id: str
    state: IntakeStateEnum
    section: IntakeSectionEnum
    cliente: ClienteDraft
    referencias: List[ReferenciaDraft]
    beneficiarios: List[BeneficiarioDraft]
    garantias: List[GarantiaDraft]
    errors: Dict[str, str] = {}
    cliente_id: Optional[str] = None


class ClienteDetalle(BaseModel):
    """A persisted client with its owned sub-records, as shown in the expediente view."""
    cliente: Dict[str, Any]
    nombre_completo: str
    edad: Optional[int] = None
    referencias: List[Dict[str, Any]] = []
    beneficiarios: List[Dict[str, Any]] = []
    garantias: List[Dict[str, Any]] = []
