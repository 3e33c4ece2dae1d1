from pydantic import BaseModel
from typing import Optional


class ArchivoExpedienteResponse(BaseModel):
    id: str
    cliente_id: str
    nombre_archivo: str
    tipo_archivo: str
    url: str
    size: int
    size_legible: Optional[str] = None
    created_at: Optional[str] = None
