import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from creditos.core.exceptions import UniqueViolationError
from creditos.database.gateway import SupabaseGateway
from creditos.schemas.coordinador_schema import CoordinadorCreate
from creditos.services.validation_service import parse_fecha

logger = logging.getLogger(__name__)


def _plural(n: int, singular: str, plural: str) -> str:
    return f"{n} {singular if n == 1 else plural}"


def tiempo_trabajo(fecha_contratacion: date, today: Optional[date] = None) -> str:
    """Human readable seniority, e.g. "12 días", "3 meses", "2 años y 1 mes"."""
    today = today or date.today()
    dias = abs((today - fecha_contratacion).days)
    if dias < 30:
        return f"{dias} días"
    if dias < 365:
        return _plural(dias // 30, "mes", "meses")
    anios = dias // 365
    meses = (dias % 365) // 30
    texto = _plural(anios, "año", "años")
    if meses > 0:
        texto += " y " + _plural(meses, "mes", "meses")
    return texto


class CoordinadorService:

    def __init__(self, gateway: SupabaseGateway):
        self.gateway = gateway

    async def create_coordinador(self, data: CoordinadorCreate) -> Dict[str, Any]:
        try:
            created = await self.gateway.insert("coordinadores", [data.model_dump(mode="json")])
        except UniqueViolationError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Ya existe un coordinador con ese email")
        logger.info(f"Coordinador created: {data.email}")
        return created[0] if created else {}

    async def list_coordinadores(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        rows = await self.gateway.select("coordinadores", order_by="created_at", descending=True)
        for row in rows:
            fecha = parse_fecha(row.get("fecha_contratacion"))
            row["tiempo_trabajo"] = tiempo_trabajo(fecha, today) if fecha else None
        return rows

    async def delete_coordinador(self, coordinador_id: str) -> None:
        await self.gateway.delete("coordinadores", coordinador_id)
        logger.info(f"Deleted coordinador {coordinador_id}")
