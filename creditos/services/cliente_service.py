import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from creditos.database.gateway import SupabaseGateway
from creditos.schemas.cliente_schema import ClienteDetalle
from creditos.services.validation_service import calcular_edad, parse_fecha
from creditos.utils.cliente_utils import nombre_completo

logger = logging.getLogger(__name__)


def matches_search(cliente: Dict[str, Any], search: str) -> bool:
    """Name and email match case-insensitively; DPI and phone match as typed."""
    search_lower = search.lower()
    email = cliente.get("email") or ""
    return (
        search_lower in nombre_completo(cliente).lower()
        or search in (cliente.get("dpi") or "")
        or search in (cliente.get("celular") or "")
        or search_lower in email.lower()
    )


class ClienteService:

    def __init__(self, gateway: SupabaseGateway):
        self.gateway = gateway

    # Lists clients newest first, optionally narrowed by a search term
    async def list_clientes(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        clientes = await self.gateway.select("clientes", order_by="created_at", descending=True)
        if search:
            clientes = [c for c in clientes if matches_search(c, search)]
        logger.info(f"Retrieved {len(clientes)} clientes (search={search!r})")
        return clientes

    async def get_cliente(self, cliente_id: str) -> Dict[str, Any]:
        rows = await self.gateway.select("clientes", filters={"id": cliente_id}, limit=1)
        if not rows:
            logger.warning(f"Cliente {cliente_id} not found")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado")
        return rows[0]

    # Builds the expediente view: the client plus every record it owns
    async def get_detalle(self, cliente_id: str, today: Optional[date] = None) -> ClienteDetalle:
        cliente = await self.get_cliente(cliente_id)
        owned = {"cliente_id": cliente_id}
        referencias = await self.gateway.select("referencias", filters=owned, order_by="created_at")
        beneficiarios = await self.gateway.select("beneficiarios", filters=owned, order_by="created_at")
        garantias = await self.gateway.select("garantias", filters=owned, order_by="created_at")

        fecha = parse_fecha(cliente.get("fecha_nacimiento"))
        return ClienteDetalle(
            cliente=cliente,
            nombre_completo=nombre_completo(cliente),
            edad=calcular_edad(fecha, today) if fecha else None,
            referencias=referencias,
            beneficiarios=beneficiarios,
            garantias=garantias,
        )

    # Deletes a client; the database cascades its credits, sub-records and expediente rows
    async def delete_cliente(self, cliente_id: str) -> None:
        await self.get_cliente(cliente_id)
        await self.gateway.delete("clientes", cliente_id)
        logger.info(f"Deleted cliente {cliente_id}")
