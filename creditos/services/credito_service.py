import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from creditos.database.gateway import SupabaseGateway
from creditos.schemas.credito_schema import CreditoCreate, CreditoUpdate

logger = logging.getLogger(__name__)

CREDITO_JOIN_COLUMNS = (
    "*, "
    "clientes (primer_nombre, segundo_nombre, primer_apellido, segundo_apellido, dpi, celular), "
    "coordinadores (nombres, apellidos)"
)


def nombre_cliente(cliente: Optional[Dict[str, Any]]) -> str:
    if not cliente:
        return "N/A"
    return f"{cliente.get('primer_nombre', '')} {cliente.get('primer_apellido', '')}".strip()


def nombre_coordinador(coordinador: Optional[Dict[str, Any]]) -> str:
    if not coordinador:
        return "N/A"
    return f"{coordinador.get('nombres', '')} {coordinador.get('apellidos', '')}".strip()


class CreditoService:

    def __init__(self, gateway: SupabaseGateway):
        self.gateway = gateway

    async def create_credito(self, data: CreditoCreate) -> Dict[str, Any]:
        payload = data.model_dump(mode="json")
        payload["notas"] = (data.notas or "").strip() or None
        created = await self.gateway.insert("creditos", [payload])
        logger.info(f"Credito created for cliente {data.cliente_id} (monto={data.monto})")
        return created[0] if created else {}

    # Lists credits newest first with the client and coordinator names joined in
    async def list_creditos(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        rows = await self.gateway.select(
            "creditos",
            columns=CREDITO_JOIN_COLUMNS,
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        for row in rows:
            row["nombre_cliente"] = nombre_cliente(row.get("clientes"))
            row["nombre_coordinador"] = nombre_coordinador(row.get("coordinadores"))
        return rows

    async def update_credito(self, credito_id: str, data: CreditoUpdate) -> Dict[str, Any]:
        patch = {
            "estado": data.estado.value,
            "monto": data.monto,
            "notas": (data.notas or "").strip() or None,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        updated = await self.gateway.update("creditos", credito_id, patch)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Crédito no encontrado")
        logger.info(f"Credito {credito_id} updated to estado={data.estado.value}")
        return updated[0]

    async def delete_credito(self, credito_id: str) -> None:
        await self.gateway.delete("creditos", credito_id)
        logger.info(f"Deleted credito {credito_id}")
