import logging
from typing import Any, Dict

from creditos.database.gateway import SupabaseGateway
from creditos.schemas.credito_schema import EstadoCreditoEnum
from creditos.services.credito_service import nombre_cliente

logger = logging.getLogger(__name__)

RECENT_CREDITOS_LIMIT = 5


class DashboardService:
    """Headline numbers for the dashboard landing page."""

    def __init__(self, gateway: SupabaseGateway):
        self.gateway = gateway

    async def get_stats(self) -> Dict[str, Any]:
        clientes = await self.gateway.count("clientes")
        coordinadores = await self.gateway.count("coordinadores")
        creditos = await self.gateway.count("creditos")

        montos = await self.gateway.select("creditos", columns="monto, estado")
        aprobados = sum(1 for c in montos if c.get("estado") == EstadoCreditoEnum.aprobado.value)
        monto_total = sum(float(c.get("monto") or 0) for c in montos)

        recientes = await self.gateway.select(
            "creditos",
            columns="*, clientes (primer_nombre, segundo_nombre, primer_apellido, segundo_apellido)",
            order_by="created_at",
            descending=True,
            limit=RECENT_CREDITOS_LIMIT,
        )
        for credito in recientes:
            credito["nombre_cliente"] = nombre_cliente(credito.get("clientes"))

        logger.debug(f"Dashboard stats: clientes={clientes} coordinadores={coordinadores} creditos={creditos}")
        return {
            "clientes": clientes,
            "coordinadores": coordinadores,
            "creditos": creditos,
            "creditos_aprobados": aprobados,
            "monto_total": monto_total,
            "creditos_recientes": recientes,
        }
