from fastapi import APIRouter, Depends, HTTPException, status
from typing import Any, Dict
import logging

from creditos.core.auth_dependencies import get_current_session
from creditos.core.exceptions import GatewayError
from creditos.database.connection import get_gateway
from creditos.database.gateway import SupabaseGateway
from creditos.services.dashboard_service import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard", tags=["Dashboard"], dependencies=[Depends(get_current_session)])


def get_dashboard_service(gateway: SupabaseGateway = Depends(get_gateway)) -> DashboardService:
    return DashboardService(gateway)


@router.get("/stats")
async def get_stats(service: DashboardService = Depends(get_dashboard_service)) -> Dict[str, Any]:
    try:
        return await service.get_stats()
    except GatewayError as e:
        logger.error(f"Error loading dashboard stats: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al cargar estadísticas")
