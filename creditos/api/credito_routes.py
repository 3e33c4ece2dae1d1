from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Any, Dict, List, Optional
import logging

from creditos.core.auth_dependencies import get_current_session
from creditos.core.exceptions import GatewayError
from creditos.database.connection import get_gateway
from creditos.database.gateway import SupabaseGateway
from creditos.schemas.credito_schema import CreditoCreate, CreditoUpdate
from creditos.services.credito_service import CreditoService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/creditos", tags=["Creditos"], dependencies=[Depends(get_current_session)])


def get_credito_service(gateway: SupabaseGateway = Depends(get_gateway)) -> CreditoService:
    return CreditoService(gateway)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_credito(
    request_data: CreditoCreate,
    service: CreditoService = Depends(get_credito_service),
) -> Dict[str, Any]:
    try:
        return await service.create_credito(request_data)
    except GatewayError as e:
        logger.error(f"Error creating credito: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Error al crear crédito: {e.message}")


@router.get("", response_model=List[Dict[str, Any]])
async def list_creditos(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    service: CreditoService = Depends(get_credito_service),
):
    try:
        return await service.list_creditos(limit=limit)
    except GatewayError as e:
        logger.error(f"Error listing creditos: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al cargar créditos")


@router.patch("/{credito_id}")
async def update_credito(
    credito_id: str,
    request_data: CreditoUpdate,
    service: CreditoService = Depends(get_credito_service),
) -> Dict[str, Any]:
    try:
        return await service.update_credito(credito_id, request_data)
    except HTTPException:
        raise
    except GatewayError as e:
        logger.error(f"Error updating credito {credito_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al actualizar crédito")


@router.delete("/{credito_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_credito(credito_id: str, service: CreditoService = Depends(get_credito_service)):
    try:
        await service.delete_credito(credito_id)
    except GatewayError as e:
        logger.error(f"Error deleting credito {credito_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al eliminar crédito")
