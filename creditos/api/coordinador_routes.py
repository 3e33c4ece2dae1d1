from fastapi import APIRouter, Depends, HTTPException, status
from typing import Any, Dict, List
import logging

from creditos.core.auth_dependencies import get_current_session
from creditos.core.exceptions import GatewayError
from creditos.database.connection import get_gateway
from creditos.database.gateway import SupabaseGateway
from creditos.schemas.coordinador_schema import CoordinadorCreate, CoordinadorResponse
from creditos.services.coordinador_service import CoordinadorService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coordinadores", tags=["Coordinadores"], dependencies=[Depends(get_current_session)])


def get_coordinador_service(gateway: SupabaseGateway = Depends(get_gateway)) -> CoordinadorService:
    return CoordinadorService(gateway)


@router.post("", response_model=CoordinadorResponse, status_code=status.HTTP_201_CREATED)
async def create_coordinador(
    request_data: CoordinadorCreate,
    service: CoordinadorService = Depends(get_coordinador_service),
):
    try:
        return await service.create_coordinador(request_data)
    except HTTPException:
        raise
    except GatewayError as e:
        logger.error(f"Error creating coordinador: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Error al crear coordinador: {e.message}")


# Lists coordinators newest first with their time on the job
@router.get("", response_model=List[Dict[str, Any]])
async def list_coordinadores(service: CoordinadorService = Depends(get_coordinador_service)):
    try:
        return await service.list_coordinadores()
    except GatewayError as e:
        logger.error(f"Error listing coordinadores: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al cargar coordinadores")


@router.delete("/{coordinador_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_coordinador(coordinador_id: str, service: CoordinadorService = Depends(get_coordinador_service)):
    try:
        await service.delete_coordinador(coordinador_id)
    except GatewayError as e:
        logger.error(f"Error deleting coordinador {coordinador_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al eliminar coordinador")
