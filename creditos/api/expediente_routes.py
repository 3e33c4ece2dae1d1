from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from typing import List
import logging

from creditos.core.auth_dependencies import get_current_session
from creditos.core.exceptions import GatewayError
from creditos.database.connection import get_document_store, get_gateway
from creditos.database.gateway import SupabaseGateway
from creditos.database.storage import ExpedienteStorage
from creditos.schemas.expediente_schema import ArchivoExpedienteResponse
from creditos.services.expediente_service import ExpedienteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expedientes", tags=["Expedientes"], dependencies=[Depends(get_current_session)])


def get_expediente_service(
    gateway: SupabaseGateway = Depends(get_gateway),
    storage: ExpedienteStorage = Depends(get_document_store),
) -> ExpedienteService:
    return ExpedienteService(gateway, storage)


# Uploads one document into a client's expediente
@router.post("/{cliente_id}", response_model=ArchivoExpedienteResponse, status_code=status.HTTP_201_CREATED)
async def upload_archivo(
    cliente_id: str,
    file: UploadFile = File(...),
    service: ExpedienteService = Depends(get_expediente_service),
):
    try:
        contents = await file.read()
        return await service.upload_archivo(cliente_id, file.filename or "archivo", file.content_type, contents)
    except HTTPException:
        raise
    except GatewayError as e:
        logger.error(f"Error saving archivo metadata for cliente {cliente_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al subir archivo")
    finally:
        await file.close()


@router.get("/{cliente_id}", response_model=List[ArchivoExpedienteResponse])
async def list_archivos(cliente_id: str, service: ExpedienteService = Depends(get_expediente_service)):
    try:
        return await service.list_archivos(cliente_id)
    except GatewayError as e:
        logger.error(f"Error listing expediente of cliente {cliente_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al cargar archivos")


@router.delete("/archivos/{archivo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_archivo(archivo_id: str, service: ExpedienteService = Depends(get_expediente_service)):
    try:
        await service.delete_archivo(archivo_id)
    except HTTPException:
        raise
    except GatewayError as e:
        logger.error(f"Error deleting archivo {archivo_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al eliminar archivo")
