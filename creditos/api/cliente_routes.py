from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, List, Optional
import logging

from creditos.core.auth_dependencies import get_current_session
from creditos.core.exceptions import GatewayError
from creditos.core.idempotency import IdempotencyStore, get_idempotency_store
from creditos.database.connection import get_gateway
from creditos.database.gateway import SupabaseGateway
from creditos.helpers.response_builder import build_intake_response, intake_status_code
from creditos.schemas.cliente_schema import (
    ClienteDetalle,
    ClienteIntakeRequest,
    DEPARTAMENTOS,
    PARENTESCOS,
    EstadoCivilEnum,
)
from creditos.schemas.user_schemas import SessionContext
from creditos.services.cliente_service import ClienteService
from creditos.services.notification_service import CollectingNotifier
from creditos.workers.cliente_intake_worker import ClienteIntakeWorkflow, IntakeOutcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clientes", tags=["Clientes"], dependencies=[Depends(get_current_session)])


def get_cliente_service(gateway: SupabaseGateway = Depends(get_gateway)) -> ClienteService:
    return ClienteService(gateway)


# Lists clients newest first, filtered by name, DPI, phone or email
@router.get("", response_model=List[Dict[str, Any]])
async def list_clientes(
    search: Optional[str] = Query(default=None, description="Name, DPI, celular or email fragment"),
    service: ClienteService = Depends(get_cliente_service),
):
    try:
        return await service.list_clientes(search=search)
    except GatewayError as e:
        logger.error(f"Error listing clientes: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al cargar clientes")


# Creates a client with its references, beneficiaries and collateral in one request
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_cliente(
    request_data: ClienteIntakeRequest,
    session: SessionContext = Depends(get_current_session),
    gateway: SupabaseGateway = Depends(get_gateway),
    idempotency: IdempotencyStore = Depends(get_idempotency_store),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
):
    if idempotency_key:
        previous = await idempotency.get(f"clientes:{session.user_id}:{idempotency_key}")
        if previous:
            logger.info(f"Replaying client intake for idempotency key {idempotency_key}")
            return JSONResponse(status_code=previous["status_code"], content=previous["body"])

    notifier = CollectingNotifier()
    workflow = ClienteIntakeWorkflow.from_request(gateway, request_data, notifier=notifier)
    result = await workflow.submit()

    body = build_intake_response(result, notifier)
    status_code = intake_status_code(result)
    if idempotency_key and result.outcome == IntakeOutcome.created:
        await idempotency.set(
            f"clientes:{session.user_id}:{idempotency_key}",
            {"status_code": status_code, "body": body},
        )
    return JSONResponse(status_code=status_code, content=body)


# Value lists used by the intake form selects
@router.get("/catalogos")
async def get_catalogos() -> Dict[str, List[str]]:
    return {
        "departamentos": DEPARTAMENTOS,
        "parentescos": PARENTESCOS,
        "estados_civiles": [e.value for e in EstadoCivilEnum],
    }


# Retrieves a client with its referencias, beneficiarios and garantias
@router.get("/{cliente_id}", response_model=ClienteDetalle)
async def get_cliente(cliente_id: str, service: ClienteService = Depends(get_cliente_service)):
    try:
        return await service.get_detalle(cliente_id)
    except HTTPException:
        raise
    except GatewayError as e:
        logger.error(f"Error retrieving cliente {cliente_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al cargar cliente")


@router.delete("/{cliente_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_cliente(cliente_id: str, service: ClienteService = Depends(get_cliente_service)):
    try:
        await service.delete_cliente(cliente_id)
    except HTTPException:
        raise
    except GatewayError as e:
        logger.error(f"Error deleting cliente {cliente_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Error al eliminar cliente")
