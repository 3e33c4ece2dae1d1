from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

from creditos.core.auth_dependencies import get_current_session
from creditos.core.exceptions import SubmissionInProgressError
from creditos.database.connection import get_gateway
from creditos.database.gateway import SupabaseGateway
from creditos.helpers.response_builder import build_intake_response, intake_status_code
from creditos.schemas.cliente_schema import (
    ClienteIntakeRequest,
    FieldUpdateRequest,
    IntakeSnapshot,
    SectionChangeRequest,
)
from creditos.schemas.user_schemas import SessionContext
from creditos.services.notification_service import CollectingNotifier
from creditos.workers.cliente_intake_worker import (
    ClienteIntakeWorkflow,
    IntakeRegistry,
    intake_registry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clientes/intake", tags=["Cliente Intake"])


def get_intake_registry() -> IntakeRegistry:
    return intake_registry


def _load(registry: IntakeRegistry, intake_id: str, session: SessionContext) -> ClienteIntakeWorkflow:
    try:
        return registry.get(intake_id, session.user_id)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Formulario no encontrado")


def _conflict(e: SubmissionInProgressError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


# Opens a new intake form, optionally pre-filled
@router.post("", response_model=IntakeSnapshot, status_code=status.HTTP_201_CREATED)
async def open_intake(
    request_data: Optional[ClienteIntakeRequest] = Body(default=None),
    session: SessionContext = Depends(get_current_session),
    gateway: SupabaseGateway = Depends(get_gateway),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    if request_data is not None:
        workflow = ClienteIntakeWorkflow.from_request(gateway, request_data)
    else:
        workflow = ClienteIntakeWorkflow(gateway)
    intake_id = registry.open(session.user_id, workflow)
    return workflow.snapshot(intake_id)


@router.get("/{intake_id}", response_model=IntakeSnapshot)
async def get_intake(
    intake_id: str,
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    return _load(registry, intake_id, session).snapshot(intake_id)


# Applies a partial change to the client fields of the form
@router.patch("/{intake_id}/draft", response_model=IntakeSnapshot)
async def update_draft(
    intake_id: str,
    changes: Dict[str, Any] = Body(...),
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    workflow = _load(registry, intake_id, session)
    try:
        workflow.update_draft(changes)
    except SubmissionInProgressError as e:
        raise _conflict(e)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return workflow.snapshot(intake_id)


@router.put("/{intake_id}/section", response_model=IntakeSnapshot)
async def change_section(
    intake_id: str,
    request_data: SectionChangeRequest,
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    workflow = _load(registry, intake_id, session)
    try:
        workflow.go_to(request_data.section)
    except SubmissionInProgressError as e:
        raise _conflict(e)
    return workflow.snapshot(intake_id)


# Validates and persists the form; status code follows the outcome
@router.post("/{intake_id}/submit")
async def submit_intake(
    intake_id: str,
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    workflow = _load(registry, intake_id, session)
    notifier = CollectingNotifier()
    try:
        result = await workflow.submit(notifier=notifier)
    except SubmissionInProgressError as e:
        raise _conflict(e)
    if result.success:
        registry.retire(intake_id, session.user_id)
    return JSONResponse(
        status_code=intake_status_code(result),
        content=build_intake_response(result, notifier, intake_id=intake_id),
    )


@router.post("/{intake_id}/{coleccion}", response_model=IntakeSnapshot, status_code=status.HTTP_201_CREATED)
async def append_record(
    intake_id: str,
    coleccion: str,
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    workflow = _load(registry, intake_id, session)
    _editable_collection(workflow, coleccion).append()
    return workflow.snapshot(intake_id)


@router.patch("/{intake_id}/{coleccion}/{index}", response_model=IntakeSnapshot)
async def update_record(
    intake_id: str,
    coleccion: str,
    index: int,
    request_data: FieldUpdateRequest,
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    workflow = _load(registry, intake_id, session)
    collection = _editable_collection(workflow, coleccion)
    try:
        collection.update(index, request_data.field, request_data.value)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return workflow.snapshot(intake_id)


@router.delete("/{intake_id}/{coleccion}/{index}", response_model=IntakeSnapshot)
async def remove_record(
    intake_id: str,
    coleccion: str,
    index: int,
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    workflow = _load(registry, intake_id, session)
    _editable_collection(workflow, coleccion).remove(index)
    return workflow.snapshot(intake_id)


# Closes the form without saving
@router.delete("/{intake_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_intake(
    intake_id: str,
    session: SessionContext = Depends(get_current_session),
    registry: IntakeRegistry = Depends(get_intake_registry),
):
    try:
        registry.discard(intake_id, session.user_id)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Formulario no encontrado")


def _editable_collection(workflow: ClienteIntakeWorkflow, name: str):
    try:
        return workflow.editable_collection(name)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Colección desconocida: {name}")
    except SubmissionInProgressError as e:
        raise _conflict(e)
