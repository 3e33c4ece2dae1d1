import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from creditos.core.exceptions import (
    GatewayError,
    UniqueViolationError,
    SubmissionInProgressError,
    IntakeAlreadySubmittedError,
)
from creditos.database.gateway import SupabaseGateway
from creditos.schemas.cliente_schema import (
    ClienteDraft,
    ReferenciaDraft,
    BeneficiarioDraft,
    GarantiaDraft,
    IntakeSectionEnum,
    IntakeStateEnum,
    IntakeSnapshot,
)
from creditos.services.collection_service import SubRecordCollection
from creditos.services.notification_service import Notifier, LoggingNotifier
from creditos.services.validation_service import validate_cliente
from creditos.utils.cliente_utils import (
    normalize_cliente,
    referencia_rows,
    beneficiario_rows,
    garantia_rows,
)

logger = logging.getLogger(__name__)

# First section whose fields carry an error gets the focus after a rejected submit
SECTION_PRIORITY: Tuple[Tuple[IntakeSectionEnum, Tuple[str, ...]], ...] = (
    (IntakeSectionEnum.personal, ("primer_nombre", "primer_apellido", "dpi", "celular", "fecha_nacimiento")),
    (IntakeSectionEnum.residencia, ("direccion_completa", "departamento", "municipio")),
    (IntakeSectionEnum.referencias, ("referencias",)),
)

INVALID_FORM_MESSAGE = "Por favor corrige los errores en el formulario"
SUCCESS_MESSAGE = "Cliente creado correctamente con toda su información"
DUPLICATE_DPI_MESSAGE = "Ya existe un cliente con ese DPI"
DUPLICATE_EMAIL_MESSAGE = "Ya existe un cliente con ese email"


class IntakeOutcome(str, Enum):
    created = "created"
    invalid = "invalid"
    duplicate = "duplicate"
    failed = "failed"


@dataclass
class IntakeResult:
    outcome: IntakeOutcome
    state: IntakeStateEnum
    section: IntakeSectionEnum
    errors: Dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None
    cliente: Optional[Dict[str, Any]] = None
    child_failures: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.outcome == IntakeOutcome.created


def section_for_errors(errors: Dict[str, str], current: IntakeSectionEnum) -> IntakeSectionEnum:
    for section, fields in SECTION_PRIORITY:
        if any(f in errors for f in fields):
            return section
    return current


class ClienteIntakeWorkflow:
    """One client intake form: the draft, its sub-record lists and the submit sequence.

    A submit validates the draft, inserts the client row, then inserts the
    complete referencias, beneficiarios and garantias tagged with the new id.
    Failures on the parent insert send the form back to editing; failures on
    the child inserts are logged and the client still counts as created.
    """

    def __init__(self, gateway: SupabaseGateway, notifier: Optional[Notifier] = None, draft: Optional[ClienteDraft] = None):
        self.gateway = gateway
        self.notifier = notifier or LoggingNotifier()
        self.draft = draft or ClienteDraft()
        self.referencias: SubRecordCollection[ReferenciaDraft] = SubRecordCollection(ReferenciaDraft)
        self.beneficiarios: SubRecordCollection[BeneficiarioDraft] = SubRecordCollection(BeneficiarioDraft)
        self.garantias: SubRecordCollection[GarantiaDraft] = SubRecordCollection(GarantiaDraft)
        self.state = IntakeStateEnum.editing
        self.section = IntakeSectionEnum.personal
        self.errors: Dict[str, str] = {}
        self.cliente: Optional[Dict[str, Any]] = None

    @classmethod
    def from_request(cls, gateway: SupabaseGateway, request, notifier: Optional[Notifier] = None) -> "ClienteIntakeWorkflow":
        workflow = cls(gateway, notifier=notifier, draft=request.cliente)
        workflow.referencias = SubRecordCollection(ReferenciaDraft, request.referencias)
        workflow.beneficiarios = SubRecordCollection(BeneficiarioDraft, request.beneficiarios)
        workflow.garantias = SubRecordCollection(GarantiaDraft, request.garantias)
        return workflow

    def collection(self, name: str) -> SubRecordCollection:
        collections = {
            IntakeSectionEnum.referencias.value: self.referencias,
            IntakeSectionEnum.beneficiarios.value: self.beneficiarios,
            IntakeSectionEnum.garantias.value: self.garantias,
        }
        if name not in collections:
            raise KeyError(name)
        return collections[name]

    def editable_collection(self, name: str) -> SubRecordCollection:
        collection = self.collection(name)
        self._ensure_editable()
        return collection

    def go_to(self, section: IntakeSectionEnum) -> None:
        self._ensure_editable()
        self.section = section

    def update_draft(self, changes: Dict[str, Any]) -> None:
        self._ensure_editable()
        unknown = set(changes) - set(ClienteDraft.model_fields)
        if unknown:
            raise ValueError(f"Unknown client fields: {', '.join(sorted(unknown))}")
        self.draft = ClienteDraft(**{**self.draft.model_dump(), **changes})

    def _ensure_editable(self) -> None:
        if self.state == IntakeStateEnum.submitting:
            raise SubmissionInProgressError("A submission is already in progress for this form")
        if self.state == IntakeStateEnum.done:
            raise IntakeAlreadySubmittedError("This form was already submitted")

    async def submit(self, today: Optional[date] = None, notifier: Optional[Notifier] = None) -> IntakeResult:
        """Validate and persist the form.

        Raises:
            SubmissionInProgressError: a submission is already in flight
            IntakeAlreadySubmittedError: the form already created its client
        """
        self._ensure_editable()
        notifier = notifier or self.notifier
        self.state = IntakeStateEnum.submitting
        try:
            return await self._run_submission(today, notifier)
        except asyncio.CancelledError:
            if self.cliente is not None:
                # the client row exists; only sub-records may be missing
                logger.warning(f"Client intake cancelled after client {self.cliente.get('id')} was created")
                self.state = IntakeStateEnum.done
            else:
                logger.warning("Client intake submission cancelled; form reopened for editing")
                self._back_to_editing(IntakeSectionEnum.personal)
            raise
        except Exception:
            logger.exception("Unexpected failure while submitting client intake")
            self._back_to_editing(IntakeSectionEnum.personal)
            raise

    async def _run_submission(self, today: Optional[date], notifier: Notifier) -> IntakeResult:
        errors = validate_cliente(self.draft, self.referencias.items(), today=today)
        if errors:
            self.errors = errors
            self._back_to_editing(section_for_errors(errors, self.section))
            notifier.error(INVALID_FORM_MESSAGE)
            logger.info("Client intake rejected with %d validation error(s)", len(errors))
            return self._result(IntakeOutcome.invalid, message=INVALID_FORM_MESSAGE)

        payload = normalize_cliente(self.draft)
        try:
            created = await self.gateway.insert("clientes", [payload])
        except UniqueViolationError as e:
            field_name, message = ("email", DUPLICATE_EMAIL_MESSAGE) if e.involves("email") else ("dpi", DUPLICATE_DPI_MESSAGE)
            self.errors = {field_name: message}
            self._back_to_editing(IntakeSectionEnum.personal)
            notifier.error(message)
            return self._result(IntakeOutcome.duplicate, message=message)
        except GatewayError as e:
            self.errors = {}
            self._back_to_editing(IntakeSectionEnum.personal)
            notifier.error(e.message)
            return self._result(IntakeOutcome.failed, message=e.message)

        if not created or not created[0].get("id"):
            message = "Error al crear cliente"
            logger.error("Client insert returned no generated id")
            self._back_to_editing(IntakeSectionEnum.personal)
            notifier.error(message)
            return self._result(IntakeOutcome.failed, message=message)

        self.cliente = created[0]
        cliente_id = self.cliente["id"]
        logger.info(f"Client {cliente_id} created, persisting sub-records")

        child_failures: List[str] = []
        await self._insert_children("referencias", referencia_rows(self.referencias, cliente_id), child_failures)
        await self._insert_children("beneficiarios", beneficiario_rows(self.beneficiarios, cliente_id), child_failures)
        await self._insert_children("garantias", garantia_rows(self.garantias, cliente_id), child_failures)

        self.errors = {}
        self.state = IntakeStateEnum.done
        notifier.success(SUCCESS_MESSAGE)
        notifier.close()
        notifier.refresh()
        return self._result(IntakeOutcome.created, message=SUCCESS_MESSAGE, child_failures=child_failures)

    async def _insert_children(self, table: str, rows: List[Dict[str, Any]], failures: List[str]) -> None:
        if not rows:
            return
        try:
            await self.gateway.insert(table, rows)
            logger.info(f"Saved {len(rows)} {table} for client {rows[0]['cliente_id']}")
        except GatewayError as e:
            # the client row stays; missing sub-records can be added later
            logger.error(f"Error al guardar {table}: {e.message}")
            failures.append(table)

    def _back_to_editing(self, section: IntakeSectionEnum) -> None:
        self.state = IntakeStateEnum.editing
        self.section = section

    def _result(self, outcome: IntakeOutcome, message: Optional[str] = None, child_failures: Optional[List[str]] = None) -> IntakeResult:
        return IntakeResult(
            outcome=outcome,
            state=self.state,
            section=self.section,
            errors=dict(self.errors),
            message=message,
            cliente=self.cliente,
            child_failures=child_failures or [],
        )

    def snapshot(self, intake_id: str) -> IntakeSnapshot:
        return IntakeSnapshot(
            intake_id=intake_id,
            state=self.state,
            section=self.section,
            cliente=self.draft,
            referencias=self.referencias.items(),
            beneficiarios=self.beneficiarios.items(),
            garantias=self.garantias.items(),
            errors=self.errors,
            cliente_id=self.cliente["id"] if self.cliente else None,
        )


# Idle forms expire after an hour; submitted forms stay readable for five minutes
INTAKE_IDLE_TTL_SECONDS = 60 * 60
INTAKE_DONE_TTL_SECONDS = 5 * 60


@dataclass
class _OpenForm:
    owner_id: str
    workflow: ClienteIntakeWorkflow
    expires_at: float
    retired: bool = False


class IntakeRegistry:
    """Open intake forms of this process, each owned by the user who opened it.

    Every access pushes an open form's expiry forward by `idle_ttl`. Once a
    form is retired after a successful submit it only lives `done_ttl` more,
    long enough for the caller to read the final snapshot. Expired forms are
    swept whenever a form is opened or looked up.
    """

    def __init__(
        self,
        idle_ttl: float = INTAKE_IDLE_TTL_SECONDS,
        done_ttl: float = INTAKE_DONE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.idle_ttl = idle_ttl
        self.done_ttl = done_ttl
        self._clock = clock
        self._forms: Dict[str, _OpenForm] = {}

    def open(self, owner_id: str, workflow: ClienteIntakeWorkflow) -> str:
        now = self._clock()
        self._purge_expired(now)
        intake_id = str(uuid.uuid4())
        self._forms[intake_id] = _OpenForm(owner_id, workflow, now + self.idle_ttl)
        logger.info(f"Opened intake form {intake_id} for user {owner_id}")
        return intake_id

    def get(self, intake_id: str, owner_id: str) -> ClienteIntakeWorkflow:
        now = self._clock()
        self._purge_expired(now)
        entry = self._forms.get(intake_id)
        if entry is None or entry.owner_id != owner_id:
            raise KeyError(intake_id)
        if not entry.retired:
            entry.expires_at = now + self.idle_ttl
        return entry.workflow

    def retire(self, intake_id: str, owner_id: str) -> None:
        """Keep a submitted form only for a short read-back window."""
        self.get(intake_id, owner_id)
        entry = self._forms[intake_id]
        entry.retired = True
        entry.expires_at = self._clock() + self.done_ttl

    def discard(self, intake_id: str, owner_id: str) -> None:
        self.get(intake_id, owner_id)
        del self._forms[intake_id]
        logger.info(f"Discarded intake form {intake_id}")

    def clear(self) -> None:
        self._forms.clear()

    def __len__(self) -> int:
        return len(self._forms)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, entry in self._forms.items() if entry.expires_at <= now]
        for k in expired:
            del self._forms[k]
        if expired:
            logger.info(f"Expired {len(expired)} idle intake form(s)")


intake_registry = IntakeRegistry()
