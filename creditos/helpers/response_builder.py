from typing import Any, Dict, Optional

from fastapi import status

from creditos.services.notification_service import CollectingNotifier
from creditos.workers.cliente_intake_worker import IntakeOutcome, IntakeResult

INTAKE_STATUS_CODES = {
    IntakeOutcome.created: status.HTTP_201_CREATED,
    IntakeOutcome.invalid: status.HTTP_422_UNPROCESSABLE_ENTITY,
    IntakeOutcome.duplicate: status.HTTP_409_CONFLICT,
    IntakeOutcome.failed: status.HTTP_502_BAD_GATEWAY,
}


def intake_status_code(result: IntakeResult) -> int:
    return INTAKE_STATUS_CODES[result.outcome]


def build_intake_response(
    result: IntakeResult,
    notifier: Optional[CollectingNotifier] = None,
    intake_id: Optional[str] = None,
) -> Dict[str, Any]:
    response = {
        "outcome": result.outcome.value,
        "message": result.message,
        "state": result.state.value,
        "section": result.section.value,
        "errors": result.errors,
        "cliente": result.cliente,
        "child_failures": result.child_failures,
        "intake_id": intake_id,
    }
    if notifier is not None:
        response.update(notifier.to_dict())

    # Clean up any None values for cleaner response
    return {k: v for k, v in response.items() if v is not None}
