from typing import Optional


class GatewayError(Exception):
    """Raised when a Supabase table call fails (network, server or query error)."""

    def __init__(self, table: str, message: str, code: Optional[str] = None):
        self.table = table
        self.message = message
        self.code = code
        super().__init__(f"{table}: {message}")


class UniqueViolationError(GatewayError):
    """Raised when an insert or update breaks a unique constraint (Postgres 23505)."""

    def involves(self, column: str) -> bool:
        return column.lower() in (self.message or "").lower()


class DocumentStoreError(Exception):
    """Raised when the expediente storage bucket rejects an upload or removal."""

    def __init__(self, key: str, message: str):
        self.key = key
        self.message = message
        super().__init__(f"{key}: {message}")


class SubmissionInProgressError(Exception):
    """Raised when a client intake form is submitted while it cannot accept a submission."""


class IntakeAlreadySubmittedError(SubmissionInProgressError):
    pass
