"""
Error types shared by the form engines, the upstream client and the routes
"""
from typing import List, Optional

from pydantic import BaseModel


class FieldError(BaseModel):
    fieldId: str
    label: str
    message: str


class FormEngineError(Exception):
    """Base class for every error raised by the form engines"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(FormEngineError):
    """One or more required fields are empty. User correctable."""

    status_code = 422

    def __init__(self, errors: List[FieldError]):
        labels = ", ".join(e.label for e in errors)
        super().__init__(f"Missing required fields: {labels}")
        self.errors = errors

    @property
    def field_ids(self) -> List[str]:
        return [e.fieldId for e in self.errors]


class IndexOutOfRange(FormEngineError, IndexError):
    def __init__(self, index: int, length: int):
        super().__init__(f"Index {index} out of range for {length} fields")
        self.index = index
        self.length = length


class FieldNotFound(FormEngineError, LookupError):
    def __init__(self, field_id: str):
        super().__init__(f"Field not found: {field_id}")
        self.field_id = field_id


class OperationInProgress(FormEngineError):
    status_code = 409


# ─── Upstream (SchemaSource / RecordSource / FormStore) ─────────────────────

class UpstreamError(FormEngineError):
    """Collaborator failure; the message is shown to the user verbatim"""

    status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class NotFound(UpstreamError):
    status_code = 404


class Unauthorized(UpstreamError):
    status_code = 401


class Forbidden(UpstreamError):
    status_code = 403


class UpstreamUnavailable(UpstreamError):
    status_code = 502
