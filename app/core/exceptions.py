from typing import Any, Dict, Optional

from app.core.responses import (
    VALIDATION_FAILED,
    create_field_error,
    create_generic_error,
    create_validation_error,
)


class FieldValidationError(ValueError):
    """A single field broke a rule (persistence constraint or business rule)."""

    def __init__(
        self,
        field: str,
        message: str,
        kind: str,
        value: Any = None,
        properties: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.field = field
        self.message = message
        self.kind = kind
        self.value = value
        self.properties = properties or {}

    def to_field_error(self) -> Dict[str, Any]:
        return create_field_error(
            self.field, self.message, self.kind, self.value, self.properties
        )


class RecordNotFoundError(LookupError):
    """Raised by services when the requested record does not exist."""


class APIError(Exception):
    """Error rendered straight into the response envelope."""

    status_code: int = 500
    default_name: str = "Error"

    def __init__(self, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.name = name or self.default_name

    def to_dict(self) -> Dict[str, Any]:
        return create_generic_error(self.message, self.name)


class NotFoundError(APIError):
    status_code = 404
    default_name = "NotFoundError"


class DatabaseError(APIError):
    default_name = "DatabaseError"


class ValidationFailed(APIError):
    status_code = 400
    default_name = "ValidationError"

    def __init__(self, errors: Dict[str, Any], message: str = VALIDATION_FAILED):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def from_field(cls, error: FieldValidationError) -> "ValidationFailed":
        return cls(error.to_field_error())

    @classmethod
    def single(
        cls,
        field: str,
        message: str,
        kind: str,
        value: Any,
        properties: Optional[Dict[str, Any]] = None,
    ) -> "ValidationFailed":
        return cls(create_field_error(field, message, kind, value, properties))

    def to_dict(self) -> Dict[str, Any]:
        return create_validation_error(self.message, self.errors)
