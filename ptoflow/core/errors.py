from typing import Optional


class PTOFlowError(Exception):
    """Base for errors that the API flattens into the result envelope."""

    code = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(PTOFlowError):
    code = "not_found"
    status_code = 404


class RecordValidationError(PTOFlowError):
    code = "validation_error"
    status_code = 422

    def __init__(self, field: str, expected: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Field {field} should be {expected}")
        self.field = field
        self.expected = expected


class UnknownCollectionError(PTOFlowError):
    code = "unknown_collection"
    status_code = 400

    def __init__(self, collection: str) -> None:
        super().__init__(f"Collection not found in schema: {collection}")
        self.collection = collection


class StorageError(PTOFlowError):
    code = "storage_error"
    status_code = 503


class IdentityError(PTOFlowError):
    code = "identity_error"
    status_code = 502


class IntegrationError(PTOFlowError):
    code = "integration_error"
    status_code = 502


class InvalidTransitionError(PTOFlowError):
    code = "invalid_transition"
    status_code = 409

    def __init__(self, request_id: str, current: str, target: str) -> None:
        super().__init__(f"PTO request {request_id} is {current} and cannot be {target}")
        self.current = current
        self.target = target


class ForbiddenError(PTOFlowError):
    code = "forbidden"
    status_code = 403
