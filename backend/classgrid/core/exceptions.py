class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class InputError(AppError):
    """Raised for malformed or missing input. Aborts the current call, nothing is partially processed."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class ScheduleValidationError(AppError):
    """Raised when a candidate section set has policy violations and cannot be committed."""
    def __init__(self, violations: list, message: str = "Schedule has conflicts and was not saved"):
        super().__init__(
            message,
            status_code=422,
            details={"violations": [item.model_dump(mode="json") for item in violations]},
        )
        self.violations = violations

class ScheduleStateError(AppError):
    """Raised on an illegal schedule version status transition."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)

class ExternalServiceError(AppError):
    """Raised when the schedule recommender fails or returns unreadable content."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=502, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

def validation_error_details(exc) -> list[dict]:
    """Flatten a pydantic ValidationError into JSON-safe ``{"loc", "message"}`` items."""
    return [
        {"loc": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
