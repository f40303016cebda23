class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduler encounters a logical error or invalid state."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)

class InvalidRequestError(AppError):
    """Raised when caller input is malformed or cannot be acted upon."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class UnauthorizedResponseError(AppError):
    """Raised when someone other than the designated substitute answers a request."""
    def __init__(self, request_id: str, responder_id: str):
        super().__init__(
            "Unauthorized to respond to this request",
            status_code=403,
            details={"request_id": request_id, "responder_id": responder_id},
        )

class RequestAlreadyResolvedError(AppError):
    """Raised when a rearrangement request has already reached a terminal status."""
    def __init__(self, request_id: str, status: str):
        super().__init__(
            f"Request {request_id} is already {status}",
            status_code=409,
            details={"request_id": request_id, "status": status},
        )

class SubstituteUnavailableError(AppError):
    """Raised when the chosen substitute is already committed for the slot."""
    def __init__(self, faculty_id: str, date: str, slot_id: str):
        super().__init__(
            f"Faculty {faculty_id} is not free on {date} at {slot_id}",
            status_code=409,
            details={"faculty_id": faculty_id, "date": date, "slot_id": slot_id},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
