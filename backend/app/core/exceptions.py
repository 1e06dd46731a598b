class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class BadRequestError(AppError):
    """Raised when an operation is malformed; nothing has touched the store yet."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a referenced class, session, block, room or other record does not exist."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class ScheduleConflictError(AppError):
    """Raised when a commit violates a blocking scheduling rule."""
    def __init__(self, conflicts: list):
        self.conflicts = list(conflicts)
        message = "; ".join(item.message for item in self.conflicts) or "Scheduling conflict"
        super().__init__(
            message,
            status_code=409,
            details={"conflicts": [item.model_dump() for item in self.conflicts]},
        )

class StoreFailureError(AppError):
    """Raised when the store aborts a commit, e.g. on a uniqueness violation."""
    def __init__(self, message: str, status_code: int = 409, details: dict = None):
        super().__init__(message, status_code=status_code, details=details)
