# studyshare/core/errors.py
"""
Typed failures raised by the service layer.

Services never build HTTP responses themselves; they raise one of these and
the exception handlers registered in studyshare.main translate them into
status codes with a human-readable message.
"""


class StudyShareError(Exception):
    """Base class for all expected service-layer failures."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class NotFound(StudyShareError):
    """Referenced entity id does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class Forbidden(StudyShareError):
    """Authenticated caller is not the owner of the resource being mutated."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class ValidationFailure(StudyShareError):
    """Malformed or missing required input."""

    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(self, message: str = "Invalid input", errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class Conflict(StudyShareError):
    status_code = 409
    code = "CONFLICT"

    def __init__(self, message: str = "Conflict"):
        super().__init__(message)
