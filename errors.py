class ApiError(Exception):
    """
    Base class for every error surfaced to API callers.

    Each subclass fixes the HTTP status code and a stable ``error_kind`` so the
    exception handlers in ``main`` can render a uniform failure envelope.
    """
    status_code = 500
    error_kind = "internal"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BadRequestError(ApiError):
    """400 Bad Request"""
    status_code = 400
    error_kind = "bad_request"


class UnauthorizedError(ApiError):
    """401 Unauthorized"""
    status_code = 401
    error_kind = "unauthorized"


class ForbiddenError(ApiError):
    """403 Forbidden"""
    status_code = 403
    error_kind = "forbidden"


class NotFoundError(ApiError):
    """404 Not Found"""
    status_code = 404
    error_kind = "not_found"


class ConflictError(ApiError):
    """409 Conflict"""
    status_code = 409
    error_kind = "conflict"


class InternalError(ApiError):
    """500 Internal Server Error"""
    status_code = 500
    error_kind = "internal"


STATUS_ERROR_KINDS = {
    400: BadRequestError.error_kind,
    401: UnauthorizedError.error_kind,
    403: ForbiddenError.error_kind,
    404: NotFoundError.error_kind,
    405: "method_not_allowed",
    409: ConflictError.error_kind,
}


def error_kind_for_status(status_code: int) -> str:
    return STATUS_ERROR_KINDS.get(status_code, InternalError.error_kind)
