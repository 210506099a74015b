"""Application-level exceptions and FastAPI exception handlers."""


from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500, code: str = "INTERNAL_ERROR"):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)

class NotFoundError(AppException):
    def __init__(self, entity: str, entity_id: str | None = None):
        msg = f"{entity} not found" if not entity_id else f"{entity} '{entity_id}' not found"
        super().__init__(msg, status_code=404, code="NOT_FOUND")

class ForbiddenError(AppException):
    def __init__(self, message: str = "Access denied"):
        super().__init__(message, status_code=403, code="FORBIDDEN")

class UnauthorizedError(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, status_code=401, code="UNAUTHORIZED")

class ConflictError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=409, code="CONFLICT")

class ValidationError(AppException):
    def __init__(self, message: str):
        super().__init__(message, status_code=422, code="VALIDATION_ERROR")

class InvalidTransitionError(AppException):
    """Raised when a visitor status change is not allowed from its current state."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Visitor is already {current} and cannot be {target}",
            status_code=409,
            code="INVALID_TRANSITION",
        )

class InvalidCredentialError(AppException):
    """Raised when a scanned QR payload cannot be parsed or matches no visitor."""

    def __init__(self, message: str = "Invalid QR code"):
        super().__init__(message, status_code=400, code="INVALID_CREDENTIAL")

class WriteFailedError(AppException):
    """Raised when the record store rejects an insert or update."""

    def __init__(self, message: str = "The change could not be saved. Please try again."):
        super().__init__(message, status_code=503, code="WRITE_FAILED")

class SharingUnavailableError(AppException):
    def __init__(self, download_url: str):
        super().__init__(
            f"Sharing is not available. Download the QR code from {download_url} instead.",
            status_code=501,
            code="SHARE_UNSUPPORTED",
        )

# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message),
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content=_error_body("NOT_FOUND", "Resource not found"),
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", "An unexpected error occurred"),
        )
