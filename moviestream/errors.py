import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mongoengine import ValidationError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error that maps straight onto the response envelope."""

    def __init__(self, status_code: int, code: str, message: str, detail: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.detail = detail

    def to_dict(self, expose_detail: bool = False):
        body = {"success": False, "message": self.message, "error": self.code}
        if expose_detail and self.detail:
            body["detail"] = self.detail
        return body


def bad_request(message, code="MISSING_FIELDS"):
    return ApiError(400, code, message)


def not_found(message, code):
    return ApiError(404, code, message)


def conflict(message, code):
    return ApiError(409, code, message)


def forbidden(message, code):
    return ApiError(403, code, message)


def unauthorized(message, code):
    return ApiError(401, code, message)


def upstream_failure(message, code, exc: Exception):
    return ApiError(500, code, message, detail=str(exc))


def _expose(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return settings is not None and not settings.is_production


def register_error_handlers(app: FastAPI):
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(_expose(request)))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        missing = [".".join(str(p) for p in e["loc"][1:]) for e in exc.errors() if e.get("type") == "missing"]
        if missing:
            message = "Missing required fields: " + ", ".join(missing)
            code = "MISSING_FIELDS"
        else:
            message = "; ".join(
                f"{'.'.join(str(p) for p in e['loc'][1:])}: {e['msg']}" for e in exc.errors()
            )
            code = "INVALID_FIELDS"
        return JSONResponse(status_code=400, content={"success": False, "message": message, "error": code})

    @app.exception_handler(ValidationError)
    async def handle_document_error(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": str(exc), "error": "INVALID_FIELDS"},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        body = {"success": False, "message": "Internal server error", "error": "INTERNAL_ERROR"}
        if _expose(request):
            body["detail"] = str(exc)
        return JSONResponse(status_code=500, content=body)
