from dataclasses import dataclass
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


ValidationErrors = List[FieldError]


class SubscriptionServiceError(Exception):
    """Base de todos los errores que la API convierte en respuesta HTTP."""

    status_code = 500
    message = "internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def messages(self) -> List[str]:
        return [self.message]


class MalformedInput(SubscriptionServiceError):
    status_code = 400
    message = "invalid JSON"


class ValidationFailed(SubscriptionServiceError):
    status_code = 400
    message = "validation failed"

    def __init__(self, errors: ValidationErrors):
        self.errors = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors))

    def messages(self) -> List[str]:
        return [e.message for e in self.errors]


class InvalidDateFormat(ValidationFailed):
    """Un token MM-YYYY que no se pudo interpretar."""

    def __init__(self, token: str = "", field: str = "date"):
        self.token = token
        super().__init__([FieldError(field, f"{field.replace('_', ' ')} must be in MM-YYYY format")])


class NoFieldsToUpdate(SubscriptionServiceError):
    status_code = 400
    message = "no fields to update"


class NotFound(SubscriptionServiceError):
    status_code = 404
    message = "subscription not found"


class StoreFailure(SubscriptionServiceError):
    status_code = 500
    message = "storage error"


def _plain_text(status_code: int, messages: List[str]) -> PlainTextResponse:
    return PlainTextResponse("; ".join(messages), status_code=status_code)


async def service_error_handler(request: Request, exc: SubscriptionServiceError) -> PlainTextResponse:
    if isinstance(exc, StoreFailure):
        # Solo el servidor ve el detalle de la base de datos
        logger.error(
            "store.failure",
            path=request.url.path,
            error=exc.message,
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
    elif exc.status_code < 500:
        logger.warning("request.rejected", path=request.url.path, reason=str(exc))
    return _plain_text(exc.status_code, exc.messages())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
        messages.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid request"))
    logger.warning("request.rejected", path=request.url.path, reason="; ".join(messages))
    return _plain_text(400, messages or ["invalid request"])


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SubscriptionServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
