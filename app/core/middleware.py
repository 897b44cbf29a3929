import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.errors import SubscriptionServiceError
from app.core.logging import get_logger

logger = get_logger("access")

CallNext = Callable[[Request], Awaitable[Response]]

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Asigna un X-Request-ID aleatorio a cada respuesta y registra método, ruta,
    estado, tamaño en bytes y latencia.
    """

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        start_time = time.perf_counter()
        request_id = str(uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as e:
            # Error no controlado: respuesta genérica, el detalle solo va al log
            logger.error(
                "request.failed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                exc_info=True,
            )
            response = PlainTextResponse(SubscriptionServiceError.message, status_code=500)

        response.headers[REQUEST_ID_HEADER] = request_id

        logger.info(
            "request.completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            size=int(response.headers.get("content-length", 0)),
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return response
