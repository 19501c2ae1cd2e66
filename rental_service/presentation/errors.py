import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rental_service.domain.exceptions import (
    DomainException, InvalidInputError, AuthenticationError, NotFoundError, ConflictError,
    ForbiddenError, UpstreamError, InternalError, PaymentGatewayError
)

logger = logging.getLogger(__name__)

# Порядок важен: первый подходящий базовый класс определяет статус
STATUS_BY_ERROR = (
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
    (InternalError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def status_for(exc: DomainException) -> int:
    for error_cls, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = status_for(exc)
    content = {"error": str(exc)}
    if isinstance(exc, PaymentGatewayError) and exc.order_id:
        content["order_id"] = exc.order_id
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Некорректное тело запроса", "details": details}
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
