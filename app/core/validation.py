"""
Lista blanca de campos y validación de cada tipo de petición.

Los validadores no se detienen en el primer problema: revisan todas las reglas
y devuelven la lista de FieldError. Una lista vacía significa que la petición
es válida.
"""

from typing import Any, Iterable, Mapping
from uuid import UUID

from app.core.errors import FieldError, ValidationErrors, ValidationFailed
from app.schemas.subscription import (
    AggregationRequest,
    SubscriptionCreate,
    SubscriptionUpdate,
)
from app.utils.date_helpers import is_month_year

MAX_SERVICE_NAME_LENGTH = 255
MAX_PRICE = 2**63 - 1  # rango de BIGINT
CLEAR_SENTINEL = "null"

CREATE_FIELDS = frozenset({"service_name", "price", "user_id", "start_date", "end_date"})
UPDATE_FIELDS = frozenset({"service_name", "price", "start_date", "end_date"})
AGGREGATE_FIELDS = frozenset({"user_id", "service_name", "start_date", "end_date"})

MSG_SERVICE_NAME_REQUIRED = "service name is required"
MSG_SERVICE_NAME_TOO_LONG = f"service name must not exceed {MAX_SERVICE_NAME_LENGTH} characters"
MSG_PRICE_REQUIRED = "price is required"
MSG_PRICE_NEGATIVE = "price must not be negative"
MSG_PRICE_TOO_LARGE = f"price must not exceed {MAX_PRICE}"
MSG_USER_ID_REQUIRED = "user ID is required"
MSG_USER_ID_EMPTY = "user ID must not be empty"
MSG_USER_ID_FORMAT = "user ID must be a valid UUID"
MSG_START_DATE_REQUIRED = "start date is required"
MSG_START_DATE_FORMAT = "start date must be in MM-YYYY format"
MSG_END_DATE_REQUIRED = "end date is required"
MSG_END_DATE_FORMAT = "end date must be in MM-YYYY format"
MSG_ID_FORMAT = "subscription ID must be a valid UUID"


def is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True


def parse_subscription_id(value: str) -> UUID:
    """Convierte el id de la ruta; si no es UUID es un error de validación."""
    try:
        return UUID(value)
    except (ValueError, TypeError, AttributeError):
        raise ValidationFailed([FieldError("id", MSG_ID_FORMAT)])


def validate_fields(payload: Mapping[str, Any], allowed: Iterable[str]) -> None:
    """
    Rechaza cualquier clave del JSON crudo que no esté en `allowed`.

    Se ejecuta antes de construir el modelo tipado, así que también detecta
    claves mal escritas que pydantic ignoraría.
    """
    allowed = set(allowed)
    errors = [
        FieldError(key, f"field '{key}' is not permitted")
        for key in payload
        if key not in allowed
    ]
    if errors:
        raise ValidationFailed(errors)


def _check_service_name_length(errors: ValidationErrors, service_name: str) -> None:
    if len(service_name) > MAX_SERVICE_NAME_LENGTH:
        errors.append(FieldError("service_name", MSG_SERVICE_NAME_TOO_LONG))


def _check_price_range(errors: ValidationErrors, price: int) -> None:
    if price < 0:
        errors.append(FieldError("price", MSG_PRICE_NEGATIVE))
    elif price > MAX_PRICE:
        errors.append(FieldError("price", MSG_PRICE_TOO_LARGE))


def validate_create(req: SubscriptionCreate) -> ValidationErrors:
    errors: ValidationErrors = []

    if not req.service_name:
        errors.append(FieldError("service_name", MSG_SERVICE_NAME_REQUIRED))
    else:
        _check_service_name_length(errors, req.service_name)

    if req.price is None:
        errors.append(FieldError("price", MSG_PRICE_REQUIRED))
    else:
        _check_price_range(errors, req.price)

    if not req.user_id:
        errors.append(FieldError("user_id", MSG_USER_ID_REQUIRED))
    elif not is_uuid(req.user_id):
        errors.append(FieldError("user_id", MSG_USER_ID_FORMAT))

    if not req.start_date:
        errors.append(FieldError("start_date", MSG_START_DATE_REQUIRED))
    elif not is_month_year(req.start_date):
        errors.append(FieldError("start_date", MSG_START_DATE_FORMAT))

    if req.end_date and not is_month_year(req.end_date):
        errors.append(FieldError("end_date", MSG_END_DATE_FORMAT))

    return errors


def validate_update(req: SubscriptionUpdate) -> ValidationErrors:
    errors: ValidationErrors = []

    if req.service_name:
        _check_service_name_length(errors, req.service_name)

    if req.price is not None:
        _check_price_range(errors, req.price)

    if req.start_date and not is_month_year(req.start_date):
        errors.append(FieldError("start_date", MSG_START_DATE_FORMAT))

    # "null" limpia end_date, no es una fecha
    if req.end_date and req.end_date != CLEAR_SENTINEL and not is_month_year(req.end_date):
        errors.append(FieldError("end_date", MSG_END_DATE_FORMAT))

    return errors


def validate_aggregation(req: AggregationRequest) -> ValidationErrors:
    errors: ValidationErrors = []

    if not req.start_date:
        errors.append(FieldError("start_date", MSG_START_DATE_REQUIRED))
    elif not is_month_year(req.start_date):
        errors.append(FieldError("start_date", MSG_START_DATE_FORMAT))

    if not req.end_date:
        errors.append(FieldError("end_date", MSG_END_DATE_REQUIRED))
    elif not is_month_year(req.end_date):
        errors.append(FieldError("end_date", MSG_END_DATE_FORMAT))

    if req.user_id is not None:
        if not req.user_id.strip():
            errors.append(FieldError("user_id", MSG_USER_ID_EMPTY))
        elif not is_uuid(req.user_id):
            errors.append(FieldError("user_id", MSG_USER_ID_FORMAT))

    if req.service_name is not None:
        _check_service_name_length(errors, req.service_name)

    return errors


def ensure_valid(errors: ValidationErrors) -> None:
    if errors:
        raise ValidationFailed(errors)
