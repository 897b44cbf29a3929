"""
Construcción dinámica de consultas sobre la tabla de suscripciones.

Estas funciones no tocan la base de datos: devuelven asignaciones o sentencias
`select` que luego ejecuta app.crud.subscription.
"""

from datetime import datetime, timezone, date
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import func, or_
from sqlmodel import select

from app.core.errors import NoFieldsToUpdate
from app.core.validation import CLEAR_SENTINEL
from app.models.subscription import Subscription
from app.schemas.subscription import SubscriptionUpdate
from app.utils.date_helpers import parse_month_year_date

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000


def build_update_assignments(data: SubscriptionUpdate) -> Dict[str, Any]:
    """
    Devuelve las columnas a modificar, en orden, con updated_at al final.

    La presencia de cada campo se decide por su valor: cadena vacía significa
    "no enviado" y price solo cuenta si es mayor que cero, así que un PUT no
    puede poner el precio en 0. Una fecha mal formada aborta toda la
    actualización con InvalidDateFormat.
    """
    assignments: Dict[str, Any] = {}

    if data.service_name:
        assignments["service_name"] = data.service_name

    if data.price is not None and data.price > 0:
        assignments["price"] = data.price

    if data.start_date:
        assignments["start_date"] = parse_month_year_date(data.start_date, "start_date")

    if data.end_date:
        if data.end_date == CLEAR_SENTINEL:
            assignments["end_date"] = None
        else:
            assignments["end_date"] = parse_month_year_date(data.end_date, "end_date")

    if not assignments:
        raise NoFieldsToUpdate()

    assignments["updated_at"] = datetime.now(timezone.utc)
    return assignments


def _apply_filters(query, user_id: Optional[UUID], service_name: Optional[str]):
    if user_id is not None:
        query = query.where(Subscription.user_id == user_id)
    if service_name:
        query = query.where(Subscription.service_name.icontains(service_name, autoescape=True))
    return query


def build_aggregate_query(
    start: date,
    end: date,
    user_id: Optional[UUID] = None,
    service_name: Optional[str] = None,
):
    """Suma de precios de las suscripciones que caen dentro del periodo."""
    query = select(func.coalesce(func.sum(Subscription.price), 0)).where(
        Subscription.start_date >= start,
        or_(Subscription.end_date.is_(None), Subscription.end_date <= end),
    )
    return _apply_filters(query, user_id, service_name)


def build_list_query(
    user_id: Optional[UUID] = None,
    service_name: Optional[str] = None,
    limit: int = DEFAULT_LIST_LIMIT,
    offset: int = 0,
):
    query = _apply_filters(select(Subscription), user_id, service_name)
    return (
        query.order_by(Subscription.created_at.desc())
        .limit(limit)
        .offset(offset)
    )


def normalize_limit(raw: Optional[str]) -> int:
    """Un límite inválido o fuera de [1, 1000] vuelve al valor por defecto."""
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_LIST_LIMIT
    if 0 < limit <= MAX_LIST_LIMIT:
        return limit
    return DEFAULT_LIST_LIMIT


def normalize_offset(raw: Optional[str]) -> int:
    try:
        offset = int(raw)
    except (TypeError, ValueError):
        return 0
    return offset if offset >= 0 else 0
