# app/api/subscriptions.py

import json
from typing import List, Optional, Type

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel, ValidationError
from sqlmodel import Session
from uuid import UUID

from app.core.errors import FieldError, MalformedInput, NotFound, ValidationFailed
from app.core.logging import get_logger
from app.core.validation import (
    AGGREGATE_FIELDS,
    CREATE_FIELDS,
    UPDATE_FIELDS,
    MSG_USER_ID_FORMAT,
    ensure_valid,
    is_uuid,
    parse_subscription_id,
    validate_aggregation,
    validate_create,
    validate_fields,
    validate_update,
)
from app.crud import subscription as store
from app.database import get_session
from app.schemas.subscription import (
    AggregationRequest,
    AggregationResponse,
    SubscriptionCreate,
    SubscriptionRead,
    SubscriptionUpdate,
)
from app.utils.date_helpers import parse_month_year_date
from app.utils.query_builders import (
    build_aggregate_query,
    build_list_query,
    build_update_assignments,
    normalize_limit,
    normalize_offset,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def json_body(model: Type[BaseModel], allowed_fields):
    """
    Dependencia que lee el JSON crudo, aplica la lista blanca de campos y solo
    después construye el modelo tipado.
    """

    async def dependency(request: Request):
        raw = await request.body()
        try:
            payload = json.loads(raw)
        except ValueError:
            raise MalformedInput()
        if not isinstance(payload, dict):
            raise MalformedInput()

        validate_fields(payload, allowed_fields)

        try:
            return model.model_validate(payload)
        except ValidationError:
            raise MalformedInput()

    return dependency


@router.get("", response_model=List[SubscriptionRead])
@router.get("/", response_model=List[SubscriptionRead])
def list_subscriptions(
    user_id: Optional[str] = Query(None),
    service_name: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    owner = None
    if user_id:
        if not is_uuid(user_id):
            raise ValidationFailed([FieldError("user_id", MSG_USER_ID_FORMAT)])
        owner = UUID(user_id)

    query = build_list_query(
        user_id=owner,
        service_name=service_name or None,
        limit=normalize_limit(limit),
        offset=normalize_offset(offset),
    )
    return store.list_subscriptions(session, query)


@router.post("", response_model=SubscriptionRead, status_code=201)
@router.post("/", response_model=SubscriptionRead, status_code=201)
def create_subscription(
    data: SubscriptionCreate = Depends(json_body(SubscriptionCreate, CREATE_FIELDS)),
    session: Session = Depends(get_session),
):
    ensure_valid(validate_create(data))

    subscription = store.create_subscription(
        session,
        {
            "service_name": data.service_name,
            "price": data.price,
            "user_id": UUID(data.user_id),
            "start_date": parse_month_year_date(data.start_date, "start_date"),
            "end_date": parse_month_year_date(data.end_date, "end_date") if data.end_date else None,
        },
    )

    logger.info(
        "subscription.created",
        subscription_id=str(subscription.id),
        user_id=str(subscription.user_id),
        service_name=subscription.service_name,
    )
    return subscription


@router.post("/aggregate", response_model=AggregationResponse, response_model_exclude_none=True)
def aggregate_subscriptions(
    data: AggregationRequest = Depends(json_body(AggregationRequest, AGGREGATE_FIELDS)),
    session: Session = Depends(get_session),
):
    ensure_valid(validate_aggregation(data))

    owner = UUID(data.user_id) if data.user_id is not None else None
    query = build_aggregate_query(
        parse_month_year_date(data.start_date, "start_date"),
        parse_month_year_date(data.end_date, "end_date"),
        user_id=owner,
        service_name=data.service_name,
    )
    total_cost = store.aggregate_total(session, query)

    response = AggregationResponse(
        total_cost=total_cost,
        period=f"{data.start_date} to {data.end_date}",
        user_id=owner,
    )
    logger.info("subscription.aggregated", total_cost=total_cost, period=response.period)
    return response


@router.get("/{subscription_id}", response_model=SubscriptionRead)
def get_subscription(subscription_id: str, session: Session = Depends(get_session)):
    return store.get_subscription(session, parse_subscription_id(subscription_id))


@router.put("/{subscription_id}", response_model=SubscriptionRead)
def update_subscription(
    subscription_id: str,
    data: SubscriptionUpdate = Depends(json_body(SubscriptionUpdate, UPDATE_FIELDS)),
    session: Session = Depends(get_session),
):
    sub_id = parse_subscription_id(subscription_id)
    ensure_valid(validate_update(data))

    assignments = build_update_assignments(data)
    if store.update_subscription(session, sub_id, assignments) == 0:
        raise NotFound()

    logger.info("subscription.updated", subscription_id=str(sub_id), fields=list(assignments))
    return store.get_subscription(session, sub_id)


@router.delete("/{subscription_id}", status_code=204)
def delete_subscription(subscription_id: str, session: Session = Depends(get_session)):
    sub_id = parse_subscription_id(subscription_id)
    if store.delete_subscription(session, sub_id) == 0:
        raise NotFound()

    logger.info("subscription.deleted", subscription_id=str(sub_id))
    return Response(status_code=204)
