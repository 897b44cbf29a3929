# app/crud/subscription.py

from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.errors import NotFound, StoreFailure
from app.models.subscription import Subscription


def create_subscription(session: Session, fields: Dict[str, Any]) -> Subscription:
    subscription = Subscription(**fields)
    try:
        session.add(subscription)
        session.commit()
        session.refresh(subscription)
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreFailure("failed to create subscription") from exc
    return subscription


def get_subscription(session: Session, subscription_id: UUID) -> Subscription:
    try:
        subscription = session.get(Subscription, subscription_id)
    except SQLAlchemyError as exc:
        raise StoreFailure("failed to fetch subscription") from exc
    if not subscription:
        raise NotFound()
    return subscription


def update_subscription(session: Session, subscription_id: UUID, assignments: Dict[str, Any]) -> int:
    """Aplica todas las asignaciones en un solo UPDATE. Devuelve filas afectadas."""
    statement = (
        update(Subscription)
        .where(Subscription.id == subscription_id)
        .values(**assignments)
        .execution_options(synchronize_session=False)
    )
    try:
        result = session.exec(statement)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreFailure("failed to update subscription") from exc
    return result.rowcount


def delete_subscription(session: Session, subscription_id: UUID) -> int:
    statement = delete(Subscription).where(Subscription.id == subscription_id)
    try:
        result = session.exec(statement)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise StoreFailure("failed to delete subscription") from exc
    return result.rowcount


def list_subscriptions(session: Session, query) -> List[Subscription]:
    try:
        return list(session.exec(query).all())
    except SQLAlchemyError as exc:
        raise StoreFailure("failed to list subscriptions") from exc


def aggregate_total(session: Session, query) -> int:
    try:
        total = session.exec(query).one()
    except SQLAlchemyError as exc:
        raise StoreFailure("failed to aggregate subscriptions") from exc
    return int(total or 0)
