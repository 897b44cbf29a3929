from sqlmodel import SQLModel, Field
from typing import Optional
from uuid import UUID, uuid4
from datetime import date, datetime, timezone

import sqlalchemy as sa


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Subscription(SQLModel, table=True):
    __tablename__ = "subscriptions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    service_name: str = Field(max_length=255, index=True)
    price: int = Field(ge=0, sa_type=sa.BigInteger)
    user_id: UUID = Field(index=True)
    start_date: date
    end_date: Optional[date] = Field(default=None, nullable=True)  # None = sigue activa
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False, index=True),
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=sa.Column(sa.DateTime(timezone=True), nullable=False),
    )
