from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr
from datetime import date, datetime
from typing import Optional
from uuid import UUID

# Los tokens de fecha llegan como texto "MM-YYYY"; se validan aparte para
# poder acumular todos los errores en vez de cortar en el primero.


class SubscriptionCreate(BaseModel):
    service_name: Optional[StrictStr] = None
    price: Optional[StrictInt] = None
    user_id: Optional[StrictStr] = None
    start_date: Optional[StrictStr] = None
    end_date: Optional[StrictStr] = None


class SubscriptionUpdate(BaseModel):
    service_name: Optional[StrictStr] = None
    price: Optional[StrictInt] = None
    start_date: Optional[StrictStr] = None
    end_date: Optional[StrictStr] = None  # "null" borra la fecha de fin


class SubscriptionRead(BaseModel):
    id: UUID
    service_name: str
    price: int
    user_id: UUID
    start_date: date
    end_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AggregationRequest(BaseModel):
    user_id: Optional[StrictStr] = None
    service_name: Optional[StrictStr] = None
    start_date: Optional[StrictStr] = None
    end_date: Optional[StrictStr] = None


class AggregationResponse(BaseModel):
    total_cost: int
    period: str
    user_id: Optional[UUID] = None
