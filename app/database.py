import time

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, Session, create_engine
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from app.core.errors import StoreFailure
from app.core.logging import get_logger

logger = get_logger(__name__)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    return create_engine(database_url, echo=echo, pool_pre_ping=True)  # echo=True imprime las queries


def _sleep(seconds: float) -> None:
    time.sleep(seconds)


def _ping(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def _log_retry(retry_state) -> None:
    logger.warning(
        "database.unavailable",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


def wait_for_database(engine: Engine, retries: int = 30, interval: float = 2.0) -> None:
    """Hace ping a la base hasta que responda o se agoten los intentos."""
    attempts = max(retries, 1)
    retrying = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=_log_retry,
        sleep=_sleep,
        reraise=True,
    )
    try:
        retrying(_ping, engine)
    except OperationalError as exc:
        raise StoreFailure(f"failed to ping database after {attempts} attempts") from exc
    logger.info("database.connected")


def create_db_and_tables(engine: Engine) -> None:
    from app.models.subscription import Subscription  # noqa: F401 importar los modelos
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session
