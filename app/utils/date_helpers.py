from datetime import date, datetime, timezone

from app.core.errors import InvalidDateFormat

MIN_YEAR = 1900
MAX_YEAR = 2100


def _to_int(part: str) -> int:
    # int() acepta espacios y signos; aquí solo dígitos
    if not part.isascii() or not part.isdigit():
        raise ValueError(part)
    return int(part)


def parse_month_year(token: str, field: str = "date") -> datetime:
    """
    Convierte un token "MM-YYYY" en el primer día de ese mes a medianoche UTC.

    Lanza InvalidDateFormat si el token no tiene exactamente dos partes, si el
    mes no está en [1, 12] o si el año no está en [1900, 2100].
    """
    if not isinstance(token, str):
        raise InvalidDateFormat(str(token), field)

    parts = token.split("-")
    if len(parts) != 2:
        raise InvalidDateFormat(token, field)

    try:
        month = _to_int(parts[0])
        year = _to_int(parts[1])
    except ValueError:
        raise InvalidDateFormat(token, field)

    if month < 1 or month > 12 or year < MIN_YEAR or year > MAX_YEAR:
        raise InvalidDateFormat(token, field)

    return datetime(year, month, 1, tzinfo=timezone.utc)


def parse_month_year_date(token: str, field: str = "date") -> date:
    """Igual que parse_month_year pero devuelve la fecha para columnas DATE."""
    return parse_month_year(token, field).date()


def is_month_year(token: str) -> bool:
    try:
        parse_month_year(token)
    except InvalidDateFormat:
        return False
    return True
