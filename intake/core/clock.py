"""
Utilidades de data/hora. Tudo é persistido em UTC; o "dia" de negócio
(agenda do dia, filtros por data) é calculado no fuso configurado.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from intake.config import get_settings


def utcnow() -> datetime:
    """Timestamp UTC com timezone, usado nos defaults das colunas."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normaliza para UTC. Datetimes sem timezone são tratados como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().TIMEZONE)


def local_day_bounds(day: date | None = None) -> tuple[datetime, datetime]:
    """
    Retorna [meia-noite, próxima meia-noite) do dia local, em UTC.
    Sem argumento, usa o dia corrente no fuso configurado.
    """
    tz = local_tz()
    if day is None:
        day = datetime.now(tz).date()
    start = datetime.combine(day, time.min).replace(tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def date_range_bounds(
    date_from: date | None, date_to: date | None
) -> tuple[datetime | None, datetime | None]:
    """Converte datas do filtro em limites inclusivos (início / fim do dia local)."""
    tz = local_tz()
    start = end = None
    if date_from:
        start = datetime.combine(date_from, time.min).replace(tzinfo=tz)
        start = start.astimezone(timezone.utc)
    if date_to:
        end = datetime.combine(date_to, time.max).replace(tzinfo=tz)
        end = end.astimezone(timezone.utc)
    return start, end
