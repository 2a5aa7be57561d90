"""
Utilidades para el manejo de zonas horarias en el sistema.

Las fechas de las ocurrencias y las horas de los eventos se guardan como hora
local del gimnasio (naive). Estas funciones las convierten a datetimes aware
para compararlas con "ahora".
"""
from datetime import date, datetime, time, timezone
from typing import Optional
import pytz


def convert_naive_to_gym_timezone(naive_dt: datetime, gym_timezone: str) -> datetime:
    """
    Interpreta un datetime naive como hora local del gimnasio y lo devuelve aware.

    Raises:
        ValueError: si el datetime ya tiene zona horaria
    """
    if naive_dt.tzinfo is not None:
        raise ValueError("El datetime debe ser naive (sin timezone)")

    tz = pytz.timezone(gym_timezone)
    return tz.localize(naive_dt)


def convert_gym_time_to_utc(naive_dt: datetime, gym_timezone: str) -> datetime:
    """Convierte un datetime naive (hora local del gimnasio) a UTC."""
    gym_aware = convert_naive_to_gym_timezone(naive_dt, gym_timezone)
    return gym_aware.astimezone(timezone.utc)


def convert_utc_to_local(utc_dt: datetime, gym_timezone: str) -> datetime:
    """
    Convierte un datetime UTC a hora local del gimnasio.
    Un datetime naive se asume en UTC.
    """
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)

    tz = pytz.timezone(gym_timezone)
    return utc_dt.astimezone(tz)


def get_current_time_in_gym_timezone(gym_timezone: str, now: Optional[datetime] = None) -> datetime:
    """
    Obtiene la hora actual (o ``now``) en la zona horaria del gimnasio.
    """
    utc_now = now or datetime.now(timezone.utc)
    return convert_utc_to_local(utc_now, gym_timezone)


def gym_local_date(gym_timezone: str, now: Optional[datetime] = None) -> date:
    """Fecha de calendario actual en el gimnasio."""
    return get_current_time_in_gym_timezone(gym_timezone, now).date()


def occurrence_start(occurrence_date: date, start_time: time, gym_timezone: str) -> datetime:
    """Instante (aware, zona del gimnasio) en que empieza una ocurrencia."""
    return convert_naive_to_gym_timezone(datetime.combine(occurrence_date, start_time), gym_timezone)


def is_in_future(occurrence_date: date, start_time: time, gym_timezone: str,
                 now: Optional[datetime] = None) -> bool:
    """Verifica si la ocurrencia aún no ha empezado, considerando la zona del gimnasio."""
    current_time_gym = get_current_time_in_gym_timezone(gym_timezone, now)
    return occurrence_start(occurrence_date, start_time, gym_timezone) > current_time_gym
