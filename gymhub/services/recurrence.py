"""
Expansión de reglas de recurrencia en fechas de ocurrencia.

Las funciones de este módulo son puras: reciben la plantilla del evento y una
ventana de fechas y devuelven fechas de calendario, sin tocar la base de datos.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from dateutil.rrule import rrule, rrulestr

from gymhub.core.config import get_settings
from gymhub.core.exceptions import ValidationError


def parse_rule(
    rule_text: str,
    start_date: date,
    end_date: Optional[date] = None,
    count: Optional[int] = None,
) -> rrule:
    """
    Construye un ``rrule`` a partir del cuerpo RRULE guardado en el evento.

    ``count`` tiene prioridad sobre ``end_date``; ambos sustituyen a los
    COUNT/UNTIL que traiga el texto.

    Raises:
        ValidationError: si la regla no es válida
    """
    text = rule_text.strip()
    if text.upper().startswith("RRULE:"):
        text = text[len("RRULE:"):]
    if not text:
        raise ValidationError("La regla de recurrencia está vacía")

    dtstart = datetime.combine(start_date, time.min)
    try:
        rule = rrulestr(text, dtstart=dtstart)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Regla de recurrencia inválida: {e}")

    if not isinstance(rule, rrule):
        raise ValidationError("Solo se admite una única regla RRULE por evento")

    try:
        if count:
            rule = rule.replace(count=count, until=None)
        elif end_date:
            rule = rule.replace(until=datetime.combine(end_date, time.max), count=None)
    except ValueError as e:
        raise ValidationError(f"Regla de recurrencia inválida: {e}")
    return rule


def horizon_end(
    start_date: date,
    today: date,
    recurrence_end_date: Optional[date] = None,
    recurrence_count: Optional[int] = None,
) -> date:
    """
    Último día hasta el que se materializan ocurrencias.

    Con fecha de fin se usa esa fecha; con COUNT se cubren dos años desde el
    inicio; sin límites se mantiene un horizonte móvil desde hoy.
    """
    settings = get_settings()
    if recurrence_end_date:
        return recurrence_end_date
    if recurrence_count:
        return start_date + timedelta(days=settings.OCCURRENCE_COUNT_HORIZON_DAYS)
    return max(start_date, today) + timedelta(days=settings.OCCURRENCE_HORIZON_DAYS)


def expand_dates(
    start_date: date,
    window_start: date,
    window_end: date,
    rule_text: Optional[str] = None,
    recurrence_end_date: Optional[date] = None,
    recurrence_count: Optional[int] = None,
) -> List[date]:
    """
    Fechas (ordenadas y sin duplicados) en las que ocurre el evento dentro de
    ``[window_start, window_end]``. Un evento sin regla ocurre solo en ``start_date``.
    """
    if window_end < window_start:
        return []

    if not rule_text:
        return [start_date] if window_start <= start_date <= window_end else []

    rule = parse_rule(rule_text, start_date, recurrence_end_date, recurrence_count)
    occurrences = rule.between(
        datetime.combine(window_start, time.min),
        datetime.combine(window_end, time.max),
        inc=True,
    )
    return sorted({dt.date() for dt in occurrences})


def missing_dates(expected: Iterable[date], existing: Iterable[date]) -> List[date]:
    """Fechas esperadas que aún no tienen ocurrencia (comparación por día de calendario)."""
    existing_set = set(existing)
    return sorted(d for d in set(expected) if d not in existing_set)
