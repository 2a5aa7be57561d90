from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import timezone
import logging

from gymhub.core.retry import retry_on_db_error
from gymhub.db.session import get_db_for_jobs
from gymhub.services.event import event_service
from gymhub.services.reminder import reminder_service

logger = logging.getLogger(__name__)

# Variable global para mantener referencia al scheduler
_scheduler = None


@retry_on_db_error(max_retries=3, delay=2)
def send_event_reminders():
    """
    Envía los recordatorios de eventos que estén en ventana.
    """
    logger.info("Ejecutando tarea programada: send_event_reminders")
    with get_db_for_jobs() as db:
        result = reminder_service.dispatch_due_reminders(db)
    if result["errors"]:
        logger.warning(f"Recordatorios con {len(result['errors'])} errores de envío")
    return result


@retry_on_db_error(max_retries=3, delay=2)
def extend_occurrence_horizons():
    """
    Materializa nuevas ocurrencias para las reglas sin fecha de fin.
    """
    logger.info("Ejecutando tarea programada: extend_occurrence_horizons")
    with get_db_for_jobs() as db:
        return event_service.extend_horizons(db)


def init_scheduler():
    """
    Inicializa el programador de tareas
    """
    global _scheduler

    logger.info("Inicializando scheduler con zona horaria UTC")
    _scheduler = AsyncIOScheduler(timezone=timezone.utc)

    # Recordatorios cada 5 minutos (granularidad de los recordatorios en minutos)
    _scheduler.add_job(
        send_event_reminders,
        trigger=CronTrigger(minute='*/5'),
        id='event_reminders',
        replace_existing=True,
        max_instances=1,
        coalesce=True
    )

    # Extensión diaria del horizonte de ocurrencias
    _scheduler.add_job(
        extend_occurrence_horizons,
        trigger=CronTrigger(hour=2, minute=10),
        id='occurrence_horizon',
        replace_existing=True
    )

    _scheduler.start()
    logger.info("Scheduler iniciado: recordatorios cada 5 minutos y extensión diaria de ocurrencias")
    return _scheduler
