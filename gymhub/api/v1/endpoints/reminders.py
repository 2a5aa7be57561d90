"""
Reminders Module - API Endpoints

- ``POST /reminders/process``: dispatcher run for external cron services,
  protected with the ``CRON_SECRET`` bearer token.
- ``POST /reminders/send``: manual reminder from staff to athletes who have
  not answered yet.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_gym, verify_staff_access
from gymhub.core.worker_auth import verify_cron_secret
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.reminder import ManualReminderRequest, ReminderRunResult
from gymhub.services.reminder import reminder_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/process", response_model=ReminderRunResult, dependencies=[Depends(verify_cron_secret)])
def process_reminders(db: Session = Depends(get_db)) -> ReminderRunResult:
    """
    Send every reminder that is due now. Safe to call repeatedly.
    """
    logger.info("Procesando recordatorios desde endpoint de cron")
    return reminder_service.dispatch_due_reminders(db)


@router.post("/send", response_model=ReminderRunResult)
def send_manual_reminder(
    *,
    reminder_in: ManualReminderRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
    gym: Gym = Depends(get_current_gym),
) -> ReminderRunResult:
    return reminder_service.send_manual_reminders(
        db, staff=current_user, gym=gym,
        occurrence_id=reminder_in.occurrence_id, user_ids=reminder_in.user_ids,
    )
