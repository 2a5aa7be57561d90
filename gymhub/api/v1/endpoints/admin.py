from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_gym, verify_owner_access
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.admin import AdminEmailRequest, AdminEmailResult
from gymhub.services.admin_email import admin_email_service

router = APIRouter()


@router.post("/emails", response_model=AdminEmailResult)
def send_admin_emails(
    *,
    email_in: AdminEmailRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_owner_access),
    gym: Gym = Depends(get_current_gym),
) -> AdminEmailResult:
    """
    Send welcome or password-reset emails to selected members.

    Each email carries an Auth0 password link. Sends are paced to respect
    the provider's rate limit, and the result reports each user.
    """
    return admin_email_service.send_bulk(
        db, owner=current_user, gym=gym, email_type=email_in.email_type, user_ids=email_in.user_ids
    )
