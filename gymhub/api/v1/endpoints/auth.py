from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from gymhub.db.session import get_db
from gymhub.middleware.rate_limit import RATE_LIMITS, limiter
from gymhub.schemas.admin import PasswordResetRequest
from gymhub.services.admin_email import admin_email_service

router = APIRouter()

RESET_RESPONSE = {"message": "Si existe una cuenta con ese email, recibirás un enlace para restablecer la contraseña"}


@router.post("/reset-password")
@limiter.limit(RATE_LIMITS["password_reset"])
def reset_password(
    request: Request,
    reset_in: PasswordResetRequest,
    db: Session = Depends(get_db),
) -> dict:
    """
    Public password reset. Always returns the same response so it does not
    reveal whether an account exists.
    """
    admin_email_service.request_password_reset(db, email=reset_in.email)
    return RESET_RESPONSE
