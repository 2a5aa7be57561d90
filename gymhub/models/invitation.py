from sqlalchemy import Boolean, Column, Integer, String, DateTime, Enum, ForeignKey, Index
from sqlalchemy.sql import func

from gymhub.db.base_class import Base
from gymhub.models.user import UserRole


class Invitation(Base):
    """Invitación a unirse a un gimnasio con un rol concreto (coach o athlete)."""
    __tablename__ = "invitations"

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    role = Column(Enum(UserRole), nullable=False)
    token = Column(String(64), unique=True, nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    invited_by_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)

    # Datos opcionales del invitado
    name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('ix_invitations_gym_email', 'gym_id', 'email'),
    )
