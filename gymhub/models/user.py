from sqlalchemy import Boolean, Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from gymhub.db.base_class import Base


class UserRole(str, enum.Enum):
    OWNER = "owner"      # Dueño / head coach del gimnasio
    COACH = "coach"      # Entrenador
    ATHLETE = "athlete"  # Atleta


STAFF_ROLES = (UserRole.OWNER, UserRole.COACH)


class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    alt_email = Column(String(255), nullable=True, index=True)
    name = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Auth0 fields
    auth0_id = Column(String(255), index=True, unique=True, nullable=True)

    role = Column(Enum(UserRole), nullable=False, default=UserRole.ATHLETE)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="SET NULL"), nullable=True, index=True)
    onboarded = Column(Boolean, nullable=False, default=False)

    # Token de dispositivo para OneSignal
    push_token = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    gym = relationship("Gym", back_populates="members", foreign_keys=[gym_id])

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def recipient_emails(self) -> list:
        """Email principal más el alternativo, si existe y es distinto."""
        emails = [self.email]
        if self.alt_email and self.alt_email.lower() != self.email.lower():
            emails.append(self.alt_email)
        return emails
