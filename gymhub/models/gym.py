from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gymhub.db.base_class import Base


class Gym(Base):
    """
    Modelo para representar un gimnasio (tenant) en el sistema.
    Cada gimnasio tiene sus propios usuarios, eventos, avisos, posts y canales.
    """
    __tablename__ = "gyms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    logo_url = Column(String(500), nullable=True)
    website = Column(String(255), nullable=True)
    timezone = Column(String(50), nullable=False, default='UTC')  # Zona horaria del gimnasio (ej: 'America/Mexico_City')
    created_by_id = Column(Integer, nullable=True)  # Usuario que creó el gimnasio en el onboarding

    # Preferencias de email
    email_enabled = Column(Boolean, nullable=False, default=True)
    reminder_emails_enabled = Column(Boolean, nullable=False, default=True)
    announcement_emails_enabled = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relaciones
    members = relationship("User", back_populates="gym", foreign_keys="User.gym_id")
    events = relationship("Event", back_populates="gym", cascade="all, delete-orphan")
