import os

# La configuración se cachea con lru_cache: las variables deben existir antes
# de importar cualquier módulo de gymhub.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EMAIL_BULK_DELAY_SECONDS"] = "0"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["RESEND_API_KEY"] = "re_test_key"

from datetime import date, time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gymhub.core.auth0_fastapi import get_current_db_user
from gymhub.db.base import Base
from gymhub.db.redis_client import get_redis_client
from gymhub.db.session import get_db
from gymhub.main import app
from gymhub.models.event import Event, EventOccurrence, OccurrenceStatus
from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole
from gymhub.services.email import email_service
from gymhub.services.notification_service import notification_service


# Usar una base de datos en memoria para pruebas
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """
    Sesión sobre un esquema recién creado. Los servicios hacen commit, así que
    las tablas se recrean en cada test en lugar de usar un rollback externo.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


class AuthState:
    """Usuario que devolverá la dependencia de autenticación."""

    def __init__(self):
        self.user = None

    def __call__(self, user: User) -> User:
        self.user = user
        return user


@pytest.fixture(scope="function")
def auth_as():
    return AuthState()


@pytest.fixture(scope="function")
def client(db, auth_as):
    """
    Cliente de prueba con la BD de test y Auth0 sustituido por ``auth_as``.
    No se usa como context manager para no arrancar el lifespan (scheduler y Redis).
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_current_user():
        if auth_as.user is None:
            from fastapi import HTTPException
            raise HTTPException(status_code=401, detail="Falta el token Bearer")
        return auth_as.user

    async def override_redis():
        yield None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_db_user] = override_current_user
    app.dependency_overrides[get_redis_client] = override_redis
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def mock_email_send():
    """Sustituye el envío real con Resend; las plantillas sí se renderizan."""
    with patch.object(email_service, "send", return_value="email_test_id") as mocked:
        yield mocked


@pytest.fixture(scope="function")
def mock_push():
    with patch.object(notification_service, "send_to_devices", return_value={"success": True}) as mocked:
        yield mocked


def create_user(db, email: str, role: UserRole, gym: Gym = None, name: str = None, **extra) -> User:
    user = User(
        email=email,
        name=name,
        role=role,
        gym_id=gym.id if gym else None,
        onboarded=bool(gym and name),
        auth0_id=f"auth0|{email}",
        **extra,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def gym(db):
    gym = Gym(name="CrossFit Norte", timezone="America/New_York")
    db.add(gym)
    db.commit()
    db.refresh(gym)
    return gym


@pytest.fixture(scope="function")
def other_gym(db):
    gym = Gym(name="Box Sur", timezone="UTC")
    db.add(gym)
    db.commit()
    db.refresh(gym)
    return gym


@pytest.fixture(scope="function")
def owner(db, gym):
    return create_user(db, "owner@test.com", UserRole.OWNER, gym, name="Olivia Owner")


@pytest.fixture(scope="function")
def coach(db, gym):
    return create_user(db, "coach@test.com", UserRole.COACH, gym, name="Carlos Coach")


@pytest.fixture(scope="function")
def athlete(db, gym):
    return create_user(db, "athlete@test.com", UserRole.ATHLETE, gym, name="Ana Athlete")


@pytest.fixture(scope="function")
def athlete2(db, gym):
    return create_user(db, "athlete2@test.com", UserRole.ATHLETE, gym, name="Beto Athlete")


def create_event_with_occurrence(
    db, gym: Gym, occurrence_date: date, title: str = "Morning Training",
    start: time = time(6, 0), end: time = time(8, 0), reminder_offsets=None,
    is_custom: bool = False,
):
    """Evento sin regla con una única ocurrencia, sin pasar por el servicio."""
    event = Event(
        gym_id=gym.id,
        title=title,
        start_time=start,
        end_time=end,
        start_date=occurrence_date,
        reminder_offsets=reminder_offsets or [],
    )
    db.add(event)
    db.flush()
    occurrence = EventOccurrence(
        event_id=event.id,
        occurrence_date=occurrence_date,
        status=OccurrenceStatus.SCHEDULED,
        is_custom=is_custom,
    )
    db.add(occurrence)
    db.commit()
    db.refresh(event)
    db.refresh(occurrence)
    return event, occurrence


@pytest.fixture
def make_user(db):
    def _make(email: str, role: UserRole, gym: Gym = None, name: str = None, **extra) -> User:
        return create_user(db, email, role, gym, name=name, **extra)
    return _make


@pytest.fixture
def make_event(db):
    def _make(gym: Gym, occurrence_date: date, **kwargs):
        return create_event_with_occurrence(db, gym, occurrence_date, **kwargs)
    return _make
