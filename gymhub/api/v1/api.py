from fastapi import APIRouter

from gymhub.api.v1.endpoints import (
    admin, auth, blog, chat, events, gyms, invitations, notices, occurrences,
    onboarding, reminders, roster, rsvp, users,
)

api_router = APIRouter()

# Authentication module
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Onboarding and gym settings
api_router.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
api_router.include_router(gyms.router, prefix="/gym", tags=["gym"])

# Users and roster
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(roster.router, prefix="/roster", tags=["roster"])
api_router.include_router(invitations.router, prefix="/invitations", tags=["invitations"])

# Events, occurrences, attendance and reminders
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(occurrences.router, prefix="/occurrences", tags=["occurrences"])
api_router.include_router(rsvp.router, prefix="/rsvp", tags=["rsvp"])
api_router.include_router(reminders.router, prefix="/reminders", tags=["reminders"])

# Communication
api_router.include_router(notices.router, prefix="/notices", tags=["notices"])
api_router.include_router(blog.router, prefix="/blog", tags=["blog"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])

# Administration
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
