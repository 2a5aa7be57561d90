"""
Chat Module - API Endpoints

Gym-scoped chat: the global "Gym Chat" channel, direct messages and named
groups, with per-channel unread counters.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_member
from gymhub.db.session import get_db
from gymhub.models.user import User
from gymhub.schemas.chat import Channel, ChannelCreate, Message, MessageCreate, UnreadCounts
from gymhub.services.chat import chat_service

router = APIRouter()


@router.get("/channels", response_model=List[Channel])
async def list_channels(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> List[Channel]:
    """
    Channels the user belongs to, with unread counts. The global channel is
    created on demand.
    """
    return chat_service.list_channels(db, user=current_user)


@router.post("/channels", response_model=Channel, status_code=status.HTTP_201_CREATED)
async def create_channel(
    *,
    channel_in: ChannelCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> Channel:
    """
    Open a direct message (returns the existing one for the same pair) or
    create a named group.
    """
    return chat_service.create_channel(db, user=current_user, channel_in=channel_in)


@router.get("/channels/{channel_id}/messages", response_model=List[Message])
async def list_messages(
    channel_id: int,
    before_id: Optional[int] = Query(None, description="Paginar hacia atrás desde este mensaje"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> List[Message]:
    return chat_service.list_messages(
        db, user=current_user, channel_id=channel_id, before_id=before_id, limit=limit
    )


@router.post("/channels/{channel_id}/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
async def post_message(
    *,
    channel_id: int,
    message_in: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> Message:
    return chat_service.post_message(db, user=current_user, channel_id=channel_id, message_in=message_in)


@router.post("/channels/{channel_id}/read")
async def mark_channel_read(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> dict:
    updated = chat_service.mark_read(db, user=current_user, channel_id=channel_id)
    return {"channel_id": channel_id, "marked_read": updated}


@router.get("/notifications/counts", response_model=UnreadCounts)
async def unread_counts(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> UnreadCounts:
    return chat_service.unread_counts(db, user=current_user)
