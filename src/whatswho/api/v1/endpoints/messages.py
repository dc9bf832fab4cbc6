# src/whatswho/api/v1/endpoints/messages.py
"""Message endpoints for the Whatswho API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from whatswho.schemas.message import (
    DeleteMode,
    MarkReadRequest,
    MarkReadResponse,
    MessageCreate,
    MessageDeleteResponse,
    MessageRecord,
)
from whatswho.services.message_store import (
    DeletionForbiddenError,
    InvalidMessageError,
    MessageNotFoundError,
    MessageStore,
)

from ..dependencies import CurrentUserDep, RelayDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/", response_model=MessageRecord)
async def send_message(
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    relay: RelayDep,
) -> MessageRecord:
    """Persist a message and relay it to every live connection of both parties."""
    if message_data.sender != current_user.email:
        logger.warning("Sender mismatch: %s vs %s", message_data.sender, current_user.email)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Sender mismatch: {message_data.sender} vs {current_user.email}",
        )

    try:
        record = MessageStore(db).persist(
            message_data.sender,
            message_data.recipient,
            message_data.body,
        )
    except InvalidMessageError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err
    except SQLAlchemyError as err:
        logger.error("Message persist failed: %s", err)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store message",
        ) from err

    # No originating connection for REST submissions: every sender device is synced.
    await relay.deliver(record)
    return record


@router.get("/", response_model=list[MessageRecord])
async def get_history(current_user: CurrentUserDep, db: SessionDep) -> list[MessageRecord]:
    """Return the caller's conversations, oldest first, minus messages they hid."""
    return MessageStore(db).history(current_user.email)


@router.post("/read", response_model=MarkReadResponse)
async def mark_messages_read(
    payload: MarkReadRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    relay: RelayDep,
) -> MarkReadResponse:
    """Mark everything ``sender`` sent to the caller as read and notify the sender."""
    updated = MessageStore(db).mark_read(payload.sender, current_user.email)
    await relay.notify_read(payload.sender, current_user.email)
    return MarkReadResponse(updated=updated)


@router.delete("/{message_id}", response_model=MessageDeleteResponse)
async def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    relay: RelayDep,
    mode: DeleteMode = Query("me"),
) -> MessageDeleteResponse:
    """Delete a message for the caller only, or for everyone if the caller sent it."""
    store = MessageStore(db)
    try:
        if mode == "everyone":
            record = store.hard_delete(message_id, current_user.email)
            await relay.notify_deleted(record)
        else:
            store.soft_delete(message_id, current_user.email)
    except MessageNotFoundError as err:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found",
        ) from err
    except DeletionForbiddenError as err:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(err),
        ) from err

    return MessageDeleteResponse(mode=mode)
