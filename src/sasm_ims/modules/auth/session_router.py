"""
Sessions router.

Endpoints:
- GET /sessions - List the caller's signed-in devices
- DELETE /sessions/{id} - Sign out one of them
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, get_current_user
from sasm_ims.core.database import get_db
from sasm_ims.modules.auth import service
from sasm_ims.modules.auth.schemas import MessageResponse, SessionResponse

router = APIRouter()


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[SessionResponse]:
    """Non-expired sessions, newest first; ``is_current`` marks this device."""
    sessions = await service.list_sessions(db, current_user)
    return [SessionResponse(**s) for s in sessions]


@router.delete("/{session_id}", response_model=MessageResponse)
async def delete_session(
    session_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Revoke a session.

    Raises:
        404: Session not found for this account
    """
    await service.delete_session(db, current_user, session_id)
    return MessageResponse(message="Session removed")
