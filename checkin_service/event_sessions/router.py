from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from checkin_service.db.postgres import get_db
from checkin_service.event_sessions.service import EventSessionService
from checkin_service.event_sessions.schemas import (
    EventSessionResponse,
    EventSummary,
    StartSessionResponse,
    StopSessionResponse,
)
from checkin_service.auth.middleware import JWTPayload, verify_token, check_permission

router = APIRouter(tags=["event-sessions"])


@router.post("/events/{event_id}/session/start", response_model=StartSessionResponse)
async def start_event_session(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Open check-in for an event and issue its 4-digit code.

    Only one event can be live at a time; starting a second one returns 409
    until the first is stopped. Starting an event that is already live
    returns its current session.

    Required permission: event-session:manage (admin, pastor)
    """
    check_permission(jwt_payload, "event-session:manage")

    service = EventSessionService(db)
    session = await service.start_session(event_id, jwt_payload.user_id)
    event = await service.repository.get_event(event_id)

    return StartSessionResponse(
        event=EventSummary.model_validate(event),
        session=EventSessionResponse.model_validate(session),
    )


@router.post("/events/{event_id}/session/stop", response_model=StopSessionResponse)
async def stop_event_session(
    event_id: UUID,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Close check-in for an event. Safe to retry.

    Required permission: event-session:manage (admin, pastor)
    """
    check_permission(jwt_payload, "event-session:manage")

    service = EventSessionService(db)
    await service.stop_session(event_id, jwt_payload.user_id)
    return StopSessionResponse(message="Session ended successfully")


@router.post("/admin/sessions/stop", response_model=StopSessionResponse)
async def stop_live_session(
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Close whichever event is currently live.

    Required permission: event-session:manage (admin, pastor)
    """
    check_permission(jwt_payload, "event-session:manage")

    service = EventSessionService(db)
    session = await service.stop_active(jwt_payload.user_id)
    if not session:
        return StopSessionResponse(message="No active session")
    return StopSessionResponse(
        message="Session ended",
        session=EventSessionResponse.model_validate(session),
    )
