from uuid import UUID
from datetime import date
from typing import Literal
from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from checkin_service.db.postgres import get_db
from checkin_service.event_sessions.service import EventSessionService
from checkin_service.programs.repository import ProgramSessionRepository
from checkin_service.programs.schemas import Program
from checkin_service.roster.repository import RosterRepository
from checkin_service.roster.schemas import ActiveCheckIn, EventRoster, ProgramRoster
from checkin_service.roster.service import RosterService
from checkin_service.auth.middleware import JWTPayload, verify_token, check_permission


def get_roster_service(db: AsyncSession = Depends(get_db)) -> RosterService:
    """Dependency to get RosterService"""
    return RosterService(RosterRepository(db), ProgramSessionRepository(db), EventSessionService(db))


router = APIRouter(tags=["roster"])


@router.get("/checkin/active", response_model=ActiveCheckIn | None)
async def get_active_checkin(service: RosterService = Depends(get_roster_service)):
    """Public: the live event and its code for the lobby screen, or null"""
    return await service.active_checkin()


@router.get("/events/{event_id}/roster", response_model=EventRoster)
async def get_event_roster(
    event_id: UUID,
    type: Literal["member", "guest"] | None = Query(None),
    service: RosterService = Depends(get_roster_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Who checked in to the event's current or last session, newest first.

    Required permission: event-roster:read
    """
    check_permission(jwt_payload, "event-roster:read")
    return await service.event_roster(event_id, type)


@router.get("/events/{event_id}/roster/download")
async def download_event_roster(
    event_id: UUID,
    format: Literal["csv", "pdf"] = Query("csv"),
    service: RosterService = Depends(get_roster_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Download the event roster as CSV or PDF.

    Required permission: event-roster:read
    """
    check_permission(jwt_payload, "event-roster:read")
    buffer, media_type, filename = await service.event_roster_export(event_id, format)
    return StreamingResponse(
        buffer,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/staff/programs/roster", response_model=ProgramRoster)
async def get_program_roster(
    program: Program,
    service_date: date | None = Query(None, description="Defaults to today in the church timezone"),
    status: Literal["all", "checked_in", "picked_up"] = Query("all"),
    service: RosterService = Depends(get_roster_service),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Program roster with allergies, parent contact and pickup state.

    Required permission: program-roster:read
    """
    check_permission(jwt_payload, "program-roster:read")
    return await service.program_roster(program.value, service_date, status)
