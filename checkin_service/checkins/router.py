from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from checkin_service.db.postgres import get_db
from checkin_service.checkins.service import CheckInService
from checkin_service.checkins.schemas import (
    CheckInResponse,
    CheckInResult,
    GuestCheckInRequest,
    MemberCheckInRequest,
)
from checkin_service.event_sessions.schemas import EventSummary
from checkin_service.auth.middleware import JWTPayload, verify_token, check_permission

router = APIRouter(
    prefix="/checkin",
    tags=["checkin"],
)


async def _result(service: CheckInService, checkin) -> CheckInResult:
    event = await service.session_repository.get_event(checkin.event_id)
    return CheckInResult(
        event=EventSummary.model_validate(event) if event else None,
        checkin=CheckInResponse.model_validate(checkin),
        checked_in_at=checkin.created_at,
    )


@router.post("", response_model=CheckInResult, status_code=status.HTTP_201_CREATED)
async def member_check_in(
    request: MemberCheckInRequest,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Check the calling member in with the code shown on screen.

    Returns 404 for an unknown or expired code and 409 (error=duplicate)
    when the member already checked in to this session.

    Required permission: checkin:create
    """
    check_permission(jwt_payload, "checkin:create")

    service = CheckInService(db)
    checkin = await service.check_in_member(request.code, jwt_payload.user_id)
    return await _result(service, checkin)


@router.post("/guest", response_model=CheckInResult, status_code=status.HTTP_201_CREATED)
async def guest_check_in(
    request: GuestCheckInRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Public guest check-in from the lobby kiosk. No login required.
    """
    service = CheckInService(db)
    checkin = await service.check_in_guest(request)
    return await _result(service, checkin)
