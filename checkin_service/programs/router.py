from uuid import UUID
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from checkin_service.db.postgres import get_db
from checkin_service.programs.service import (
    ChildService,
    ProgramCheckInService,
    ProgramSessionService,
)
from checkin_service.programs.schemas import (
    ActiveProgramSessions,
    ChildCheckInRequest,
    ChildCheckInResult,
    ChildCreateRequest,
    ChildProgram,
    ChildResponse,
    ChildUpdateRequest,
    PickupRequest,
    PickupResult,
    ProgramCheckInResponse,
    ProgramSessionRequest,
    ProgramSessionResponse,
)
from checkin_service.auth.middleware import JWTPayload, verify_token, check_permission

router = APIRouter(tags=["programs"])


# ----- Parent / member endpoints -----

@router.get("/programs/my-children", response_model=List[ChildResponse])
async def list_my_children(
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Children registered by the caller, with current age and the program
    their age places them in.

    Required permission: children:manage
    """
    check_permission(jwt_payload, "children:manage")

    service = ChildService(db)
    children = await service.list_children(jwt_payload.user_id)
    return [ChildResponse.model_validate(c) for c in children]


@router.post("/programs/children", response_model=ChildResponse, status_code=status.HTTP_201_CREATED)
async def create_child(
    request: ChildCreateRequest,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """Required permission: children:manage"""
    check_permission(jwt_payload, "children:manage")

    service = ChildService(db)
    child = await service.create_child(jwt_payload.user_id, request)
    return ChildResponse.model_validate(child)


@router.patch("/programs/children/{child_id}", response_model=ChildResponse)
async def update_child(
    child_id: UUID,
    request: ChildUpdateRequest,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Update one of the caller's children. Returns 404 for children owned by
    someone else.

    Required permission: children:manage
    """
    check_permission(jwt_payload, "children:manage")

    service = ChildService(db)
    child = await service.update_child(jwt_payload.user_id, child_id, request)
    return ChildResponse.model_validate(child)


@router.get("/programs/active-sessions", response_model=ActiveProgramSessions)
async def get_active_program_sessions(
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Which programs are open today.

    Required permission: program-checkin:create
    """
    check_permission(jwt_payload, "program-checkin:create")

    service = ProgramSessionService(db)
    sessions = await service.get_active_for_today()
    return ActiveProgramSessions(**{
        program: ProgramSessionResponse.model_validate(session) if session else None
        for program, session in sessions.items()
    })


@router.post("/programs/checkin/teen", response_model=ProgramCheckInResponse, status_code=status.HTTP_201_CREATED)
async def teen_check_in(
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Teen self check-in (ages 16-21, from the profile birthday).

    Required permission: program-checkin:create
    """
    check_permission(jwt_payload, "program-checkin:create")

    service = ProgramCheckInService(db)
    return await service.check_in_teen(jwt_payload.user_id)


@router.post("/programs/checkin/{program}", response_model=ChildCheckInResult, status_code=status.HTTP_201_CREATED)
async def children_check_in(
    program: ChildProgram,
    request: ChildCheckInRequest,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Check the caller's children into today's daycare or youth session.

    Children the caller does not own, or who are already checked in, are
    reported under `skipped` instead of failing the whole request.
    Daycare check-ins return a pickup code per child.

    Required permission: program-checkin:create
    """
    check_permission(jwt_payload, "program-checkin:create")

    service = ProgramCheckInService(db)
    return await service.check_in_children(program.value, jwt_payload.user_id, request)


# ----- Staff endpoints -----

@router.post("/staff/programs/session/open", response_model=ProgramSessionResponse)
async def open_program_session(
    request: ProgramSessionRequest,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Open today's session for a program. Reopening a closed session reuses it.

    Required permission: program-session:manage
    """
    check_permission(jwt_payload, "program-session:manage")

    service = ProgramSessionService(db)
    session = await service.open_session(request.program.value, jwt_payload.user_id)
    return ProgramSessionResponse.model_validate(session)


@router.post("/staff/programs/session/close", response_model=ProgramSessionResponse)
async def close_program_session(
    request: ProgramSessionRequest,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Close today's session for a program; 404 when it is not open.

    Required permission: program-session:manage
    """
    check_permission(jwt_payload, "program-session:manage")

    service = ProgramSessionService(db)
    session = await service.close_session(request.program.value, jwt_payload.user_id)
    return ProgramSessionResponse.model_validate(session)


@router.post("/staff/programs/pickup", response_model=PickupResult)
async def redeem_pickup(
    request: PickupRequest,
    db: AsyncSession = Depends(get_db),
    jwt_payload: JWTPayload = Depends(verify_token),
):
    """
    Release a child against their pickup code. Each code works once, and only
    on the day it was issued.

    Required permission: pickup:redeem
    """
    check_permission(jwt_payload, "pickup:redeem")

    service = ProgramCheckInService(db)
    return await service.redeem_pickup_code(request.pickup_code, request.picked_up_by)
