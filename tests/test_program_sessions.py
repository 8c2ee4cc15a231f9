import pytest
from httpx import AsyncClient
from uuid import uuid4

from checkin_service.programs.exceptions import (
    NoActiveProgramSessionException,
    UnknownProgramException,
)
from checkin_service.programs.service import ProgramSessionService
from checkin_service.utils.timezone import local_today


@pytest.mark.asyncio
async def test_open_session_for_today(db_session):
    actor = uuid4()
    session = await ProgramSessionService(db_session).open_session("daycare", actor)

    assert session.program == "daycare"
    assert session.service_date == local_today()
    assert session.status == "active"
    assert session.opened_by == actor


@pytest.mark.asyncio
async def test_open_session_twice_reuses_row(db_session):
    """Test opening is idempotent for the day."""
    service = ProgramSessionService(db_session)
    first = await service.open_session("youth", uuid4())
    first_id = first.id
    second_actor = uuid4()

    second = await service.open_session("youth", second_actor)

    assert second.id == first_id
    assert second.opened_by == second_actor


@pytest.mark.asyncio
async def test_close_and_reopen_same_day(db_session):
    """Test a closed session is reactivated in place."""
    service = ProgramSessionService(db_session)
    opened = await service.open_session("teen", uuid4())
    opened_id = opened.id

    closed = await service.close_session("teen", uuid4())
    assert closed.status == "closed"
    assert closed.closed_at is not None

    reopened = await service.open_session("teen", uuid4())
    assert reopened.id == opened_id
    assert reopened.status == "active"
    assert reopened.closed_at is None
    assert reopened.closed_by is None


@pytest.mark.asyncio
async def test_close_session_not_open(db_session):
    with pytest.raises(NoActiveProgramSessionException) as exc_info:
        await ProgramSessionService(db_session).close_session("daycare", uuid4())

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_unknown_program_rejected(db_session):
    with pytest.raises(UnknownProgramException):
        await ProgramSessionService(db_session).open_session("choir", uuid4())


@pytest.mark.asyncio
async def test_active_for_today(db_session):
    service = ProgramSessionService(db_session)
    await service.open_session("daycare", uuid4())
    await service.open_session("youth", uuid4())
    await service.close_session("youth", uuid4())

    active = await service.get_active_for_today()

    assert active["daycare"] is not None
    assert active["youth"] is None
    assert active["teen"] is None


@pytest.mark.asyncio
async def test_open_close_endpoints(client: AsyncClient, staff_payload, member_payload, login):
    headers = login(staff_payload)

    response = await client.post("/staff/programs/session/open", json={"program": "daycare"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "active"

    member_headers = login(member_payload)
    response = await client.get("/programs/active-sessions", headers=member_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["daycare"]["program"] == "daycare"
    assert data["youth"] is None

    response = await client.post("/staff/programs/session/close", json={"program": "daycare"}, headers=member_headers)
    assert response.status_code == 403

    response = await client.post("/staff/programs/session/close", json={"program": "daycare"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "closed"

    response = await client.post("/staff/programs/session/close", json={"program": "daycare"}, headers=headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_open_endpoint_validates_program(client: AsyncClient, staff_payload, login):
    response = await client.post(
        "/staff/programs/session/open", json={"program": "choir"}, headers=login(staff_payload)
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_open_endpoint_requires_staff(client: AsyncClient, member_payload, login):
    response = await client.post(
        "/staff/programs/session/open", json={"program": "daycare"}, headers=login(member_payload)
    )
    assert response.status_code == 403
