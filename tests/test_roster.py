import csv
import io
import pytest
from httpx import AsyncClient
from uuid import uuid4

from checkin_service.checkins.schemas import GuestCheckInRequest
from checkin_service.checkins.service import CheckInService
from checkin_service.event_sessions.exceptions import EventNotFoundException
from checkin_service.event_sessions.service import EventSessionService
from checkin_service.exceptions import NotFoundException
from checkin_service.programs.repository import ProgramSessionRepository
from checkin_service.programs.schemas import ChildCheckInRequest
from checkin_service.programs.service import ProgramCheckInService, ProgramSessionService
from checkin_service.roster.repository import RosterRepository
from checkin_service.roster.service import RosterService


def roster_service(db_session) -> RosterService:
    return RosterService(
        RosterRepository(db_session),
        ProgramSessionRepository(db_session),
        EventSessionService(db_session),
    )


async def seed_event_attendance(db_session, event, member):
    session = await EventSessionService(db_session).start_session(event.id, uuid4())
    checkins = CheckInService(db_session)
    await checkins.check_in_member(session.code, member.id)
    await checkins.check_in_guest(GuestCheckInRequest(
        full_name="Visiting Family", phone="555-0100", email="guest@example.com", first_time=True,
    ))
    return session


@pytest.mark.asyncio
async def test_event_roster_names_members_and_guests(db_session, make_event, make_profile):
    event = await make_event()
    member = await make_profile(first_name="Grace", last_name="Hopper", phone="555-0199")
    await seed_event_attendance(db_session, event, member)

    roster = await roster_service(db_session).event_roster(event.id)

    assert roster.total == 2
    names = {entry.name: entry for entry in roster.entries}
    assert names["Grace Hopper"].type == "member"
    assert names["Grace Hopper"].phone == "555-0199"
    assert names["Visiting Family"].type == "guest"
    assert names["Visiting Family"].email == "guest@example.com"
    assert names["Visiting Family"].first_time is True


@pytest.mark.asyncio
async def test_event_roster_type_filter(db_session, make_event, make_profile):
    event = await make_event()
    member = await make_profile()
    await seed_event_attendance(db_session, event, member)

    roster = await roster_service(db_session).event_roster(event.id, "guest")

    assert [entry.type for entry in roster.entries] == ["guest"]


@pytest.mark.asyncio
async def test_event_roster_survives_session_end(db_session, make_event, make_profile):
    """Test the roster shows the last session after check-in closes."""
    event = await make_event()
    member = await make_profile()
    await seed_event_attendance(db_session, event, member)
    await EventSessionService(db_session).stop_session(event.id, uuid4())

    roster = await roster_service(db_session).event_roster(event.id)

    assert roster.session.status == "ended"
    assert roster.total == 2


@pytest.mark.asyncio
async def test_event_roster_without_session(db_session, make_event):
    event = await make_event()
    service = roster_service(db_session)

    roster = await service.event_roster(event.id)
    assert roster.session is None
    assert roster.entries == []

    with pytest.raises(NotFoundException):
        await service.event_roster_export(event.id, "csv")
    with pytest.raises(EventNotFoundException):
        await service.event_roster(uuid4())


@pytest.mark.asyncio
async def test_event_roster_csv_export(db_session, make_event, make_profile):
    event = await make_event()
    member = await make_profile(first_name="Grace", last_name="Hopper")
    await seed_event_attendance(db_session, event, member)

    buffer, media_type, filename = await roster_service(db_session).event_roster_export(event.id, "csv")

    assert media_type == "text/csv"
    assert filename.endswith(".csv")
    rows = list(csv.DictReader(io.StringIO(buffer.getvalue().decode())))
    assert {row["Name"] for row in rows} == {"Grace Hopper", "Visiting Family"}
    assert {row["First Time"] for row in rows if row["Type"] == "guest"} == {"Yes"}


@pytest.mark.asyncio
async def test_event_roster_pdf_export(db_session, make_event, make_profile):
    event = await make_event()
    member = await make_profile()
    await seed_event_attendance(db_session, event, member)

    buffer, media_type, _ = await roster_service(db_session).event_roster_export(event.id, "pdf")

    assert media_type == "application/pdf"
    assert buffer.getvalue().startswith(b"%PDF")


@pytest.mark.asyncio
async def test_program_roster_filters_by_pickup_state(db_session, make_child, make_profile):
    parent = await make_profile(first_name="Pat", last_name="Parent", phone="555-0142")
    parent_id = parent.id
    ava = await make_child(parent_id, first_name="Ava", allergies="Peanuts")
    ben = await make_child(parent_id, first_name="Ben")
    await ProgramSessionService(db_session).open_session("daycare", uuid4())
    checkins = ProgramCheckInService(db_session)
    result = await checkins.check_in_children(
        "daycare", parent_id, ChildCheckInRequest(child_ids=[ava.id, ben.id])
    )
    ben_code = next(c.pickup_code for c in result.checkins if c.name == "Ben Member")
    await checkins.redeem_pickup_code(ben_code, "Pat")
    service = roster_service(db_session)

    everyone = await service.program_roster("daycare")
    assert everyone.total == 2
    by_name = {entry.name: entry for entry in everyone.entries}
    assert by_name["Ava Member"].has_allergies is True
    assert by_name["Ava Member"].parent_name == "Pat Parent"
    assert by_name["Ava Member"].parent_phone == "555-0142"
    assert by_name["Ben Member"].has_allergies is False
    assert by_name["Ben Member"].status == "picked_up"

    waiting = await service.program_roster("daycare", status_filter="checked_in")
    assert [entry.name for entry in waiting.entries] == ["Ava Member"]

    collected = await service.program_roster("daycare", status_filter="picked_up")
    assert [entry.name for entry in collected.entries] == ["Ben Member"]


@pytest.mark.asyncio
async def test_program_roster_without_session(db_session):
    roster = await roster_service(db_session).program_roster("youth")

    assert roster.session is None
    assert roster.total == 0


@pytest.mark.asyncio
async def test_active_checkin_endpoint(client: AsyncClient, make_event, admin_payload, login):
    response = await client.get("/checkin/active")
    assert response.status_code == 200
    assert response.json() is None

    event = await make_event()
    started = await client.post(f"/events/{event.id}/session/start", headers=login(admin_payload))

    response = await client.get("/checkin/active")
    assert response.status_code == 200
    data = response.json()
    assert data["event"]["id"] == str(event.id)
    assert data["session"]["code"] == started.json()["session"]["code"]


@pytest.mark.asyncio
async def test_roster_endpoints(client: AsyncClient, make_event, admin_payload, member_payload, login):
    event = await make_event()
    headers = login(admin_payload)
    started = await client.post(f"/events/{event.id}/session/start", headers=headers)
    await client.post(
        "/checkin/guest",
        json={"full_name": "Visiting Family", "phone": "555-0100", "code": started.json()["session"]["code"]},
    )

    response = await client.get(f"/events/{event.id}/roster", headers=headers)
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = await client.get(f"/events/{event.id}/roster/download?format=csv", headers=headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "Visiting Family" in response.text

    response = await client.get("/staff/programs/roster?program=daycare", headers=headers)
    assert response.status_code == 200
    assert response.json()["entries"] == []

    response = await client.get(f"/events/{event.id}/roster", headers=login(member_payload))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_roster_endpoints_reject_unknown_filters(client: AsyncClient, make_event, admin_payload, login):
    event = await make_event()
    headers = login(admin_payload)

    response = await client.get(f"/events/{event.id}/roster?type=visitor", headers=headers)
    assert response.status_code == 422

    response = await client.get(f"/events/{event.id}/roster/download?format=xlsx", headers=headers)
    assert response.status_code == 422

    response = await client.get("/staff/programs/roster?program=daycare&status=gone", headers=headers)
    assert response.status_code == 422
