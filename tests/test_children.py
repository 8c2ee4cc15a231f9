import pytest
from httpx import AsyncClient
from uuid import uuid4
from datetime import date, timedelta

from checkin_service.exceptions import ValidationException
from checkin_service.programs.exceptions import ChildNotFoundException
from checkin_service.programs.schemas import ChildCreateRequest, ChildUpdateRequest
from checkin_service.programs.service import ChildService
from checkin_service.utils.timezone import local_today


@pytest.mark.asyncio
async def test_create_and_list_children(db_session):
    parent_id = uuid4()
    service = ChildService(db_session)
    await service.create_child(parent_id, ChildCreateRequest(
        first_name="Ben", last_name="Doe", date_of_birth=date(2018, 3, 1),
    ))
    await service.create_child(parent_id, ChildCreateRequest(
        first_name="Ava", last_name="Doe", date_of_birth=date(2020, 3, 1),
        allergies="Peanuts", authorized_pickup_names=["Grandma Doe"],
    ))
    await service.create_child(uuid4(), ChildCreateRequest(
        first_name="Other", last_name="Kid", date_of_birth=date(2019, 3, 1),
    ))

    children = await service.list_children(parent_id)

    assert [c.first_name for c in children] == ["Ava", "Ben"]
    assert children[0].authorized_pickup_names == ["Grandma Doe"]


@pytest.mark.asyncio
async def test_create_child_in_future_rejected(db_session):
    with pytest.raises(ValidationException):
        await ChildService(db_session).create_child(uuid4(), ChildCreateRequest(
            first_name="Not", last_name="Born", date_of_birth=local_today() + timedelta(days=30),
        ))


@pytest.mark.asyncio
async def test_update_child_only_by_parent(db_session, make_child):
    parent_id = uuid4()
    child = await make_child(parent_id, first_name="Ava")
    service = ChildService(db_session)

    updated = await service.update_child(parent_id, child.id, ChildUpdateRequest(allergies="Dairy"))
    assert updated.allergies == "Dairy"
    assert updated.first_name == "Ava"

    with pytest.raises(ChildNotFoundException):
        await service.update_child(uuid4(), child.id, ChildUpdateRequest(first_name="Mallory"))


@pytest.mark.asyncio
async def test_children_endpoints(client: AsyncClient, member_payload, login):
    headers = login(member_payload)
    birth = local_today() - timedelta(days=int(12 * 365.25))

    response = await client.post(
        "/programs/children",
        json={"first_name": "Ben", "last_name": "Doe", "date_of_birth": birth.isoformat()},
        headers=headers,
    )
    assert response.status_code == 201
    child = response.json()
    assert child["eligible_program"] == "youth"
    assert 11.9 < child["age"] < 12.1

    response = await client.patch(
        f"/programs/children/{child['id']}", json={"notes": "Wears glasses"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["notes"] == "Wears glasses"

    response = await client.get("/programs/my-children", headers=headers)
    assert response.status_code == 200
    assert [c["id"] for c in response.json()] == [child["id"]]


@pytest.mark.asyncio
async def test_update_missing_child_endpoint(client: AsyncClient, member_payload, login):
    response = await client.patch(
        f"/programs/children/{uuid4()}", json={"notes": "x"}, headers=login(member_payload)
    )
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
