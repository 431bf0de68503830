"""Departments, lendable resources, inventory stock and admin reports"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_departments_are_public_but_admin_managed(client: AsyncClient, department, admin_headers, faculty_headers):
    listing = await client.get("/api/v1/departments")
    assert listing.status_code == 200
    assert [d["code"] for d in listing.json()] == ["CSE"]

    denied = await client.post("/api/v1/departments", json={"name": "Physics", "code": "PHY"}, headers=faculty_headers)
    assert denied.status_code == 403

    duplicate = await client.post(
        "/api/v1/departments",
        json={"name": "Computer Science", "code": "CS2"},
        headers=admin_headers
    )
    assert duplicate.status_code == 400


@pytest.mark.asyncio
async def test_inventory_status_follows_quantity(client: AsyncClient, admin_headers):
    created = await client.post(
        "/api/v1/inventory",
        json={"itemName": "Projector bulb", "category": "Electronics", "quantity": 3, "cost": "1200"},
        headers=admin_headers
    )
    assert created.status_code == 201
    item = created.json()
    assert item["status"] == "in_stock"

    emptied = await client.patch(f"/api/v1/inventory/{item['id']}/quantity", json={"quantity": 0}, headers=admin_headers)
    assert emptied.json()["status"] == "out_of_stock"

    restocked = await client.patch(f"/api/v1/inventory/{item['id']}/quantity", json={"quantity": 5}, headers=admin_headers)
    assert restocked.json()["status"] == "in_stock"


@pytest.mark.asyncio
async def test_damaged_item_stays_damaged_while_stocked(client: AsyncClient, admin_headers):
    created = await client.post(
        "/api/v1/inventory",
        json={"itemName": "Chairs", "category": "Furniture", "quantity": 10, "status": "damaged"},
        headers=admin_headers
    )
    item_id = created.json()["id"]
    assert created.json()["status"] == "damaged"

    response = await client.patch(f"/api/v1/inventory/{item_id}/quantity", json={"quantity": 4}, headers=admin_headers)

    assert response.json()["status"] == "damaged"


@pytest.mark.asyncio
async def test_inventory_negative_quantity_rejected(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/inventory",
        json={"itemName": "Markers", "category": "Stationery", "quantity": -1},
        headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_resource_assign_and_return(client: AsyncClient, student_user, admin_headers):
    created = await client.post(
        "/api/v1/resources",
        json={"name": "Oscilloscope", "type": "equipment", "quantity": 1},
        headers=admin_headers
    )
    resource = created.json()
    assert resource["available"] == 1
    assert resource["status"] == "available"

    assigned = await client.patch(
        f"/api/v1/resources/{resource['id']}/assign",
        json={"studentId": student_user.id},
        headers=admin_headers
    )
    assert assigned.status_code == 200
    assert assigned.json()["status"] == "in_use"
    assert assigned.json()["available"] == 0
    assert assigned.json()["assignedToId"] == student_user.id

    again = await client.patch(
        f"/api/v1/resources/{resource['id']}/assign",
        json={"studentId": student_user.id},
        headers=admin_headers
    )
    assert again.status_code == 400

    returned = await client.patch(f"/api/v1/resources/{resource['id']}/return", headers=admin_headers)
    assert returned.json()["status"] == "available"
    assert returned.json()["available"] == 1
    assert returned.json()["assignedToId"] is None


@pytest.mark.asyncio
async def test_resource_available_cannot_exceed_quantity(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/resources",
        json={"name": "Laptops", "type": "equipment", "quantity": 2, "available": 3},
        headers=admin_headers
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_faculty_can_browse_resources(client: AsyncClient, admin_headers, faculty_headers):
    await client.post("/api/v1/resources", json={"name": "Lab 4", "type": "lab"}, headers=admin_headers)

    response = await client.get("/api/v1/resources/type/lab", headers=faculty_headers)

    assert response.status_code == 200
    assert [r["name"] for r in response.json()] == ["Lab 4"]


@pytest.mark.asyncio
async def test_registration_report_is_stored(client: AsyncClient, student_user, admin_headers):
    response = await client.post("/api/v1/reports/student-registration", headers=admin_headers)

    assert response.status_code == 201
    report = response.json()

    listing = await client.get("/api/v1/reports", headers=admin_headers)
    assert [r["id"] for r in listing.json()] == [report["id"]]
