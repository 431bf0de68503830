"""Fee demands, the payment ledger and Razorpay checkout"""
import pytest
from decimal import Decimal
from httpx import AsyncClient

from app.models import Fee


@pytest.fixture
async def fee(db_session, student_user) -> Fee:
    fee = Fee(
        student_id=student_user.id,
        semester=3,
        year=2,
        tuition_fee=Decimal("800"),
        lab_fee=Decimal("150"),
        library_fee=Decimal("50"),
        total_amount=Decimal("1000"),
    )
    fee.recalculate()
    db_session.add(fee)
    await db_session.commit()
    return fee


async def pay(client: AsyncClient, headers: dict, fee_id: str, amount) -> dict:
    return await client.post(
        "/api/v1/fees/student/pay-fee",
        json={"fee_id": fee_id, "amount": str(amount), "payment_mode": "Cash"},
        headers=headers
    )


@pytest.mark.asyncio
async def test_admin_creates_fee_with_component_total(client: AsyncClient, student_user, admin_headers):
    response = await client.post(
        "/api/v1/fees",
        json={
            "student_id": student_user.id,
            "semester": 3,
            "year": 2,
            "tuition_fee": "45000",
            "lab_fee": "2500.50",
            "library_fee": "1000",
        },
        headers=admin_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["total_amount"] == 48500.5
    assert data["pending_amount"] == 48500.5
    assert data["paid_amount"] == 0
    assert data["status"] == "Pending"


@pytest.mark.asyncio
async def test_partial_then_full_payment(client: AsyncClient, fee, student_user, student_headers):
    first = await pay(client, student_headers, fee.id, 400)

    assert first.status_code == 200
    assert first.json()["fee"]["status"] == "Partial"
    assert first.json()["fee"]["paid_amount"] == 400
    assert first.json()["fee"]["pending_amount"] == 600
    assert first.json()["payment"]["receipt_number"].startswith("RCP")

    second = await pay(client, student_headers, fee.id, 600)

    assert second.status_code == 200
    assert second.json()["fee"]["status"] == "Paid"
    assert second.json()["fee"]["pending_amount"] == 0

    payments = await client.get(f"/api/v1/fees/student/{student_user.id}/fee-payments", headers=student_headers)
    assert sorted(p["amount"] for p in payments.json()) == [400, 600]


@pytest.mark.asyncio
async def test_overpayment_is_rejected(client: AsyncClient, fee, student_headers):
    response = await pay(client, student_headers, fee.id, 1000.01)

    assert response.status_code == 400
    assert "exceeds pending amount" in response.json()["message"]


@pytest.mark.asyncio
async def test_paid_fee_accepts_no_more_payments(client: AsyncClient, fee, student_headers):
    await pay(client, student_headers, fee.id, 1000)

    response = await pay(client, student_headers, fee.id, 1)

    assert response.status_code == 400
    assert response.json()["message"] == "Fee is already paid"


@pytest.mark.asyncio
async def test_student_cannot_pay_someone_elses_fee(client: AsyncClient, fee, other_student_headers):
    response = await pay(client, other_student_headers, fee.id, 100)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_total_cannot_drop_below_paid(client: AsyncClient, fee, student_headers, admin_headers):
    await pay(client, student_headers, fee.id, 400)

    response = await client.put(f"/api/v1/fees/{fee.id}", json={"total_amount": "300"}, headers=admin_headers)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_student_fee_list_is_wrapped(client: AsyncClient, fee, student_user, student_headers):
    response = await client.get(f"/api/v1/fees/student/{student_user.id}/fees", headers=student_headers)

    assert response.status_code == 200
    assert [f["id"] for f in response.json()["data"]] == [fee.id]


@pytest.mark.asyncio
async def test_create_payment_order_defaults_to_pending(client: AsyncClient, fee, student_headers, services, monkeypatch):
    captured = {}

    async def fake_create_order(amount, receipt, notes=None):
        captured["amount"] = amount
        captured["receipt"] = receipt
        return {"id": "order_TEST123", "amount": 100000, "currency": "INR"}

    monkeypatch.setattr(services.payments, "create_order", fake_create_order)

    response = await client.post("/api/v1/fees/create-payment-order", json={"feeId": fee.id}, headers=student_headers)

    assert response.status_code == 200
    assert response.json() == {
        "orderId": "order_TEST123",
        "amount": 100000,
        "currency": "INR",
        "key": "rzp_test_key",
        "feeId": fee.id,
    }
    assert captured["amount"] == Decimal("1000.00")
    assert captured["receipt"].startswith("ORD")


@pytest.mark.asyncio
async def test_verify_payment_with_valid_signature(client: AsyncClient, fee, student_headers, services):
    signature = services.payments.compute_signature("order_ABC", "pay_XYZ")

    response = await client.post(
        "/api/v1/fees/verify-payment",
        json={
            "feeId": fee.id,
            "amount": "250",
            "orderId": "order_ABC",
            "paymentId": "pay_XYZ",
            "signature": signature,
        },
        headers=student_headers
    )

    assert response.status_code == 200
    payment = response.json()["payment"]
    assert payment["payment_mode"] == "Razorpay"
    assert payment["transaction_id"] == "pay_XYZ"
    assert payment["order_id"] == "order_ABC"
    assert response.json()["fee"]["status"] == "Partial"


@pytest.mark.asyncio
async def test_verify_payment_with_bad_signature_records_nothing(
    client: AsyncClient, fee, student_user, student_headers
):
    response = await client.post(
        "/api/v1/fees/verify-payment",
        json={
            "fee_id": fee.id,
            "amount": "250",
            "razorpay_order_id": "order_ABC",
            "razorpay_payment_id": "pay_XYZ",
            "razorpay_signature": "0" * 64,
        },
        headers=student_headers
    )

    assert response.status_code == 400
    assert response.json()["code"] == "PAYMENT_VERIFICATION_FAILED"

    payments = await client.get(f"/api/v1/fees/student/{student_user.id}/fee-payments", headers=student_headers)
    assert payments.json() == []


@pytest.mark.asyncio
async def test_payment_receipt_is_a_pdf(client: AsyncClient, fee, student_headers):
    paid = await pay(client, student_headers, fee.id, 1000)
    payment_id = paid.json()["payment"]["id"]

    response = await client.get(f"/api/v1/fees/student/payment-receipt/{payment_id}", headers=student_headers)

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_verified_payment_cannot_be_recorded_twice(client: AsyncClient, fee, student_user, student_headers, services):
    payload = {
        "feeId": fee.id,
        "amount": "250",
        "orderId": "order_ABC",
        "paymentId": "pay_XYZ",
        "signature": services.payments.compute_signature("order_ABC", "pay_XYZ"),
    }

    first = await client.post("/api/v1/fees/verify-payment", json=payload, headers=student_headers)
    replay = await client.post("/api/v1/fees/verify-payment", json=payload, headers=student_headers)

    assert first.status_code == 200
    assert replay.status_code == 400
    assert replay.json()["message"] == "Payment already recorded"

    fee_response = await client.get(f"/api/v1/fees/{fee.id}", headers=student_headers)
    assert fee_response.json()["paid_amount"] == 250
    payments = await client.get(f"/api/v1/fees/student/{student_user.id}/fee-payments", headers=student_headers)
    assert len(payments.json()) == 1


@pytest.mark.asyncio
async def test_cash_payments_get_distinct_transaction_ids(client: AsyncClient, fee, student_user, student_headers):
    for _ in range(3):
        response = await pay(client, student_headers, fee.id, 100)
        assert response.status_code == 200

    payments = await client.get(f"/api/v1/fees/student/{student_user.id}/fee-payments", headers=student_headers)
    transaction_ids = {p["transaction_id"] for p in payments.json()}
    assert len(transaction_ids) == 3
    assert all(t.startswith("TXN") for t in transaction_ids)


@pytest.mark.asyncio
async def test_student_route_pay_fee_shares_the_ledger(client: AsyncClient, fee, student_user, student_headers):
    response = await client.post(
        "/api/v1/students/pay-fee",
        json={"fee_id": fee.id, "amount": "300", "payment_mode": "UPI", "student_id": student_user.id},
        headers=student_headers
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Payment successful"
    assert response.json()["payment"]["payment_mode"] == "UPI"
    assert response.json()["fee"]["pending_amount"] == 700


@pytest.mark.asyncio
async def test_student_route_pay_fee_rejects_mismatched_student(
    client: AsyncClient, fee, other_student, admin_headers
):
    response = await client.post(
        "/api/v1/students/pay-fee",
        json={"fee_id": fee.id, "amount": "300", "student_id": other_student.id},
        headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Fee does not belong to this student"
