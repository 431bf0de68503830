"""
Fee demands, payments and receipts.

Payments go through FeeLedger, which locks the fee row; the Razorpay
flow only records a payment once the checkout signature verifies.
"""
from fastapi import APIRouter, Depends, status, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from starlette.background import BackgroundTask
from decimal import Decimal
from typing import Optional, List

from app.core.database import get_db, get_or_404
from app.core.exceptions import PaymentVerificationError, ValidationError
from app.core.logging_config import logger
from app.core.types import generate_reference
from app.models.fee import Fee, FeePayment, FeeStatus
from app.models.student import Student
from app.modules.auth import Principal, require_admin, require_student, ensure_self_or_staff, ensure_self_or_admin
from app.schemas.common import MessageResponse
from app.schemas.fee import (
    FeeCreate,
    FeeUpdate,
    FeeResponse,
    FeeListResponse,
    FeePaymentResponse,
    PayFeeRequest,
    PaymentResult,
    CreateOrderRequest,
    CreateOrderResponse,
    VerifyPaymentRequest,
)
from app.services import student_records
from app.services.fee_ledger import settle_payment
from app.services.payment_service import PaymentGateway
from app.services.registry import Outbound, get_outbound, get_payment_gateway, get_report_service
from app.services.report_service import ReportService

router = APIRouter()

AMOUNT_FIELDS = ("tuition_fee", "lab_fee", "library_fee", "other_fees")


def _component_total(fee) -> Decimal:
    return sum((Decimal(getattr(fee, name) or 0) for name in AMOUNT_FIELDS), Decimal("0"))



@router.get("", response_model=List[FeeResponse])
async def list_fees(
    student: Optional[str] = None,
    status_filter: Optional[FeeStatus] = Query(None, alias="status"),
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    query = select(Fee)
    if student:
        query = query.where(Fee.student_id == student)
    if status_filter:
        query = query.where(Fee.status == status_filter)
    if year is not None:
        query = query.where(Fee.year == year)
    if semester is not None:
        query = query.where(Fee.semester == semester)

    result = await db.execute(query.order_by(Fee.created_at.desc()))
    return result.scalars().all()


@router.get("/student/{student_id}/fees", response_model=FeeListResponse)
async def student_fees(
    student_id: str,
    year: Optional[int] = None,
    semester: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return {"data": await student_records.fees_for(db, student_id, year, semester)}


@router.get("/student/{student_id}/fee-payments", response_model=List[FeePaymentResponse])
async def student_fee_payments(
    student_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    ensure_self_or_staff(principal, student_id)
    await student_records.load_student(db, student_id)
    return await student_records.fee_payments_for(db, student_id)


@router.post("/student/pay-fee", response_model=PaymentResult)
async def pay_fee(
    data: PayFeeRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    outbound: Outbound = Depends(get_outbound)
):
    """Direct payment against a fee (counter or offline modes)"""
    return await settle_payment(
        db, principal, outbound, data.fee_id, data.amount, data.payment_mode, student_id=data.student_id
    )


@router.get("/student/payment-receipt/{payment_id}")
async def payment_receipt(
    payment_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    reports: ReportService = Depends(get_report_service)
):
    """PDF receipt for one payment; the file is removed once streamed"""
    payment = await get_or_404(db, FeePayment, payment_id, "Payment")
    ensure_self_or_staff(principal, payment.student_id)
    fee = await get_or_404(db, Fee, payment.fee_id, "Fee")

    path = await run_in_threadpool(reports.generate_fee_receipt, payment, fee, payment.student)
    return FileResponse(
        path,
        media_type="application/pdf",
        filename=f"receipt_{payment.receipt_number}.pdf",
        background=BackgroundTask(path.unlink, missing_ok=True),
    )


@router.post("/create-payment-order", response_model=CreateOrderResponse)
async def create_payment_order(
    data: CreateOrderRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    gateway: PaymentGateway = Depends(get_payment_gateway)
):
    """Open a Razorpay order for the fee's outstanding balance (or part of it)"""
    fee = await get_or_404(db, Fee, data.fee_id, "Fee")
    ensure_self_or_admin(principal, fee.student_id)

    if fee.status == FeeStatus.PAID:
        raise ValidationError("Fee is already paid")
    amount = data.amount or fee.pending_amount
    if amount > fee.pending_amount:
        raise ValidationError(f"Payment amount exceeds pending amount of {fee.pending_amount}", field="amount")

    order = await gateway.create_order(
        amount,
        receipt=generate_reference("ORD"),
        notes={"fee_id": str(fee.id), "student_id": str(fee.student_id)},
    )
    return {
        "order_id": order["id"],
        "amount": order.get("amount", gateway.to_minor_units(amount)),
        "currency": order.get("currency", gateway.currency),
        "key": gateway.key_id,
        "fee_id": str(fee.id),
    }


@router.post("/verify-payment", response_model=PaymentResult)
async def verify_payment(
    data: VerifyPaymentRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    outbound: Outbound = Depends(get_outbound)
):
    """Check the checkout signature, then record the payment"""
    if not gateway.verify_signature(data.order_id, data.payment_id, data.signature):
        logger.log_payment_event(
            "verify",
            False,
            fee_id=data.fee_id,
            amount=data.amount,
            order_id=data.order_id,
            reason="signature mismatch",
        )
        raise PaymentVerificationError()

    return await settle_payment(
        db,
        principal,
        outbound,
        data.fee_id,
        data.amount,
        "Razorpay",
        transaction_id=data.payment_id,
        order_id=data.order_id,
    )


@router.get("/{fee_id}", response_model=FeeResponse)
async def get_fee(
    fee_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_student)
):
    fee = await get_or_404(db, Fee, fee_id, "Fee")
    ensure_self_or_staff(principal, fee.student_id)
    return fee


@router.post("", response_model=FeeResponse, status_code=status.HTTP_201_CREATED)
async def create_fee(
    data: FeeCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    await get_or_404(db, Student, data.student_id, "Student")

    fee = Fee(**data.model_dump(exclude={"total_amount"}), paid_amount=Decimal("0"))
    fee.total_amount = data.total_amount if data.total_amount is not None else _component_total(data)
    fee.recalculate()
    db.add(fee)
    await db.commit()

    logger.info(f"[Fees] {principal.email} raised {fee.total_amount} for student {fee.student_id}")
    return await get_or_404(db, Fee, fee.id, "Fee")


@router.put("/{fee_id}", response_model=FeeResponse)
async def update_fee(
    fee_id: str,
    data: FeeUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    """Amounts are re-derived; a total below what was already paid is rejected"""
    fee = await get_or_404(db, Fee, fee_id, "Fee", for_update=True)
    fields = data.model_dump(exclude_unset=True)
    explicit_total = fields.pop("total_amount", None)

    for field, value in fields.items():
        setattr(fee, field, value)

    if explicit_total is not None:
        fee.total_amount = explicit_total
    elif any(name in fields for name in AMOUNT_FIELDS):
        fee.total_amount = _component_total(fee)

    if Decimal(fee.total_amount) < Decimal(fee.paid_amount or 0):
        raise ValidationError("Total amount cannot be less than the amount already paid", field="total_amount")
    fee.recalculate()
    await db.commit()
    return await get_or_404(db, Fee, fee_id, "Fee")


@router.delete("/{fee_id}", response_model=MessageResponse)
async def delete_fee(
    fee_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(require_admin)
):
    fee = await get_or_404(db, Fee, fee_id, "Fee", selectinload(Fee.payments))
    await db.delete(fee)
    await db.commit()
    return {"message": "Fee deleted successfully"}
