"""
Fee ledger: the only writer of Fee amounts.

settle_payment is the shared entry point for every payment route.

Each payment locks the Fee row, appends an immutable FeePayment and applies
the amount in the same transaction, so two concurrent payments against one
fee serialize instead of losing an update.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_or_404
from app.core.exceptions import DuplicateRecordError, ValidationError
from app.core.logging_config import logger
from app.core.types import generate_reference, quantize_money
from app.models.fee import Fee, FeePayment, FeeStatus, PaymentStatus
from app.models.student import Student
from app.modules.auth import Principal, ensure_self_or_admin
from app.services.registry import Outbound

PAYMENT_ALREADY_RECORDED = "Payment already recorded"


class FeeLedger:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_fee(self, fee_id: str) -> Fee:
        """SELECT ... FOR UPDATE where the backend supports it"""
        return await get_or_404(self.db, Fee, fee_id, "Fee", for_update=True)

    async def is_recorded(self, transaction_id: str) -> bool:
        result = await self.db.execute(
            select(FeePayment.id).where(FeePayment.transaction_id == transaction_id)
        )
        return result.scalar_one_or_none() is not None

    async def record_payment(
        self,
        fee: Fee,
        amount: Decimal,
        payment_mode: str,
        transaction_id: Optional[str] = None,
        order_id: Optional[str] = None,
    ) -> FeePayment:
        """
        Append a successful payment and roll it into the fee totals.

        The caller owns the transaction and must have obtained `fee`
        through lock_fee(). A gateway transaction id is recorded at most once.
        """
        if fee.status == FeeStatus.PAID:
            raise ValidationError("Fee is already paid")

        amount = quantize_money(amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero", field="amount")
        if amount > fee.pending_amount:
            raise ValidationError(
                f"Payment amount exceeds pending amount of {fee.pending_amount}",
                field="amount"
            )
        if transaction_id and await self.is_recorded(transaction_id):
            raise DuplicateRecordError(PAYMENT_ALREADY_RECORDED)

        payment = FeePayment(
            fee_id=fee.id,
            student_id=fee.student_id,
            amount=amount,
            payment_mode=payment_mode,
            transaction_id=transaction_id or generate_reference("TXN", random_suffix=6),
            order_id=order_id,
            receipt_number=generate_reference("RCP"),
            status=PaymentStatus.SUCCESS,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(payment)
        except IntegrityError:
            # a concurrent verify of the same gateway payment won the insert
            raise DuplicateRecordError(PAYMENT_ALREADY_RECORDED)
        fee.apply_payment(amount)
        await self.db.flush()

        logger.log_payment_event(
            "recorded",
            True,
            fee_id=str(fee.id),
            amount=amount,
            receipt_number=payment.receipt_number,
            fee_status=fee.status.value,
        )
        return payment


def queue_receipt(outbound: Outbound, payment: FeePayment, fee: Fee, student: Student) -> None:
    outbound.email("send_fee_receipt", student.email, student.full_name, {
        "receipt_number": payment.receipt_number,
        "transaction_id": payment.transaction_id,
        "amount": str(payment.amount),
        "payment_mode": payment.payment_mode,
        "payment_date": payment.payment_date.strftime("%d %b %Y") if payment.payment_date else "",
        "semester": fee.semester,
        "year": fee.year,
        "pending_amount": str(fee.pending_amount),
    })


async def settle_payment(
    db: AsyncSession,
    principal: Principal,
    outbound: Outbound,
    fee_id: str,
    amount: Decimal,
    payment_mode: str,
    transaction_id: Optional[str] = None,
    order_id: Optional[str] = None,
    student_id: Optional[str] = None,
) -> dict:
    """Record a payment against a locked fee, commit, then queue the receipt email"""
    ledger = FeeLedger(db)
    fee = await ledger.lock_fee(fee_id)
    ensure_self_or_admin(principal, fee.student_id)
    if student_id is not None and str(student_id) != str(fee.student_id):
        raise ValidationError("Fee does not belong to this student", field="student_id")

    payment = await ledger.record_payment(fee, amount, payment_mode, transaction_id, order_id)
    await db.commit()

    fee = await get_or_404(db, Fee, fee_id, "Fee")
    payment = await get_or_404(db, FeePayment, payment.id, "Payment")
    queue_receipt(outbound, payment, fee, fee.student)
    return {"message": "Payment successful", "payment": payment, "fee": fee}
