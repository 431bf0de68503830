from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal
import enum

from app.core.database import Base
from app.core.types import GUID, Money, generate_uuid, quantize_money


class FeeStatus(str, enum.Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"


class PaymentStatus(str, enum.Enum):
    SUCCESS = "Success"
    FAILED = "Failed"
    PENDING = "Pending"


def fee_status_for(total_amount: Decimal, paid_amount: Decimal) -> FeeStatus:
    """Status is a pure function of the outstanding balance"""
    pending = total_amount - paid_amount
    if pending <= 0:
        return FeeStatus.PAID
    if paid_amount > 0:
        return FeeStatus.PARTIAL
    return FeeStatus.PENDING


class Fee(Base):
    """
    A semester fee demand for one student.

    pending_amount == total_amount - paid_amount and status follows
    fee_status_for(); both are only ever written through apply_payment()
    or recalculate().
    """
    __tablename__ = "fees"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    semester = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    tuition_fee = Column(Money, nullable=False, default=Decimal("0.00"))
    lab_fee = Column(Money, nullable=False, default=Decimal("0.00"))
    library_fee = Column(Money, nullable=False, default=Decimal("0.00"))
    other_fees = Column(Money, nullable=False, default=Decimal("0.00"))
    total_amount = Column(Money, nullable=False)
    paid_amount = Column(Money, nullable=False, default=Decimal("0.00"))
    pending_amount = Column(Money, nullable=False)
    status = Column(
        SQLEnum(FeeStatus, values_callable=lambda e: [m.value for m in e]),
        default=FeeStatus.PENDING,
        index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = relationship("Student", lazy="selectin")
    payments = relationship("FeePayment", back_populates="fee", cascade="all, delete-orphan")

    def recalculate(self) -> None:
        total = quantize_money(self.total_amount)
        paid = quantize_money(self.paid_amount or 0)
        self.total_amount = total
        self.paid_amount = paid
        self.pending_amount = total - paid
        self.status = fee_status_for(total, paid)

    def apply_payment(self, amount: Decimal) -> None:
        self.paid_amount = quantize_money(self.paid_amount or 0) + quantize_money(amount)
        self.recalculate()

    def __repr__(self):
        return f"<Fee {self.year}/{self.semester} {self.status}>"


class FeePayment(Base):
    """Append-only ledger entry; never updated after insert"""
    __tablename__ = "fee_payments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    fee_id = Column(GUID, ForeignKey("fees.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    payment_mode = Column(String(50), nullable=False)
    transaction_id = Column(String(100), nullable=False, unique=True, index=True)
    order_id = Column(String(100), nullable=True)
    receipt_number = Column(String(50), nullable=False, index=True)
    status = Column(
        SQLEnum(PaymentStatus, values_callable=lambda e: [m.value for m in e]),
        default=PaymentStatus.PENDING
    )
    payment_date = Column(DateTime, default=datetime.utcnow)

    fee = relationship("Fee", back_populates="payments")
    student = relationship("Student", lazy="selectin")

    def __repr__(self):
        return f"<FeePayment {self.receipt_number}>"
