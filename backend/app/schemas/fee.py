from pydantic import AliasChoices, BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from app.models.fee import FeeStatus, PaymentStatus
from app.schemas.common import ORMModel, StudentBrief


class FeeCreate(BaseModel):
    student_id: str
    semester: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1)
    tuition_fee: Decimal = Field(default=Decimal("0"), ge=0)
    lab_fee: Decimal = Field(default=Decimal("0"), ge=0)
    library_fee: Decimal = Field(default=Decimal("0"), ge=0)
    other_fees: Decimal = Field(default=Decimal("0"), ge=0)
    # Sum of the components when omitted
    total_amount: Optional[Decimal] = Field(None, ge=0)


class FeeUpdate(BaseModel):
    """paid_amount is deliberately absent: it only changes through payments"""
    semester: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=1)
    tuition_fee: Optional[Decimal] = Field(None, ge=0)
    lab_fee: Optional[Decimal] = Field(None, ge=0)
    library_fee: Optional[Decimal] = Field(None, ge=0)
    other_fees: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)


class FeeResponse(ORMModel):
    id: str
    student_id: str
    student: Optional[StudentBrief] = None
    semester: int
    year: int
    tuition_fee: float
    lab_fee: float
    library_fee: float
    other_fees: float
    total_amount: float
    paid_amount: float
    pending_amount: float
    status: FeeStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FeeListResponse(BaseModel):
    data: List[FeeResponse]


class FeePaymentResponse(ORMModel):
    id: str
    fee_id: str
    student_id: str
    amount: float
    payment_mode: str
    transaction_id: str
    order_id: Optional[str] = None
    receipt_number: str
    status: PaymentStatus
    payment_date: Optional[datetime] = None


class PayFeeRequest(BaseModel):
    fee_id: str
    amount: Decimal = Field(..., gt=0)
    payment_mode: str = Field(default="Online", max_length=50)
    # Must match the fee's owner when sent
    student_id: Optional[str] = None


class PaymentResult(BaseModel):
    message: str
    payment: FeePaymentResponse
    fee: FeeResponse


class CreateOrderRequest(BaseModel):
    fee_id: str = Field(validation_alias=AliasChoices("feeId", "fee_id"))
    # Defaults to the outstanding balance
    amount: Optional[Decimal] = Field(None, gt=0)


class CreateOrderResponse(BaseModel):
    """Everything the browser checkout needs to open the order"""
    order_id: str = Field(serialization_alias="orderId")
    amount: int  # smallest currency unit
    currency: str
    key: str
    fee_id: str = Field(serialization_alias="feeId")


class VerifyPaymentRequest(BaseModel):
    """Accepts the checkout form names or Razorpay's own razorpay_* handler names"""
    fee_id: str = Field(validation_alias=AliasChoices("feeId", "fee_id"))
    amount: Decimal = Field(..., gt=0)
    order_id: str = Field(validation_alias=AliasChoices("orderId", "razorpay_order_id", "order_id"))
    payment_id: str = Field(validation_alias=AliasChoices("paymentId", "razorpay_payment_id", "payment_id"))
    signature: str = Field(validation_alias=AliasChoices("signature", "razorpay_signature"))
