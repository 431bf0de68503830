"""Custom SQLAlchemy column types and identifier helpers"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
import secrets
import string
import uuid

from sqlalchemy import TypeDecorator, String, Numeric


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


def generate_reference(prefix: str, random_suffix: int = 0) -> str:
    """
    Build a human-facing reference number: prefix + millisecond timestamp,
    optionally followed by `random_suffix` uppercase alphanumerics.

    Used for receipts (RCP...) and internal transaction ids (TXN...).
    """
    suffix = "".join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(random_suffix))
    return f"{prefix}{int(datetime.utcnow().timestamp() * 1000)}{suffix}"


def generate_registration_id() -> str:
    """REG + timestamp + 5 random uppercase alphanumerics"""
    return generate_reference("REG", random_suffix=5)


def quantize_money(value) -> Decimal:
    """Round a monetary amount to 2 decimal places, half-up"""
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


class Money(TypeDecorator):
    """
    Fixed-point amount stored as NUMERIC(12, 2).

    Values are always handed back as Decimal quantized to paise/cents, so
    SQLite (which has no native decimal) and PostgreSQL behave the same.
    """
    impl = Numeric(12, 2)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return quantize_money(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return quantize_money(value)
