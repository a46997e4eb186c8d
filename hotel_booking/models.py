import datetime

from sqlalchemy import (
    Column, Integer, Date, TIMESTAMP, String, Text, Numeric, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Booking(Base):
    __tablename__ = "bookings_info"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(String(20), unique=True, index=True, nullable=False)

    # Identifiers owned by other services, no FK enforced.
    partner_id = Column(String(64))
    hotel_id = Column(String(64), index=True, nullable=False)
    user_id = Column(String(64), index=True)

    hotel_name = Column(String(255))
    hotel_type = Column(String(50))
    guest_name = Column(String(255))
    email = Column(String(255))

    check_in_date = Column(Date, nullable=True)
    check_out_date = Column(Date, nullable=True)

    guest_count = Column(Integer, default=0)
    adults = Column(Integer, default=0)
    children = Column(Integer, default=0)
    total_rooms_booked = Column(Integer, default=0)
    total_days_at_stay = Column(Integer, default=0)
    months = Column(Integer, default=1)

    room_price_per_day = Column(Numeric(12, 2), default=0)
    all_days_price = Column(Numeric(12, 2), default=0)
    gst = Column(Numeric(12, 2), default=0)
    original_amount = Column(Numeric(12, 2), default=0)
    final_payable_amount = Column(Numeric(12, 2), default=0)
    amount_paid_online = Column(Numeric(12, 2), default=0)
    due_amount_at_hotel = Column(Numeric(12, 2), default=0)

    payment_method_type = Column(String(50))
    paid_via = Column(String(50))
    payment_status = Column(String(20), default="Pending", nullable=False)
    # Only set for online channels
    transaction_id = Column(String(64), unique=True, nullable=True)

    wallet_used = Column(String(3), default="No", nullable=False)
    wallet_amount_deducted = Column(Numeric(12, 2), default=0)
    coupon_code = Column(String(50))
    coupon_discount_amount = Column(Numeric(12, 2), default=0)

    room_type = Column(String(100))
    room_price_per_month = Column(Numeric(12, 2), default=0)
    hotel_address = Column(Text)
    hotel_contact = Column(String(100))

    created_at = Column(TIMESTAMP, default=utcnow)


class Wallet(Base):
    __tablename__ = "wallets"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), unique=True, index=True, nullable=False)

    # Never negative; only debited by the wallet ledger.
    balance = Column(Numeric(12, 2), default=0, nullable=False)
    status = Column(String(20), default="active", nullable=False)

    created_at = Column(TIMESTAMP, default=utcnow)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow)

    transactions = relationship("WalletTransaction", back_populates="wallet")


class WalletTransaction(Base):
    """Append-only audit entry, one per successful wallet debit."""
    __tablename__ = "wallet_transactions"

    txn_id = Column(String(36), primary_key=True)
    wallet_id = Column(String(36), ForeignKey("wallets.id"), nullable=False)

    type = Column(String(50), default="booking_payment", nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    direction = Column(String(10), default="debit", nullable=False)
    reference_id = Column(String(20))
    status = Column(String(20), default="success", nullable=False)
    description = Column(String(255))
    balance_after_txn = Column(Numeric(12, 2), nullable=False)

    created_at = Column(TIMESTAMP, default=utcnow)

    wallet = relationship("Wallet", back_populates="transactions")

    __table_args__ = (
        Index('ix_wallet_transactions_wallet_id', 'wallet_id'),
    )


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(String(36), primary_key=True)
    coupon_code = Column(String(50), unique=True, index=True, nullable=False)

    title = Column(String(255))
    description = Column(Text)
    terms_conditions = Column(Text)
    discount_type = Column(String(20))
    discount_value = Column(Numeric(12, 2), default=0)
    max_discount = Column(Numeric(12, 2), nullable=True)

    valid_from = Column(TIMESTAMP, nullable=True)
    valid_to = Column(TIMESTAMP, nullable=True)

    usage_limit_per_user = Column(Integer, default=1)
    min_order_value = Column(Numeric(12, 2), default=0)
    applicable_platform = Column(String(50))
    status = Column(String(20), default="active", nullable=False)


class CouponUsage(Base):
    __tablename__ = "coupon_usage"

    usage_id = Column(String(36), primary_key=True)
    coupon_id = Column(String(36), ForeignKey("coupons.id"), nullable=False)
    user_id = Column(String(64), nullable=False)

    usage_count = Column(Integer, default=1, nullable=False)
    last_used_at = Column(TIMESTAMP, default=utcnow)
    created_at = Column(TIMESTAMP, default=utcnow)

    # At most one counter per (coupon, user)
    __table_args__ = (
        UniqueConstraint('coupon_id', 'user_id', name='uq_coupon_usage_coupon_user'),
    )
