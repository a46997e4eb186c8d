import logging
import secrets
import time
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import exists, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import coupons, models, schemas, wallet
from .config import settings
from .exceptions import BookingNotFoundError, BookingStorageError
from .normalizers import ZERO, PaymentStatus

logger = logging.getLogger("hotel_booking")


class BookingStage(str, Enum):
    RECEIVED = "received"
    NORMALIZED = "normalized"
    WALLET_APPLIED = "wallet_applied"
    COUPON_APPLIED = "coupon_applied"
    PERSISTED = "persisted"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def booking_id_exists(db: Session, booking_id: str) -> bool:
    return db.execute(select(exists().where(models.Booking.booking_id == booking_id))).scalar()


def generate_booking_id(db: Session) -> str:
    """
    Returns a short booking code (e.g. BKG482913) not yet present in the table.

    The unique constraint on bookings_info.booking_id still guards the insert.
    """
    for _ in range(settings.BOOKING_ID_MAX_ATTEMPTS):
        candidate = f"{settings.BOOKING_ID_PREFIX}{100000 + secrets.randbelow(900000)}"
        if not booking_id_exists(db, candidate):
            return candidate
        logger.warning(f"Booking id {candidate} already taken, generating another")
    raise BookingStorageError(
        f"Could not allocate a unique booking id after {settings.BOOKING_ID_MAX_ATTEMPTS} attempts"
    )


def generate_transaction_id(booking: schemas.BookingCreate) -> Optional[str]:
    """Provisional id for online payments; cash at the hotel has none."""
    if booking.is_pay_at_hotel:
        return None
    # Millisecond stamp plus a random suffix: two bookings in the same ms still differ
    return f"TXN{time.time_ns() // 1_000_000}{secrets.token_hex(4).upper()}"


def cap_wallet_request(original_amount: Decimal, wallet_amount: Decimal) -> Decimal:
    """A wallet may cover at most WALLET_MAX_USAGE_RATIO of the original amount."""
    if original_amount > 0 and wallet_amount > 0:
        return min(wallet_amount, original_amount * settings.WALLET_MAX_USAGE_RATIO)
    return wallet_amount


def should_debit_wallet(booking: schemas.BookingCreate, wallet_requested: Decimal) -> bool:
    return (
        not booking.is_pay_at_hotel
        and booking.wallet_used
        and wallet_requested > 0
        and bool(booking.user_id)
    )


def build_booking_row(
        booking: schemas.BookingCreate,
        booking_id: str,
        transaction_id: Optional[str],
        wallet_debited: Decimal,
) -> models.Booking:
    if booking.booking_mode == schemas.BookingMode.PAYING_GUEST:
        occupancy = {
            "hotel_type": "PG",
            "guest_count": booking.persons,
            "adults": booking.persons,
            "children": 0,
            "total_rooms_booked": 1,
            # Months column falls back to 1, the stay length does not
            "total_days_at_stay": booking.months if "months" in booking.model_fields_set else 0,
            "room_price_per_day": ZERO,
        }
    else:
        occupancy = {
            "hotel_type": booking.hotel_type,
            "guest_count": booking.guest_count,
            "adults": booking.adults,
            "children": booking.children,
            "total_rooms_booked": booking.total_rooms_booked,
            "total_days_at_stay": booking.total_days_at_stay,
            "room_price_per_day": booking.room_price_per_day,
        }

    return models.Booking(
        booking_id=booking_id,
        partner_id=booking.partner_id,
        hotel_id=booking.hotel_id,
        user_id=booking.user_id,
        hotel_name=booking.hotel_name,
        guest_name=booking.guest_name,
        email=booking.email,
        check_in_date=booking.check_in_date,
        check_out_date=booking.check_out_date,
        months=booking.months,
        all_days_price=booking.all_days_price,
        gst=booking.gst,
        original_amount=booking.original_amount,
        final_payable_amount=booking.final_payable_amount,
        amount_paid_online=booking.amount_paid_online,
        due_amount_at_hotel=booking.due_amount_at_hotel,
        payment_method_type=booking.payment_method_type,
        paid_via=booking.paid_via,
        payment_status=booking.payment_status.value,
        transaction_id=transaction_id,
        wallet_used="Yes" if wallet_debited > 0 else "No",
        wallet_amount_deducted=wallet_debited,
        coupon_code=booking.coupon_code,
        coupon_discount_amount=booking.coupon_discount_amount,
        room_type=booking.room_type,
        room_price_per_month=booking.room_price_per_month,
        hotel_address=booking.hotel_address,
        hotel_contact=booking.hotel_contact,
        **occupancy,
    )


def create_booking(db: Session, booking: schemas.BookingCreate) -> models.Booking:
    """
    Atomically records a booking together with its wallet debit and coupon usage.

    Either all three writes are committed or none are: any failure rolls the
    session back and is re-raised as BookingStorageError (WalletConflictError
    passes through unchanged).
    """
    stage = BookingStage.RECEIVED
    booking_id = None
    try:
        booking_id = generate_booking_id(db)
        transaction_id = generate_transaction_id(booking)
        wallet_requested = cap_wallet_request(booking.original_amount, booking.wallet_amount)
        stage = BookingStage.NORMALIZED
        logger.info(f"Processing booking {booking_id} ({booking.booking_mode.value}) for hotel {booking.hotel_id}")

        # 1. Wallet debit
        wallet_debited = ZERO
        if should_debit_wallet(booking, wallet_requested):
            wallet_debited = wallet.debit_wallet(db, booking.user_id, booking_id, wallet_requested)
            stage = BookingStage.WALLET_APPLIED

        # 2. Coupon usage
        if booking.coupon_code:
            if booking.user_id:
                coupons.record_coupon_usage(db, booking.user_id, booking.coupon_code)
                stage = BookingStage.COUPON_APPLIED
            else:
                logger.warning(f"Coupon {booking.coupon_code} on booking {booking_id} has no user, usage not recorded")

        # 3. The booking row itself
        db_booking = build_booking_row(booking, booking_id, transaction_id, wallet_debited)
        db.add(db_booking)
        db.flush()
        stage = BookingStage.PERSISTED

        # 4. Commit all of the above at once
        db.commit()
        stage = BookingStage.COMMITTED
    except Exception as e:
        db.rollback()
        logger.error(f"Booking {booking_id} {BookingStage.ROLLED_BACK.value} at stage {stage.value}: {e}")
        # WalletConflictError is a BookingStorageError and passes through as is
        if isinstance(e, BookingStorageError):
            raise
        raise BookingStorageError(str(e)) from e

    db.refresh(db_booking)
    logger.info(f"Booking {booking_id} {stage.value} (wallet debited {wallet_debited})")
    return db_booking


def update_payment_status(db: Session, payment: schemas.PaymentStatusUpdate) -> PaymentStatus:
    """
    Sets the payment status of an existing booking. Single statement, no
    other entities involved.
    """
    try:
        result = db.execute(
            update(models.Booking)
            .where(models.Booking.booking_id == payment.booking_id)
            .values(payment_status=payment.payment_status.value)
        )
        if result.rowcount == 0:
            db.rollback()
            raise BookingNotFoundError(payment.booking_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update payment status of booking {payment.booking_id}: {e}")
        raise BookingStorageError(str(e)) from e

    logger.info(f"Booking {payment.booking_id} payment status set to {payment.payment_status.value}")
    return payment.payment_status


def get_booking(db: Session, booking_id: str) -> Optional[models.Booking]:
    return db.query(models.Booking).filter(models.Booking.booking_id == booking_id).first()


def get_bookings_by_user(db: Session, user_id: str, skip: int = 0, limit: int = 100):
    return (
        db.query(models.Booking)
        .filter(models.Booking.user_id == user_id)
        .order_by(models.Booking.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
