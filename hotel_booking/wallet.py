import logging
import uuid
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from . import models, schemas
from .exceptions import WalletConflictError
from .normalizers import ZERO

logger = logging.getLogger("hotel_booking.wallet")


def get_wallet(db: Session, user_id: str, lock: bool = False):
    stmt = select(models.Wallet).where(models.Wallet.user_id == user_id).limit(1)
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalars().first()


def get_or_create_wallet(db: Session, user_id: str) -> models.Wallet:
    """
    Loads the user's wallet under a row lock, creating an empty one if needed.
    Note: Does NOT commit.
    """
    wallet = get_wallet(db, user_id, lock=True)
    if wallet is None:
        wallet = models.Wallet(id=str(uuid.uuid4()), user_id=user_id, balance=ZERO, status="active")
        db.add(wallet)
        db.flush()
        logger.info(f"Created wallet {wallet.id} for user {user_id}")
    return wallet


def debit_wallet(db: Session, user_id: str, booking_id: str, requested_amount: Decimal) -> Decimal:
    """
    Debits up to `requested_amount` from the user's wallet for a booking.

    The debit is capped by the live balance, so the returned amount may be 0.
    The balance is swapped with a conditional UPDATE keyed on the balance we
    read; if another transaction got there first nothing is written and
    WalletConflictError is raised.

    Runs inside the caller's transaction. Note: Does NOT commit.
    """
    if requested_amount <= 0:
        return ZERO

    wallet = get_or_create_wallet(db, user_id)
    balance_seen = wallet.balance if wallet.balance is not None else ZERO

    debit = min(balance_seen, requested_amount)
    if debit <= 0:
        logger.info(f"Wallet {wallet.id} has no balance to apply to booking {booking_id}")
        return ZERO

    new_balance = balance_seen - debit
    result = db.execute(
        update(models.Wallet)
        .where(models.Wallet.id == wallet.id, models.Wallet.balance == balance_seen)
        .values(balance=new_balance)
    )
    if result.rowcount != 1:
        logger.warning(f"Balance of wallet {wallet.id} changed during debit for booking {booking_id}")
        raise WalletConflictError(wallet.id)

    db.add(models.WalletTransaction(
        txn_id=str(uuid.uuid4()),
        wallet_id=wallet.id,
        type="booking_payment",
        amount=debit,
        direction="debit",
        reference_id=booking_id,
        status="success",
        description=f"Wallet used for booking {booking_id}",
        balance_after_txn=new_balance,
    ))

    logger.info(f"Debited {debit} from wallet {wallet.id} for booking {booking_id}, balance now {new_balance}")
    return debit


def get_wallet_summary(db: Session, user_id: str) -> schemas.WalletSummary:
    """
    Read-only view of a user's wallet, its ledger and the coupons on offer.
    Never creates a wallet.
    """
    wallet = get_wallet(db, user_id)
    summary = schemas.WalletSummary(user_id=user_id, wallet_exists=wallet is not None)

    if wallet is not None:
        summary.wallet_id = wallet.id
        summary.balance = wallet.balance
        transactions = db.execute(
            select(models.WalletTransaction)
            .where(models.WalletTransaction.wallet_id == wallet.id)
            .order_by(models.WalletTransaction.created_at.desc())
        ).scalars().all()
        summary.transactions = [schemas.WalletTransactionRead.model_validate(t) for t in transactions]

    now = models.utcnow()
    rows = db.execute(
        select(models.Coupon, models.CouponUsage.usage_count)
        .outerjoin(
            models.CouponUsage,
            (models.CouponUsage.coupon_id == models.Coupon.id) & (models.CouponUsage.user_id == user_id),
        )
        .where(
            models.Coupon.status == "active",
            or_(models.Coupon.valid_from.is_(None), models.Coupon.valid_from <= now),
            or_(models.Coupon.valid_to.is_(None), models.Coupon.valid_to >= now),
        )
        .order_by(models.Coupon.coupon_code)
    ).all()

    summary.coupons = [
        schemas.CouponOffer(
            coupon_id=coupon.id,
            coupon_code=coupon.coupon_code,
            title=coupon.title,
            description=coupon.description,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value or ZERO,
            max_discount=coupon.max_discount,
            valid_from=coupon.valid_from,
            valid_to=coupon.valid_to,
            usage_limit_per_user=coupon.usage_limit_per_user or 0,
            usage_count_by_user=used or 0,
            min_order_value=coupon.min_order_value or ZERO,
        )
        for coupon, used in rows
    ]
    return summary
