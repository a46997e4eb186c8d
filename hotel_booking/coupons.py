import logging
import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger("hotel_booking.coupons")


def get_coupon_by_code(db: Session, coupon_code: str) -> Optional[models.Coupon]:
    return db.execute(
        select(models.Coupon).where(models.Coupon.coupon_code == coupon_code).limit(1)
    ).scalars().first()


def record_coupon_usage(db: Session, user_id: str, coupon_code: str) -> Optional[models.CouponUsage]:
    """
    Counts one more use of `coupon_code` by `user_id`.

    Unknown codes are ignored; validity and limits are checked upstream.
    Note: Does NOT commit. The booking transaction is responsible for the commit.
    """
    coupon = get_coupon_by_code(db, coupon_code)
    if coupon is None:
        logger.info(f"Coupon {coupon_code!r} not found, usage not recorded")
        return None

    usage = db.execute(
        select(models.CouponUsage)
        .where(models.CouponUsage.coupon_id == coupon.id, models.CouponUsage.user_id == user_id)
        .limit(1)
        .with_for_update()
    ).scalars().first()

    if usage is not None:
        # Increment in SQL so concurrent uses are never lost
        db.execute(
            update(models.CouponUsage)
            .where(models.CouponUsage.usage_id == usage.usage_id)
            .values(usage_count=models.CouponUsage.usage_count + 1, last_used_at=models.utcnow())
            .execution_options(synchronize_session="fetch")
        )
    else:
        usage = models.CouponUsage(
            usage_id=str(uuid.uuid4()),
            coupon_id=coupon.id,
            user_id=user_id,
            usage_count=1,
            last_used_at=models.utcnow(),
        )
        db.add(usage)
        db.flush()

    if coupon.usage_limit_per_user and usage.usage_count > coupon.usage_limit_per_user:
        logger.warning(
            f"User {user_id} has used coupon {coupon_code} {usage.usage_count} times "
            f"(limit {coupon.usage_limit_per_user})"
        )
    return usage
