from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from .. import schemas, crud
from ..database import get_db
from ..exceptions import BookingNotFoundError, BookingStorageError, WalletConflictError


router = APIRouter(prefix="/bookings", tags=["Bookings"])


# Plain `def` endpoints: each request runs on its own worker thread with its own session.

@router.post("/", response_model=schemas.BookingConfirmation, status_code=status.HTTP_201_CREATED)
def create_booking(
        booking: schemas.BookingCreate,
        db: Session = Depends(get_db),
):
    """
    Store a booking, debiting the guest's wallet and counting coupon usage
    in the same transaction.
    """
    try:
        db_booking = crud.create_booking(db=db, booking=booking)
    except WalletConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Booking failed: {e}. Please retry."
        )
    except BookingStorageError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Booking failed: {e}"
        )

    return schemas.BookingConfirmation(
        message="Booking stored successfully",
        booking_id=db_booking.booking_id,
    )


@router.post("/payment-status", response_model=schemas.PaymentStatusUpdated)
def update_payment_status(
        payment: schemas.PaymentStatusUpdate,
        db: Session = Depends(get_db),
):
    try:
        payment_status = crud.update_payment_status(db=db, payment=payment)
    except BookingNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except BookingStorageError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Payment update failed: {e}"
        )

    return schemas.PaymentStatusUpdated(message="Payment updated successfully", payment_status=payment_status)


@router.get("/", response_model=List[schemas.BookingRead])
def read_user_bookings(
        user_id: str,
        db: Session = Depends(get_db),
        skip: int = 0,
        limit: int = 100,
):
    """
    Get all bookings made by a user.
    """
    return crud.get_bookings_by_user(db=db, user_id=user_id, skip=skip, limit=limit)


@router.get("/{booking_id}", response_model=schemas.BookingRead)
def read_booking(booking_id: str, db: Session = Depends(get_db)):
    db_booking = crud.get_booking(db, booking_id=booking_id)
    if db_booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return db_booking
