import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, Field, field_validator, model_validator

from .exceptions import BookingValidationError
from .normalizers import (
    ZERO, PaymentStatus, normalize_payment_status, parse_stay_date, to_amount, to_count, to_text,
)


class BookingMode(str, Enum):
    HOTEL = "hotel"
    PAYING_GUEST = "pg"


def _booking_mode(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _is_affirmative(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return to_text(value).lower() in {"yes", "y", "true", "1"}


# Loosely typed payload values, normalized at decode time.
Text = Annotated[str, BeforeValidator(to_text)]
Amount = Annotated[Decimal, BeforeValidator(to_amount)]
Count = Annotated[int, BeforeValidator(to_count)]
StayDate = Annotated[Optional[datetime.date], BeforeValidator(parse_stay_date)]
Status = Annotated[PaymentStatus, BeforeValidator(normalize_payment_status)]
Flag = Annotated[bool, BeforeValidator(_is_affirmative)]
Mode = Annotated[BookingMode, BeforeValidator(_booking_mode)]

# Legacy payloads carry no mode tag; these keys only appear in paying-guest stays.
PAYING_GUEST_KEYS = ("Selected_Room_Type", "Monthly_Price")


class BookingCreate(BaseModel):
    """
    A booking request as sent by the partner front-ends.

    Wire keys are Title_Case; when a concept has several keys the first one
    present wins, even if its value is null.
    """
    booking_mode: Mode = Field(BookingMode.HOTEL, validation_alias="Booking_Mode")

    hotel_id: Text = Field(validation_alias="Hotel_ID")
    partner_id: Text = Field("", validation_alias="Partner_ID")
    hotel_name: Text = Field("", validation_alias="Hotel_Name")
    hotel_type: Text = Field("", validation_alias="Hotel_Type")
    hotel_address: Text = Field("", validation_alias="Hotel_Address")
    hotel_contact: Text = Field("", validation_alias="Hotel_Contact")

    user_id: Text = Field("", validation_alias="User_ID")
    guest_name: Text = Field("", validation_alias="Guest_Name")
    email: Text = Field("", validation_alias="Email")

    check_in_date: StayDate = Field(None, validation_alias="Check_In_Date")
    check_out_date: StayDate = Field(None, validation_alias="Check_Out_Date")

    # Standard hotel stay
    guest_count: Count = Field(0, validation_alias="Guest_Count")
    adults: Count = Field(0, validation_alias="Adults")
    children: Count = Field(0, validation_alias="Children")
    total_rooms_booked: Count = Field(0, validation_alias="Total_Rooms_Booked")
    total_days_at_stay: Count = Field(0, validation_alias="Total_Days_at_Stay")
    room_price_per_day: Amount = Field(ZERO, validation_alias="Room_Price_Per_Day")

    # Paying-guest stay
    persons: Count = Field(0, validation_alias="Persons")
    months: Count = Field(1, validation_alias="Months")

    room_type: Text = Field("", validation_alias=AliasChoices("Room_Type", "Selected_Room_Type"))
    room_price_per_month: Amount = Field(
        ZERO, validation_alias=AliasChoices("Room_Price_Per_Month", "Selected_Room_Price", "Monthly_Price")
    )

    all_days_price: Amount = Field(ZERO, validation_alias=AliasChoices("All_Days_Price", "All_Months_Price"))
    gst: Amount = Field(ZERO, validation_alias="GST")
    original_amount: Amount = Field(ZERO, validation_alias=AliasChoices("Total_Price", "Original_Total_Price"))
    final_payable_amount: Amount = Field(ZERO, validation_alias="Final_Payable_Amount")
    amount_paid_online: Amount = Field(ZERO, validation_alias="Amount_Paid_Online")
    due_amount_at_hotel: Amount = Field(ZERO, validation_alias="Due_Amount_At_Hotel")

    payment_method_type: Text = Field("", validation_alias="Payment_Type")
    paid_via: Text = Field("", validation_alias="Paid_Via")
    payment_status: Status = Field(PaymentStatus.PENDING, validation_alias="Payment_Status")

    wallet_used: Flag = Field(False, validation_alias="Wallet_Used")
    wallet_amount: Amount = Field(ZERO, validation_alias="Wallet_Amount")

    coupon_code: Text = Field("", validation_alias="Coupon_Code")
    coupon_discount_amount: Amount = Field(ZERO, validation_alias="Coupon_Discount_Amount")

    class Config:
        populate_by_name = True

    @model_validator(mode="before")
    @classmethod
    def infer_booking_mode(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("Booking_Mode") is not None or data.get("booking_mode") is not None:
            return data
        # A null tag counts as no tag
        data = {key: value for key, value in data.items() if key not in ("Booking_Mode", "booking_mode")}
        if any(key in data for key in PAYING_GUEST_KEYS):
            return {**data, "Booking_Mode": BookingMode.PAYING_GUEST}
        return data

    @field_validator("hotel_id")
    @classmethod
    def require_hotel_id(cls, value: str) -> str:
        if not value:
            raise BookingValidationError("Hotel_ID is required")
        return value

    @property
    def is_pay_at_hotel(self) -> bool:
        return self.payment_method_type.lower() == "pay at hotel"


class BookingConfirmation(BaseModel):
    message: str
    booking_id: str


class PaymentStatusUpdate(BaseModel):
    booking_id: Text = Field(validation_alias="Booking_ID")
    payment_status: Status = Field(PaymentStatus.PENDING, validation_alias="Payment_Status")

    class Config:
        populate_by_name = True

    @field_validator("booking_id")
    @classmethod
    def require_booking_id(cls, value: str) -> str:
        if not value:
            raise BookingValidationError("Booking_ID is required")
        return value


class PaymentStatusUpdated(BaseModel):
    message: str
    payment_status: PaymentStatus


class BookingRead(BaseModel):
    booking_id: str
    hotel_id: str
    partner_id: Optional[str] = None
    user_id: Optional[str] = None
    hotel_name: Optional[str] = None
    hotel_type: Optional[str] = None
    guest_name: Optional[str] = None
    check_in_date: Optional[datetime.date] = None
    check_out_date: Optional[datetime.date] = None
    guest_count: int
    total_rooms_booked: int
    total_days_at_stay: int
    months: int
    original_amount: Decimal
    final_payable_amount: Decimal
    amount_paid_online: Decimal
    due_amount_at_hotel: Decimal
    payment_method_type: Optional[str] = None
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    wallet_used: str
    wallet_amount_deducted: Decimal
    coupon_code: Optional[str] = None
    coupon_discount_amount: Decimal
    room_type: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class WalletTransactionRead(BaseModel):
    txn_id: str
    type: str
    amount: Decimal
    direction: str
    reference_id: Optional[str] = None
    status: str
    description: Optional[str] = None
    balance_after_txn: Decimal
    created_at: Optional[datetime.datetime] = None

    class Config:
        from_attributes = True


class CouponOffer(BaseModel):
    coupon_id: str
    coupon_code: str
    title: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[str] = None
    discount_value: Decimal
    max_discount: Optional[Decimal] = None
    valid_from: Optional[datetime.datetime] = None
    valid_to: Optional[datetime.datetime] = None
    usage_limit_per_user: int
    usage_count_by_user: int
    min_order_value: Decimal


class WalletSummary(BaseModel):
    user_id: str
    wallet_exists: bool
    wallet_id: Optional[str] = None
    balance: Decimal = ZERO
    transactions: List[WalletTransactionRead] = []
    coupons: List[CouponOffer] = []
