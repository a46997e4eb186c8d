class BookingError(Exception):
    """Base class for booking service failures."""


class BookingValidationError(BookingError, ValueError):
    """
    The payload is malformed or lacks a required identifier.

    Subclasses ValueError so pydantic validators report it as a field error.
    """


class BookingNotFoundError(BookingError):
    def __init__(self, booking_id: str):
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} not found")


class BookingStorageError(BookingError):
    """The unit of work failed and was rolled back."""


class WalletConflictError(BookingStorageError):
    """
    The wallet balance changed between read and debit.

    Raised instead of over-debiting; the caller may retry the whole booking.
    """

    def __init__(self, wallet_id: str):
        self.wallet_id = wallet_id
        super().__init__(f"Wallet {wallet_id} was modified concurrently")
