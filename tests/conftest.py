# Imports for testing tools
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import your application code
from hotel_booking.main import app
from hotel_booking.database import Base, get_db
from hotel_booking import models

# --- Test Database Setup ---
# One in-memory database shared by every session in a test, so commits and
# rollbacks behave as they do against a real server.
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# --- Database Management Fixtures ---
@pytest.fixture(scope="function")
def db_session():
    """Provides a fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


# --- Seed helpers ---
@pytest.fixture
def make_wallet(db_session):
    def _make_wallet(user_id: str = "U100", balance: str = "0"):
        wallet = models.Wallet(id=str(uuid.uuid4()), user_id=user_id, balance=Decimal(balance), status="active")
        db_session.add(wallet)
        db_session.commit()
        return wallet
    return _make_wallet


@pytest.fixture
def make_coupon(db_session):
    def _make_coupon(code: str = "WELCOME10", usage_limit_per_user: int = 3, **kwargs):
        coupon = models.Coupon(
            id=str(uuid.uuid4()),
            coupon_code=code,
            title=kwargs.pop("title", "Welcome offer"),
            discount_type=kwargs.pop("discount_type", "percent"),
            discount_value=kwargs.pop("discount_value", Decimal("10")),
            usage_limit_per_user=usage_limit_per_user,
            status=kwargs.pop("status", "active"),
            **kwargs,
        )
        db_session.add(coupon)
        db_session.commit()
        return coupon
    return _make_coupon


@pytest.fixture
def booking_payload():
    """A standard hotel booking as the partner front-end sends it."""
    return {
        "Partner_ID": "P1",
        "Hotel_ID": "H42",
        "Hotel_Name": "Sea View Inn",
        "Hotel_Type": "Hotel",
        "Guest_Name": "Asha Rao",
        "Email": "asha@example.com",
        "User_ID": "U100",
        "Check_In_Date": "2024-3-5",
        "Check_Out_Date": "07/03/2024",
        "Guest_Count": "2",
        "Adults": 2,
        "Children": 0,
        "Total_Rooms_Booked": 1,
        "Total_Days_at_Stay": 2,
        "Room_Price_Per_Day": "500",
        "All_Days_Price": "1,000",
        "GST": "0",
        "Total_Price": "1,000.00",
        "Final_Payable_Amount": "1000",
        "Amount_Paid_Online": "1000",
        "Due_Amount_At_Hotel": "0",
        "Payment_Type": "UPI",
        "Paid_Via": "GPay",
        "Payment_Status": "Payment Successful",
        "Hotel_Address": "1 Beach Road",
        "Hotel_Contact": "+91 99999 00000",
    }


# --- API Test Client Fixture ---
@pytest.fixture(scope="function")
def client(db_session):
    """Provides a TestClient for the booking service."""
    def override_get_db():
        """Overrides the get_db dependency for booking tests."""
        try:
            yield db_session
        finally:
            db_session.close()

    # Apply the database override
    app.dependency_overrides[get_db] = override_get_db

    # Create and yield the TestClient
    with TestClient(app) as c:
        yield c

    # Clean up overrides
    app.dependency_overrides.clear()
