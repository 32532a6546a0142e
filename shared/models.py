from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


class EmployeeRole(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"


class CompanySize(str, Enum):
    SMALL = "SMALL"
    MEDIUM = "MEDIUM"
    LARGE = "LARGE"


class SeatClass(str, Enum):
    ECONOMY = "ECONOMY"
    PREMIUM_ECONOMY = "PREMIUM_ECONOMY"
    BUSINESS = "BUSINESS"
    FIRST = "FIRST"


class SeatStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    BOOKED = "BOOKED"
    BLOCKED = "BLOCKED"


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Entity(BaseModel):
    # enums are stored as their plain text values
    model_config = ConfigDict(use_enum_values=True)


class Airline(Entity):
    airline_id: Optional[UUID] = None
    name: Optional[str] = None
    official_name: Optional[str] = None
    official_email: Optional[str] = None
    official_phone: Optional[str] = None
    address: Optional[str] = None
    company_size: Optional[CompanySize] = None
    logo: Optional[str] = None
    status: Optional[str] = None


class Aircraft(Entity):
    aircraft_id: Optional[UUID] = None
    aircraft_number: Optional[str] = None
    type: Optional[str] = None
    capacity: Optional[int] = None
    configuration: Optional[str] = None
    airline_id: Optional[UUID] = None


class Airport(Entity):
    airport_id: Optional[UUID] = None
    airport_code: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


class Flight(Entity):
    flight_id: Optional[UUID] = None
    origin_airport_id: Optional[UUID] = None
    destination_airport_id: Optional[UUID] = None
    departure: Optional[datetime] = None
    arrival: Optional[datetime] = None
    price: Optional[float] = None
    status: Optional[str] = None
    airline_id: Optional[UUID] = None
    aircraft_id: Optional[UUID] = None


class Fare(Entity):
    fare_id: Optional[UUID] = None
    seat_class: Optional[SeatClass] = None
    base_price: Optional[float] = None
    tax: Optional[float] = None
    currency: Optional[str] = None


class Seat(Entity):
    seat_id: Optional[UUID] = None
    seat_number: Optional[str] = None
    seat_class: Optional[SeatClass] = None
    seat_type: Optional[str] = None
    seat_status: Optional[SeatStatus] = None
    fare_id: Optional[UUID] = None
    flight_id: Optional[UUID] = None


class Payment(Entity):
    payment_id: Optional[UUID] = None
    amount: Optional[float] = None
    method: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    txn_reference: Optional[str] = None
    booking_id: Optional[UUID] = None


class Booking(Entity):
    booking_id: Optional[UUID] = None
    booking_time: Optional[datetime] = None
    pnr_number: Optional[str] = None
    booking_status: Optional[BookingStatus] = None
    customer_id: Optional[UUID] = None
    flight_id: Optional[UUID] = None
    seat_id: Optional[UUID] = None
    payment: Optional[Payment] = None


class Customer(Entity):
    customer_id: Optional[UUID] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    address: Optional[str] = None
    wallet_balance: Optional[float] = None
    loyalty_points: Optional[int] = None
    role: Optional[Role] = None


class CustomerDetails(Entity):
    """Customer as exposed outside the database service: no password."""
    customer_id: Optional[UUID] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    wallet_balance: Optional[float] = None
    loyalty_points: Optional[int] = None
    role: Optional[Role] = None


class Employee(Entity):
    employee_id: Optional[UUID] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    employee_role: Optional[EmployeeRole] = None
    status: Optional[str] = None
    airline_id: Optional[UUID] = None


class Notification(Entity):
    notification_id: Optional[UUID] = None
    type: Optional[str] = None
    message: Optional[str] = None
    sent_at: Optional[datetime] = None
    status: Optional[str] = None
    customer_id: Optional[UUID] = None


class FeedBack(Entity):
    feedback_id: Optional[UUID] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comments: Optional[str] = None
    created_at: Optional[datetime] = None
    customer_id: Optional[UUID] = None
    flight_id: Optional[UUID] = None


class WaitList(Entity):
    waitlist_id: Optional[UUID] = None
    position: Optional[int] = None
    status: Optional[str] = None
    customer_id: Optional[UUID] = None
    flight_id: Optional[UUID] = None


# Request payloads of the forwarding services

class AirlineDetails(BaseModel):
    name: str
    official_name: Optional[str] = None
    official_email: Optional[str] = None
    official_phone: Optional[str] = None
    admin_name: str
    admin_email: str
    admin_phone: Optional[str] = None
    address: Optional[str] = None


class EmployeeDetails(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    employee_role: str
    airline_id: UUID


class UserDetails(BaseModel):
    email: str
    password: str
    role: Role = Role.CUSTOMER


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    token: str


class Event(BaseModel):
    event_id: str
    event_type: str
    payload: dict
