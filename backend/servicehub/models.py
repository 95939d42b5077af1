from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    PROVIDER = "provider"


class BookingStatus(str, Enum):
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


class User(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    created_at: datetime


class UserSummary(BaseModel):
    id: str
    name: str
    phone: str


class Provider(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    service_type: str
    experience: Optional[int] = None
    price_per_visit: Optional[float] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    address: Optional[str] = None
    about: Optional[str] = None
    is_profile_complete: bool = False
    is_available: bool = True
    rating: float = 0.0
    total_jobs: int = 0
    created_at: datetime


class ProviderSummary(BaseModel):
    id: str
    name: str
    service_type: str
    phone: str


class Booking(BaseModel):
    id: str
    user_id: str
    provider_id: str
    service_type: str
    city: Optional[str] = None
    address: str = ""
    pincode: str = ""
    date: date
    time: str
    price: Optional[float] = None
    status: BookingStatus = BookingStatus.PENDING
    created_at: datetime


class BookingView(BaseModel):
    booking: Booking
    user: Optional[UserSummary] = None
    provider: Optional[ProviderSummary] = None


class BookingDetails(BaseModel):
    booking: Booking
    user: UserSummary
    provider: Provider


class DashboardView(BaseModel):
    provider: Provider
    pending_bookings: list[BookingView]
    today_jobs: list[BookingView]
    jobs_today_count: int
    today_earnings: float
    week_earnings: float
    month_earnings: float


class UserSignupRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ProviderSignupRequest(UserSignupRequest):
    service_type: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str
    role: str


class LoginResponse(BaseModel):
    access_token: str
    role: Role
    account_id: str
    destination: Literal["discovery", "profile_setup", "dashboard"]
    redirect_to: str
    expires_at: str


class PrincipalResponse(BaseModel):
    role: Role
    account_id: str


class ProviderProfileSetupRequest(BaseModel):
    experience: Optional[int] = Field(default=None, ge=0)
    price_per_visit: Optional[float] = Field(default=None, ge=0)
    city: Optional[str] = None
    pincode: Optional[str] = None
    address: Optional[str] = None
    about: Optional[str] = None


class ProviderProfileEditRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    experience: Optional[int] = Field(default=None, ge=0)
    price_per_visit: Optional[float] = Field(default=None, ge=0)
    about: Optional[str] = None
    is_available: Optional[bool] = None


class AvailabilityResponse(BaseModel):
    provider_id: str
    is_available: bool


class BookingCreateRequest(BaseModel):
    provider_id: str
    date: date
    time: str = Field(min_length=1)
    address: str = ""
    pincode: str = ""


class GeoPoint(BaseModel):
    lat: float
    lng: float
