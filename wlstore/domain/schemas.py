# wlstore/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import List, Optional, Literal
from decimal import Decimal
from datetime import datetime


class MessageOut(BaseModel):
    message: str


# ---------- Products ----------

class ProductCreate(BaseModel):
    """Schema for creating a product."""

    code: str = Field(..., min_length=1, max_length=64, description="Unique product code")
    name: str = Field(..., min_length=1, max_length=200)
    price: Decimal = Field(..., ge=0, description="Unit price, must be >= 0")
    description: Optional[str] = None
    image_url: Optional[str] = None
    stock: int = Field(0, ge=0, description="Units in stock, must be >= 0")
    rating: float = Field(0.0, ge=0, le=5, description="Average rating in [0, 5]")


class ProductUpdate(BaseModel):
    """Partial product update. The code is immutable and rejected here."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = None
    image_url: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)

    model_config = ConfigDict(extra="forbid")


class ProductOut(BaseModel):
    id: int
    code: str
    name: str
    price: Decimal
    description: Optional[str] = None
    image_url: Optional[str] = None
    stock: int
    rating: float
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------- Auth ----------

class SignupIn(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)


class SigninIn(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str


class AuthUserOut(BaseModel):
    id: int
    username: str
    email: str
    name: str
    phone: str
    roles: List[str]

    model_config = ConfigDict(from_attributes=True)


class SignupOut(BaseModel):
    message: str
    user: AuthUserOut
    access_token: str
    expires_in: int


class SigninOut(AuthUserOut):
    access_token: str
    expires_in: int


# ---------- Users ----------

AddressKind = Literal["home", "office", "other"]


class AddressIn(BaseModel):
    kind: AddressKind = "home"
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field("", max_length=100)
    zip_code: str = Field("", max_length=20)
    is_default: bool = False


class AddressUpdate(BaseModel):
    kind: Optional[AddressKind] = None
    street: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    is_default: Optional[bool] = None


class AddressOut(BaseModel):
    id: int
    kind: str
    street: str
    city: str
    state: str
    zip_code: str
    is_default: bool

    model_config = ConfigDict(from_attributes=True)


class UserOut(BaseModel):
    """Public view of a user, never carries the password hash."""

    id: int
    username: str
    email: str
    name: str
    phone: str
    roles: List[str]
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    addresses: List[AddressOut] = []

    model_config = ConfigDict(from_attributes=True)


class ProfileOut(BaseModel):
    message: str
    user: UserOut


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class AddressListOut(BaseModel):
    message: str
    addresses: List[AddressOut]


# ---------- Cart / orders ----------

class CartItemIn(BaseModel):
    product_code: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(1, ge=1, description="Quantity, must be >= 1")


class QuantityIn(BaseModel):
    quantity: int = Field(..., ge=1)


class OrderItemOut(BaseModel):
    product_code: str
    quantity: int
    name: Optional[str] = None
    unit_price: Decimal
    subtotal: Decimal


class OrderOut(BaseModel):
    id: Optional[int] = None
    user_id: int
    status: str
    items: List[OrderItemOut]
    total_price: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    status_changed_at: Optional[datetime] = None
    allowed_next_statuses: List[str] = []


class StatusUpdateIn(BaseModel):
    status: str = Field(..., min_length=1)


# ---------- Admin ----------

class StatsOut(BaseModel):
    total_users: int
    total_products: int
    total_orders: int
    total_revenue: Decimal


class OrderStatusStat(BaseModel):
    status: str
    count: int
    revenue: Decimal


class UserStatusIn(BaseModel):
    is_active: bool
