from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, EmailStr, Field, StringConstraints

Required = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


# ----- Auth -----

class RegisterRequest(BaseModel):
    name: Required
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    token: str


# ----- Catalog -----

class FoodItemRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    price: Decimal
    category: str
    image: Optional[str]

    class Config:
        from_attributes = True


# ----- Cart -----

class CartItemRequest(BaseModel):
    food_item_id: int


class CartEntry(BaseModel):
    food_item_id: int
    quantity: int


class CartRead(BaseModel):
    items: List[CartEntry]


class CartView(CartRead):
    subtotal: Decimal  # advisory, at current catalog prices


# ----- Orders -----

class Address(BaseModel):
    first_name: Required
    last_name: Required
    email: EmailStr
    street: Required
    city: Required
    state: Required
    zipcode: Required
    country: Required
    phone: Required


class PlaceOrderRequest(BaseModel):
    address: Address
    delivery_fee: Optional[Decimal] = Field(None, ge=0, decimal_places=2)


class PlaceOrderResponse(BaseModel):
    order_id: int
    amount: Decimal
    redirect_url: str


class VerifyPaymentRequest(BaseModel):
    order_id: int
    success: bool


class VerifyPaymentResponse(BaseModel):
    order_id: int
    status: str
    success: bool


class AddressRead(BaseModel):
    first_name: str
    last_name: str
    email: str
    street: str
    city: str
    state: str
    zipcode: str
    country: str
    phone: str


class OrderItemRead(BaseModel):
    food_item_id: int
    name: str
    price: Decimal
    quantity: int

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    id: int
    user_id: int
    status: str
    amount: Decimal
    delivery_fee: Decimal
    payment_session_id: Optional[str]
    address: AddressRead
    items: List[OrderItemRead]
    created_at: datetime

    class Config:
        from_attributes = True
