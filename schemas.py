"""
Database Schemas for PlantBay

Each Pydantic model describes a document stored in MongoDB:
- Account   -> "users"
- Plant     -> "plants"
- Order     -> "orders"

Documents sent by the client are stored as given, so the models allow
extra fields on top of the ones listed here.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

DELIVERED = "Delivered"


class SessionPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: EmailStr = Field(..., description="Email the session is bound to")


class AccountProfile(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(None, description="Display name")
    image: Optional[str] = Field(None, description="Avatar URL")


class Account(AccountProfile):
    email: str = Field(..., description="Email address, unique per account")
    role: str = Field("customer", description="customer | seller | admin")


class RoleUpdate(BaseModel):
    role: Literal["customer", "seller", "admin"]


class SellerInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., description="Seller email")
    name: Optional[str] = None
    image: Optional[str] = None


class Plant(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Plant name")
    category: Optional[str] = Field(None, description="Indoor, Outdoor, Succulent...")
    description: Optional[str] = None
    price: float = Field(..., ge=0, description="Unit price")
    quantity: int = Field(0, description="Units in stock")
    image: Optional[str] = Field(None, description="Image URL")
    seller: Optional[SellerInfo] = None


class QuantityUpdate(BaseModel):
    quantityToUpdate: int = Field(..., description="Amount to add or remove")
    status: str = Field("decrease", description="increase adds, anything else removes")


class BuyerInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., description="Buyer email")
    name: Optional[str] = None
    image: Optional[str] = None


class PlantInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    plantId: str = Field(..., description="Referenced plant _id as string")
    totalQuantity: int = Field(..., description="Units purchased")
    price: Optional[float] = Field(None, description="Price at time of order")


class Order(BaseModel):
    model_config = ConfigDict(extra="allow")

    userInfo: BuyerInfo
    plantInfo: PlantInfo
    seller: Optional[str] = Field(None, description="Seller email")
    status: str = Field("Pending", description="Pending, Processing, Shipped, Delivered...")


class StatusUpdate(BaseModel):
    status: str
