# schemas/order_definitions.py
# ============================================================================
# NUDE STOREFRONT v1.0 — ORDER SCHEMAS
# ============================================================================
# Order records as persisted in the repository, the create-order request
# body, and the slices of Mercado Pago responses the backend relies on.
# ============================================================================

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# SECTION 1: ENUMS
# ============================================================================

class OrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"


APPROVED = "approved"


# ============================================================================
# SECTION 2: ORDER RECORD
# ============================================================================

class LineItem(BaseModel):
    """One cart line. Frozen: items never change after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = Field(min_length=1)
    price: float = Field(ge=0, allow_inf_nan=False)
    quantity: int = Field(ge=1)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        if value is None:
            raise ValueError("item id is required")
        return str(value)

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity


class Customer(BaseModel):
    email: str = ""


class PaymentRecord(BaseModel):
    """Gateway payment as copied into the order on confirmation."""
    id: Union[int, str]
    status: str
    amount: Optional[float] = None
    method: Optional[str] = None


class Order(BaseModel):
    """
    Stored order document.

    Unknown keys in a stored record are kept so a read-modify-write never
    drops fields written by someone else.
    """
    model_config = ConfigDict(extra="allow")

    id: str
    status: OrderStatus = OrderStatus.CREATED
    created_at: datetime = Field(default_factory=utcnow)
    total: float = Field(allow_inf_nan=False)
    currency: str = "EUR"
    customer: Customer = Field(default_factory=Customer)
    items: List[LineItem] = Field(min_length=1)
    paid_at: Optional[datetime] = None
    payment: Optional[PaymentRecord] = None

    @staticmethod
    def generate_order_id() -> str:
        return str(uuid.uuid4())

    @classmethod
    def new(
        cls,
        items: List[LineItem],
        customer_email: str = "",
        currency: str = "EUR",
    ) -> "Order":
        return cls(
            id=cls.generate_order_id(),
            status=OrderStatus.CREATED,
            total=sum(item.subtotal for item in items),
            currency=currency,
            customer=Customer(email=customer_email),
            items=items,
        )

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID

    def mark_paid(self, payment: PaymentRecord) -> "Order":
        """Return a copy in the terminal `paid` state. Items are untouched."""
        return self.model_copy(update={
            "status": OrderStatus.PAID,
            "paid_at": utcnow(),
            "payment": payment,
        })

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True)

    def paid_fields(self) -> Dict[str, Any]:
        """The keys a confirmation writes, as JSON-ready values."""
        return self.model_dump(
            mode="json",
            include={"status", "paid_at", "payment"},
            exclude_none=True,
        )


# ============================================================================
# SECTION 3: CREATE-ORDER API
# ============================================================================

class CustomerInfo(BaseModel):
    email: Optional[str] = None


class CreateOrderRequest(BaseModel):
    """POST body of the create-order endpoint."""
    items: List[LineItem] = Field(default_factory=list)
    customer: Optional[CustomerInfo] = None

    @field_validator("items", mode="before")
    @classmethod
    def _items_must_be_list(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @model_validator(mode="after")
    def _total_must_be_finite(self) -> "CreateOrderRequest":
        if not math.isfinite(sum(item.subtotal for item in self.items)):
            raise ValueError("order total is out of range")
        return self

    @property
    def customer_email(self) -> str:
        if self.customer and self.customer.email:
            return self.customer.email
        return ""


class CreateOrderResponse(BaseModel):
    order_id: str
    checkout_url: str


# ============================================================================
# SECTION 4: PAYMENT GATEWAY PAYLOADS
# ============================================================================

class Preference(BaseModel):
    """Checkout preference returned by the gateway."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    init_point: Optional[str] = None
    sandbox_init_point: Optional[str] = None

    @property
    def checkout_url(self) -> Optional[str]:
        return self.init_point or self.sandbox_init_point


class Payment(BaseModel):
    """Payment as returned by GET /v1/payments/{id}."""
    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    status: str
    transaction_amount: Optional[float] = None
    payment_method_id: Optional[str] = None
    external_reference: Optional[str] = None

    @property
    def is_approved(self) -> bool:
        return self.status == APPROVED

    def to_record(self) -> PaymentRecord:
        return PaymentRecord(
            id=self.id,
            status=self.status,
            amount=self.transaction_amount,
            method=self.payment_method_id,
        )


class PaymentEvent(BaseModel):
    """
    Webhook notification body. The gateway sends either
    {"data": {"id": ...}} or a top-level {"id": ...}.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[Union[int, str]] = None
    data: Optional[Dict[str, Any]] = None

    @property
    def payment_id(self) -> Optional[str]:
        nested = (self.data or {}).get("id")
        value = nested or self.id
        if value in (None, ""):
            return None
        return str(value)


__all__ = [
    "OrderStatus",
    "APPROVED",
    "LineItem",
    "Customer",
    "PaymentRecord",
    "Order",
    "CustomerInfo",
    "CreateOrderRequest",
    "CreateOrderResponse",
    "Preference",
    "Payment",
    "PaymentEvent",
    "utcnow",
]
