"""Request bodies for the JSON API.

Money fields are ``Decimal`` so values arrive exactly as sent; range checks
live in the services so every rule answers with the same error codes.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from salesflow.models import (
    DeliveryType,
    DiscountType,
    OrderStatus,
    PaymentStatus,
    PriceSource,
    ProductionOrderStatus,
)


class MarginTierPayload(BaseModel):
    threshold: Decimal = Field(Decimal('0'), description='Running revenue from which the tier applies')
    margin_rate: Decimal


class PricingSettingsPayload(BaseModel):
    tiers: list[MarginTierPayload]
    minimum_margin_rate: Decimal
    tax_rate: Decimal = Decimal('0')
    commission_rate: Decimal = Decimal('0')
    allow_unmanaged_fallback: bool = False


class LineItemPricingRequest(BaseModel):
    cost: Decimal
    quantity: Decimal
    running_revenue: Decimal = Decimal('0')
    price_source: PriceSource = PriceSource.COMPUTED
    unit_price: Decimal | None = None
    customization_value: Decimal = Decimal('0')
    general_customization_value: Decimal = Decimal('0')
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal('0')
    pricing: PricingSettingsPayload | None = Field(
        None, description='Inline settings; the stored pricing settings are used when omitted'
    )


class GuardLinePayload(BaseModel):
    unit_price: Decimal
    quantity: Decimal
    total_price: Decimal
    minimum_price: Decimal = Decimal('0')
    base_price_with_margin: Decimal = Decimal('0')
    customization_per_unit: Decimal = Decimal('0')
    label: str | None = None


class DiscountRequest(BaseModel):
    items: list[GuardLinePayload]
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal('0')


class BudgetItemPayload(BaseModel):
    product_id: int
    quantity: Decimal
    producer_id: str | None = None
    price_source: PriceSource = PriceSource.COMPUTED
    unit_price: Decimal | None = None
    customization_value: Decimal = Decimal('0')
    customization_description: str | None = None
    general_customization_value: Decimal = Decimal('0')
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal('0')
    width: Decimal | None = None
    height: Decimal | None = None
    depth: Decimal | None = None
    notes: str | None = None


class BudgetPayload(BaseModel):
    title: str
    contact_name: str
    items: list[BudgetItemPayload]
    client_id: int | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    description: str | None = None
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Decimal('0')
    delivery_type: DeliveryType = DeliveryType.DELIVERY
    shipping_cost: Decimal = Decimal('0')
    payment_method_id: int | None = None
    installments: int = 1
    down_payment: Decimal | None = None
    valid_until: date | None = None
    delivery_deadline: date | None = None


class ReasonPayload(BaseModel):
    reason: str | None = None


class ConvertPayload(BaseModel):
    client_id: int | None = None
    delivery_date: date | None = None


class PaymentPayload(BaseModel):
    amount: Decimal
    method: str
    transaction_id: str | None = None
    paid_at: datetime | None = None


class PaymentStatusPayload(BaseModel):
    status: PaymentStatus


class OrderStatusPayload(BaseModel):
    status: OrderStatus
    tracking_code: str | None = None


class OrderValuePayload(BaseModel):
    total_value: Decimal


class ProductionOrderStatusPayload(BaseModel):
    status: ProductionOrderStatus


class ManualReceivablePayload(BaseModel):
    amount: Decimal
    description: str
    client_id: int | None = None
    vendor_id: int | None = None
    due_date: date | None = None
    minimum_payment: Decimal = Decimal('0')
