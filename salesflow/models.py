from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
BigIntPK = BigInteger().with_variant(Integer(), 'sqlite')

Money = Numeric(14, 2)
Rate = Numeric(7, 2)


class Base(DeclarativeBase):
    pass


class UserRole(str, Enum):
    ADMIN = 'ADMIN'
    VENDOR = 'VENDOR'
    CLIENT = 'CLIENT'
    PRODUCER = 'PRODUCER'
    FINANCE = 'FINANCE'
    PARTNER = 'PARTNER'


class BudgetStatus(str, Enum):
    DRAFT = 'DRAFT'
    SENT = 'SENT'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'
    AWAITING_APPROVAL = 'AWAITING_APPROVAL'
    ADMIN_APPROVED = 'ADMIN_APPROVED'
    NOT_APPROVED = 'NOT_APPROVED'
    CONVERTED = 'CONVERTED'


class DiscountType(str, Enum):
    NONE = 'NONE'
    PERCENTAGE = 'PERCENTAGE'
    FIXED = 'FIXED'


class DeliveryType(str, Enum):
    DELIVERY = 'DELIVERY'
    PICKUP = 'PICKUP'


class PriceSource(str, Enum):
    COMPUTED = 'COMPUTED'
    MANUAL = 'MANUAL'


class OrderStatus(str, Enum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    PRODUCTION = 'PRODUCTION'
    SHIPPED = 'SHIPPED'
    DELIVERED = 'DELIVERED'
    CANCELLED = 'CANCELLED'


class ProductionOrderStatus(str, Enum):
    PENDING = 'PENDING'
    ACCEPTED = 'ACCEPTED'
    PRODUCTION = 'PRODUCTION'
    COMPLETED = 'COMPLETED'
    REJECTED = 'REJECTED'


class CommissionType(str, Enum):
    VENDOR = 'VENDOR'
    PARTNER = 'PARTNER'


class CommissionStatus(str, Enum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    PAID = 'PAID'
    CANCELLED = 'CANCELLED'


class ReceivableStatus(str, Enum):
    PENDING = 'PENDING'
    OPEN = 'OPEN'
    PARTIAL = 'PARTIAL'
    PAID = 'PAID'
    OVERDUE = 'OVERDUE'
    CANCELLED = 'CANCELLED'


class PaymentStatus(str, Enum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    FAILED = 'FAILED'


class User(Base):
    __tablename__ = 'users'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    username: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(Text)
    role: Mapped[UserRole] = mapped_column(SQLEnum(UserRole, name='user_role'), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Vendor(Base):
    __tablename__ = 'vendors'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id'), nullable=False, unique=True)
    commission_rate: Mapped[Decimal | None] = mapped_column(Rate)
    commissionable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')


class Partner(Base):
    __tablename__ = 'partners'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id'), nullable=False, unique=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Client(Base):
    __tablename__ = 'clients'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(Text)
    address: Mapped[str | None] = mapped_column(Text)
    tax_id: Mapped[str | None] = mapped_column(Text)
    vendor_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('users.id'))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Product(Base):
    __tablename__ = 'products'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(Text)
    cost_price: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    base_price: Mapped[Decimal | None] = mapped_column(Money)
    producer_id: Mapped[str | None] = mapped_column(String(64))
    width: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    height: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    depth: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')


class PricingSetting(Base):
    __tablename__ = 'pricing_settings'
    __table_args__ = (
        CheckConstraint('minimum_margin_rate >= 0 AND minimum_margin_rate < 100', name='ck_pricing_minimum_margin'),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    minimum_margin_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False, default=Decimal('0.00'), server_default='0')
    commission_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False, default=Decimal('0.00'), server_default='0')
    allow_unmanaged_fallback: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default='false'
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class MarginTier(Base):
    __tablename__ = 'margin_tiers'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    settings_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey('pricing_settings.id', ondelete='CASCADE'), nullable=False
    )
    min_revenue: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    margin_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')


class CommissionSetting(Base):
    __tablename__ = 'commission_settings'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    vendor_commission_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False, default=Decimal('10.00'))
    partner_commission_rate: Mapped[Decimal] = mapped_column(Rate, nullable=False, default=Decimal('15.00'))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class PaymentMethod(Base):
    __tablename__ = 'payment_methods'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    max_installments: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default='1')
    installment_interest: Mapped[Decimal] = mapped_column(
        Rate, nullable=False, default=Decimal('0.00'), server_default='0'
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')


class NumberSequence(Base):
    __tablename__ = 'number_sequences'

    name: Mapped[str] = mapped_column(String(32), primary_key=True)
    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0, server_default='0')


class Budget(Base):
    __tablename__ = 'budgets'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    budget_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    vendor_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id'), nullable=False)
    client_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('clients.id'))
    contact_name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_phone: Mapped[str | None] = mapped_column(Text)
    contact_email: Mapped[str | None] = mapped_column(Text)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[BudgetStatus] = mapped_column(
        SQLEnum(BudgetStatus, name='budget_status'), nullable=False, default=BudgetStatus.DRAFT, server_default='DRAFT'
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        SQLEnum(DiscountType, name='discount_type'), nullable=False, default=DiscountType.NONE, server_default='NONE'
    )
    discount_value: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    delivery_type: Mapped[DeliveryType] = mapped_column(
        SQLEnum(DeliveryType, name='delivery_type'),
        nullable=False,
        default=DeliveryType.DELIVERY,
        server_default='DELIVERY',
    )
    shipping_cost: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    items_subtotal: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    discount_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    minimum_total: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    total_value: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    valid_until: Mapped[date | None] = mapped_column(Date)
    delivery_deadline: Mapped[date | None] = mapped_column(Date)
    approved_by_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('users.id'))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    converted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    items: Mapped[list[BudgetItem]] = relationship(
        back_populates='budget', cascade='all, delete-orphan', order_by='BudgetItem.position'
    )
    payment_info: Mapped[BudgetPaymentInfo | None] = relationship(
        back_populates='budget', cascade='all, delete-orphan', uselist=False
    )


class BudgetItem(Base):
    __tablename__ = 'budget_items'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    budget_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('budgets.id', ondelete='CASCADE'), nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('products.id'), nullable=False)
    # 'internal' or a producer user id; translated through producer_ref.
    producer_id: Mapped[str | None] = mapped_column(String(64))
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    unit_price: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    ideal_price: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    minimum_price: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    price_source: Mapped[PriceSource] = mapped_column(
        SQLEnum(PriceSource, name='price_source'), nullable=False, default=PriceSource.COMPUTED, server_default='COMPUTED'
    )
    customization_value: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal('0.00'), server_default='0'
    )
    customization_description: Mapped[str | None] = mapped_column(Text)
    general_customization_value: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal('0.00'), server_default='0'
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        SQLEnum(DiscountType, name='discount_type'), nullable=False, default=DiscountType.NONE, server_default='NONE'
    )
    discount_value: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    total_price: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    width: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    height: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    depth: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    notes: Mapped[str | None] = mapped_column(Text)

    budget: Mapped[Budget] = relationship(back_populates='items')


class BudgetPaymentInfo(Base):
    __tablename__ = 'budget_payment_info'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    budget_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey('budgets.id', ondelete='CASCADE'), nullable=False, unique=True
    )
    payment_method_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('payment_methods.id'))
    installments: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default='1')
    # NULL means the vendor did not set one; the aggregator defaults it.
    down_payment: Mapped[Decimal | None] = mapped_column(Money)
    interest_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    remaining_amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal('0.00'), server_default='0'
    )

    budget: Mapped[Budget] = relationship(back_populates='payment_info')


class Order(Base):
    __tablename__ = 'orders'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    budget_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('budgets.id'), unique=True)
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('clients.id'), nullable=False)
    vendor_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id'), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    contact_name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_phone: Mapped[str | None] = mapped_column(Text)
    contact_email: Mapped[str | None] = mapped_column(Text)
    contact_address: Mapped[str | None] = mapped_column(Text)
    payment_method_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('payment_methods.id'))
    installments: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default='1')
    delivery_type: Mapped[DeliveryType] = mapped_column(
        SQLEnum(DeliveryType, name='delivery_type'),
        nullable=False,
        default=DeliveryType.DELIVERY,
        server_default='DELIVERY',
    )
    discount_type: Mapped[DiscountType] = mapped_column(
        SQLEnum(DiscountType, name='discount_type'), nullable=False, default=DiscountType.NONE, server_default='NONE'
    )
    discount_value: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    discount_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    shipping_cost: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    interest_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    down_payment: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    remaining_amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal('0.00'), server_default='0'
    )
    total_value: Mapped[Decimal] = mapped_column(Money, nullable=False)
    paid_value: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name='order_status'), nullable=False, default=OrderStatus.PENDING, server_default='PENDING'
    )
    deadline: Mapped[date | None] = mapped_column(Date)
    tracking_code: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ProductionOrder(Base):
    __tablename__ = 'production_orders'
    __table_args__ = (UniqueConstraint('order_id', 'producer_id', name='uq_production_orders_order_producer'),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    producer_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id'), nullable=False)
    status: Mapped[ProductionOrderStatus] = mapped_column(
        SQLEnum(ProductionOrderStatus, name='production_order_status'),
        nullable=False,
        default=ProductionOrderStatus.PENDING,
        server_default='PENDING',
    )
    deadline: Mapped[date | None] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    items: Mapped[list[ProductionOrderItem]] = relationship(
        back_populates='production_order', cascade='all, delete-orphan', order_by='ProductionOrderItem.id'
    )


class ProductionOrderItem(Base):
    __tablename__ = 'production_order_items'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    production_order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey('production_orders.id', ondelete='CASCADE'), nullable=False
    )
    budget_item_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('budget_items.id'), nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('products.id'), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    customization_value: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal('0.00'), server_default='0'
    )
    customization_description: Mapped[str | None] = mapped_column(Text)
    width: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    height: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    depth: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    notes: Mapped[str | None] = mapped_column(Text)

    production_order: Mapped[ProductionOrder] = relationship(back_populates='items')


class Commission(Base):
    __tablename__ = 'commissions'
    __table_args__ = (UniqueConstraint('order_id', 'user_id', 'type', name='uq_commissions_order_payee'),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('users.id'), nullable=False)
    type: Mapped[CommissionType] = mapped_column(SQLEnum(CommissionType, name='commission_type'), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(Numeric(9, 6), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    status: Mapped[CommissionStatus] = mapped_column(
        SQLEnum(CommissionStatus, name='commission_status'),
        nullable=False,
        default=CommissionStatus.PENDING,
        server_default='PENDING',
    )
    order_value: Mapped[Decimal] = mapped_column(Money, nullable=False)
    order_number: Mapped[str | None] = mapped_column(String(32))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AccountsReceivable(Base):
    __tablename__ = 'accounts_receivable'

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('orders.id', ondelete='CASCADE'), unique=True)
    client_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('clients.id'))
    vendor_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('users.id'))
    description: Mapped[str | None] = mapped_column(Text)
    due_date: Mapped[date | None] = mapped_column(Date)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    received_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    minimum_payment: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal('0.00'), server_default='0')
    status: Mapped[ReceivableStatus] = mapped_column(
        SQLEnum(ReceivableStatus, name='receivable_status'),
        nullable=False,
        default=ReceivableStatus.PENDING,
        server_default='PENDING',
    )
    is_manual: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Payment(Base):
    __tablename__ = 'payments'
    __table_args__ = (CheckConstraint('amount > 0', name='ck_payments_amount_positive'),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('orders.id'))
    receivable_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('accounts_receivable.id'))
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    method: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name='payment_status'),
        nullable=False,
        default=PaymentStatus.CONFIRMED,
        server_default='CONFIRMED',
    )
    transaction_id: Mapped[str | None] = mapped_column(Text)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
