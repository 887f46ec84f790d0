from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from salesflow.db import build_engine
from salesflow.models import (
    Base,
    BudgetStatus,
    Client,
    MarginTier,
    Order,
    OrderStatus,
    Partner,
    PaymentMethod,
    PricingSetting,
    Product,
    User,
    UserRole,
    Vendor,
)
from salesflow.services.budget_service import (
    BudgetDraft,
    BudgetItemDraft,
    admin_approve_budget,
    approve_budget,
    create_budget,
    submit_budget,
)
from salesflow.services.ledger_service import seed_order_receivable


def make_session_factory() -> sessionmaker:
    engine = build_engine('sqlite://')
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


def make_session() -> Session:
    return make_session_factory()()


def count(db: Session, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def add_user(db: Session, username: str, role: UserRole = UserRole.VENDOR, *, active: bool = True) -> User:
    user = User(username=username, name=username.title(), role=role, active=active)
    db.add(user)
    db.flush()
    return user


def add_vendor(
    db: Session,
    username: str = 'vendor',
    *,
    commission_rate: Decimal | None = None,
    commissionable: bool = True,
) -> User:
    user = add_user(db, username, UserRole.VENDOR)
    db.add(Vendor(user_id=user.id, commission_rate=commission_rate, commissionable=commissionable, active=True))
    db.flush()
    return user


def add_partner(db: Session, username: str, *, active: bool = True) -> User:
    user = add_user(db, username, UserRole.PARTNER)
    db.add(Partner(user_id=user.id, active=active))
    db.flush()
    return user


def add_client(db: Session, name: str = 'Acme Events') -> Client:
    client = Client(name=name, email='buyer@acme.test', phone='555-0100', address='1 Main St', active=True)
    db.add(client)
    db.flush()
    return client


def add_product(db: Session, cost: str = '100.00', *, producer_id: str | None = None, name: str = 'Tote bag') -> Product:
    product = Product(name=name, cost_price=Decimal(cost), producer_id=producer_id, active=True)
    db.add(product)
    db.flush()
    return product


def add_pricing(
    db: Session,
    tiers: tuple[tuple[str, str], ...] = (('0', '30'),),
    *,
    minimum_margin: str = '10',
    allow_unmanaged_fallback: bool = False,
) -> PricingSetting:
    row = PricingSetting(
        minimum_margin_rate=Decimal(minimum_margin),
        allow_unmanaged_fallback=allow_unmanaged_fallback,
        active=True,
    )
    db.add(row)
    db.flush()
    for position, (threshold, rate) in enumerate(tiers):
        db.add(
            MarginTier(
                settings_id=row.id,
                min_revenue=Decimal(threshold),
                margin_rate=Decimal(rate),
                display_order=position,
            )
        )
    db.flush()
    return row


def add_payment_method(
    db: Session,
    method_type: str = 'credit_card',
    *,
    interest: str = '2.00',
    max_installments: int = 12,
) -> PaymentMethod:
    method = PaymentMethod(
        name=method_type.replace('_', ' ').title(),
        type=method_type,
        max_installments=max_installments,
        installment_interest=Decimal(interest),
    )
    db.add(method)
    db.flush()
    return method


def item(product: Product, quantity: str = '1', **kwargs) -> BudgetItemDraft:
    return BudgetItemDraft(product_id=product.id, quantity=Decimal(quantity), **kwargs)


def draft(*items: BudgetItemDraft, **kwargs) -> BudgetDraft:
    kwargs.setdefault('title', 'Conference kit')
    kwargs.setdefault('contact_name', 'Jane Buyer')
    return BudgetDraft(items=tuple(items), **kwargs)


def approved_budget(db: Session, vendor: User, *items: BudgetItemDraft, admin: User | None = None, **kwargs):
    budget = create_budget(db, vendor_id=vendor.id, draft=draft(*items, **kwargs))
    submit_budget(db, budget.id)
    if budget.status == BudgetStatus.AWAITING_APPROVAL:
        admin_approve_budget(db, budget.id, approver_id=(admin or vendor).id)
    else:
        approve_budget(db, budget.id)
    return budget


def add_order(
    db: Session,
    vendor: User,
    client: Client,
    *,
    total: str = '1000.00',
    down_payment: str = '0.00',
    shipping: str = '0.00',
    status: OrderStatus = OrderStatus.PENDING,
    number: str = 'PED-2501-000001',
) -> Order:
    order = Order(
        order_number=number,
        client_id=client.id,
        vendor_id=vendor.id,
        title='Direct order',
        contact_name=client.name,
        total_value=Decimal(total),
        down_payment=Decimal(down_payment),
        shipping_cost=Decimal(shipping),
        status=status,
    )
    db.add(order)
    db.flush()
    seed_order_receivable(db, order)
    return order
