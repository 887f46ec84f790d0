from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesflow import money
from salesflow.config import settings
from salesflow.errors import BudgetLocked, NotApproved, NotFound, ValidationError
from salesflow.models import (
    Budget,
    BudgetItem,
    BudgetPaymentInfo,
    BudgetStatus,
    DeliveryType,
    DiscountType,
    PaymentMethod,
    PriceSource,
    Product,
)
from salesflow.services.budget_aggregation_service import BudgetInput, BudgetTotals, aggregate_budget_total
from salesflow.services.directory_service import get_client, get_payment_method, get_product, get_user
from salesflow.services.discount_guard_service import BudgetDiscount, GuardLine
from salesflow.services.line_item_pricing_service import (
    LineItemInput,
    LineItemPricing,
    price_line_item,
    running_revenue_excluding,
)
from salesflow.services.margin_pricing_service import PricingSettings, load_pricing_settings
from salesflow.services.producer_ref import producer_ref_from_column, producer_ref_to_column
from salesflow.services.sequence_service import allocate_document_number
from salesflow.state_machines import BUDGET_EDITABLE_STATES, BUDGET_MACHINE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetItemDraft:
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


@dataclass(frozen=True)
class BudgetDraft:
    title: str
    contact_name: str
    items: tuple[BudgetItemDraft, ...]
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


@dataclass(frozen=True)
class PricedItem:
    draft: BudgetItemDraft
    product: Product
    unit_cost: Decimal
    pricing: LineItemPricing


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _clean(value: str | None) -> str | None:
    cleaned = (value or '').strip()
    return cleaned or None


def _validate_draft(draft: BudgetDraft) -> None:
    if not _clean(draft.title):
        raise ValidationError('Budget title is required')
    if not _clean(draft.contact_name):
        raise ValidationError('Contact name is required')
    if not draft.items:
        raise ValidationError('A budget needs at least one item')
    if draft.installments < 1:
        raise ValidationError('Installments must be at least 1')


def _line_input(draft: BudgetItemDraft) -> LineItemInput:
    return LineItemInput(
        quantity=money.to_decimal(draft.quantity),
        price_source=draft.price_source,
        manual_unit_price=draft.unit_price,
        customization_value=money.to_decimal(draft.customization_value),
        general_customization_value=money.to_decimal(draft.general_customization_value),
        discount_type=draft.discount_type,
        discount_value=money.to_decimal(draft.discount_value),
    )


def price_budget_items(
    db: Session,
    drafts: tuple[BudgetItemDraft, ...],
    *,
    pricing_settings: PricingSettings | None = None,
) -> list[PricedItem]:
    """Price every line against the revenue of the other lines.

    A first pass prices each line with no surrounding revenue to get
    provisional unit prices; the second pass prices each line with
    ``running_revenue_excluding`` over those provisional prices, so the result
    does not depend on the order the lines were entered in.
    """
    if pricing_settings is None:
        pricing_settings = load_pricing_settings(db)

    products = [get_product(db, d.product_id) for d in drafts]
    costs = [money.to_decimal(p.cost_price) for p in products]
    inputs = [_line_input(d) for d in drafts]

    provisional = [
        price_line_item(item, cost, Decimal('0'), pricing_settings) for item, cost in zip(inputs, costs)
    ]
    pairs = [(p.unit_price, item.quantity) for p, item in zip(provisional, inputs)]

    priced: list[PricedItem] = []
    for index, (draft, product, cost, item) in enumerate(zip(drafts, products, costs, inputs)):
        pricing = price_line_item(item, cost, running_revenue_excluding(pairs, index), pricing_settings)
        priced.append(PricedItem(draft=draft, product=product, unit_cost=cost, pricing=pricing))
    return priced


def _item_row(priced: PricedItem, position: int) -> BudgetItem:
    draft = priced.draft
    raw_producer = draft.producer_id if draft.producer_id is not None else priced.product.producer_id
    return BudgetItem(
        product_id=priced.product.id,
        producer_id=producer_ref_to_column(producer_ref_from_column(raw_producer)),
        position=position,
        quantity=money.to_decimal(draft.quantity),
        unit_cost=money.quantize_money(priced.unit_cost),
        unit_price=priced.pricing.unit_price,
        ideal_price=priced.pricing.ideal_price,
        minimum_price=priced.pricing.minimum_price,
        price_source=draft.price_source,
        customization_value=money.quantize_money(draft.customization_value),
        customization_description=_clean(draft.customization_description),
        general_customization_value=money.quantize_money(draft.general_customization_value),
        discount_type=draft.discount_type,
        discount_value=money.quantize_money(draft.discount_value),
        total_price=priced.pricing.total_price,
        width=draft.width,
        height=draft.height,
        depth=draft.depth,
        notes=_clean(draft.notes),
    )


def guard_lines_for(budget: Budget) -> tuple[GuardLine, ...]:
    # Stored minimum prices already include customization.
    return tuple(
        GuardLine(
            unit_price=item.unit_price,
            quantity=item.quantity,
            total_price=item.total_price,
            minimum_price=item.minimum_price,
            label=f'item {item.position + 1}',
        )
        for item in budget.items
    )


def budget_input_for(db: Session, budget: Budget) -> BudgetInput:
    info = budget.payment_info
    method: PaymentMethod | None = None
    if info and info.payment_method_id is not None:
        method = db.get(PaymentMethod, info.payment_method_id)
    return BudgetInput(
        lines=guard_lines_for(budget),
        discount=BudgetDiscount(discount_type=budget.discount_type, value=budget.discount_value),
        delivery_type=budget.delivery_type,
        shipping_cost=budget.shipping_cost,
        payment_method_type=method.type if method else None,
        monthly_interest_rate=method.installment_interest if method else Decimal('0'),
        installments=info.installments if info else 1,
        down_payment=info.down_payment if info else None,
    )


def refresh_budget_totals(db: Session, budget: Budget) -> BudgetTotals:
    totals = aggregate_budget_total(budget_input_for(db, budget))
    budget.items_subtotal = totals.subtotal
    budget.discount_amount = totals.discount_amount
    budget.minimum_total = totals.minimum_total
    budget.total_value = totals.total
    budget.requires_approval = totals.requires_approval
    if budget.payment_info:
        budget.payment_info.interest_amount = totals.interest
        budget.payment_info.remaining_amount = totals.remaining
    budget.updated_at = _now()
    return totals


def get_budget(db: Session, budget_id: int, *, for_update: bool = False) -> Budget:
    stmt = select(Budget).where(Budget.id == budget_id)
    if for_update:
        stmt = stmt.with_for_update()
    budget = db.execute(stmt).scalar_one_or_none()
    if not budget:
        raise NotFound('Budget', budget_id)
    return budget


def compute_budget_totals(db: Session, budget_id: int) -> BudgetTotals:
    return aggregate_budget_total(budget_input_for(db, get_budget(db, budget_id)))


def _apply_draft(db: Session, budget: Budget, draft: BudgetDraft) -> None:
    _validate_draft(draft)
    if draft.client_id is not None:
        get_client(db, draft.client_id)
    method = get_payment_method(db, draft.payment_method_id)
    if method and draft.installments > method.max_installments:
        raise ValidationError(f'{method.name} allows at most {method.max_installments} installments')

    priced = price_budget_items(db, draft.items)

    budget.client_id = draft.client_id
    budget.title = _clean(draft.title)
    budget.description = _clean(draft.description)
    budget.contact_name = _clean(draft.contact_name)
    budget.contact_phone = _clean(draft.contact_phone)
    budget.contact_email = _clean(draft.contact_email)
    budget.discount_type = draft.discount_type
    budget.discount_value = money.quantize_money(draft.discount_value)
    budget.delivery_type = draft.delivery_type
    budget.shipping_cost = money.quantize_money(draft.shipping_cost)
    budget.valid_until = draft.valid_until
    budget.delivery_deadline = draft.delivery_deadline

    budget.items.clear()
    for position, item in enumerate(priced):
        budget.items.append(_item_row(item, position))

    info = budget.payment_info or BudgetPaymentInfo()
    info.payment_method_id = draft.payment_method_id
    info.installments = draft.installments
    info.down_payment = money.quantize_money(draft.down_payment) if draft.down_payment is not None else None
    budget.payment_info = info


def create_budget(db: Session, *, vendor_id: int, draft: BudgetDraft, at: datetime | None = None) -> Budget:
    get_user(db, vendor_id)
    budget = Budget(
        budget_number=allocate_document_number(
            db, prefix=settings.budget_number_prefix, column=Budget.budget_number, at=at
        ),
        vendor_id=vendor_id,
        status=BudgetStatus.DRAFT,
    )
    _apply_draft(db, budget, draft)
    db.add(budget)
    totals = refresh_budget_totals(db, budget)
    db.flush()
    logger.info(
        'budget_created',
        extra={
            'budget_id': budget.id,
            'budget_number': budget.budget_number,
            'total': totals.total,
            'requires_approval': totals.requires_approval,
        },
    )
    return budget


def update_budget(db: Session, budget_id: int, *, draft: BudgetDraft) -> Budget:
    budget = get_budget(db, budget_id, for_update=True)
    if budget.status not in BUDGET_EDITABLE_STATES:
        raise BudgetLocked(f'Budget {budget.budget_number} is {budget.status.value} and can no longer be edited')
    _apply_draft(db, budget, draft)
    refresh_budget_totals(db, budget)
    db.flush()
    return budget


def submit_budget(db: Session, budget_id: int) -> Budget:
    """Send a budget to the client, or to an administrator when it breaks the price floor."""
    budget = get_budget(db, budget_id, for_update=True)
    totals = refresh_budget_totals(db, budget)
    target = BudgetStatus.AWAITING_APPROVAL if totals.requires_approval else BudgetStatus.SENT
    BUDGET_MACHINE.assert_transition(budget.status, target)
    budget.status = target
    db.flush()
    logger.info('budget_submitted', extra={'budget_id': budget.id, 'status': target.value})
    return budget


def approve_budget(db: Session, budget_id: int) -> Budget:
    budget = get_budget(db, budget_id, for_update=True)
    if budget.requires_approval:
        raise NotApproved(f'Budget {budget.budget_number} is below its minimum price and needs administrator approval')
    BUDGET_MACHINE.assert_transition(budget.status, BudgetStatus.APPROVED)
    budget.status = BudgetStatus.APPROVED
    budget.updated_at = _now()
    db.flush()
    return budget


def reject_budget(db: Session, budget_id: int, *, reason: str | None = None) -> Budget:
    budget = get_budget(db, budget_id, for_update=True)
    BUDGET_MACHINE.assert_transition(budget.status, BudgetStatus.REJECTED)
    budget.status = BudgetStatus.REJECTED
    budget.rejection_reason = _clean(reason)
    budget.updated_at = _now()
    db.flush()
    return budget


def admin_approve_budget(db: Session, budget_id: int, *, approver_id: int) -> Budget:
    budget = get_budget(db, budget_id, for_update=True)
    BUDGET_MACHINE.assert_transition(budget.status, BudgetStatus.ADMIN_APPROVED)
    budget.status = BudgetStatus.ADMIN_APPROVED
    budget.approved_by_id = approver_id
    budget.approved_at = _now()
    budget.rejection_reason = None
    budget.updated_at = budget.approved_at
    db.flush()
    logger.info(
        'budget_admin_approved',
        extra={'budget_id': budget.id, 'approver_id': approver_id, 'total': budget.total_value},
    )
    return budget


def admin_reject_budget(db: Session, budget_id: int, *, approver_id: int, reason: str | None = None) -> Budget:
    budget = get_budget(db, budget_id, for_update=True)
    BUDGET_MACHINE.assert_transition(budget.status, BudgetStatus.NOT_APPROVED)
    budget.status = BudgetStatus.NOT_APPROVED
    budget.approved_by_id = approver_id
    budget.approved_at = None
    budget.rejection_reason = _clean(reason)
    budget.updated_at = _now()
    db.flush()
    logger.info('budget_admin_rejected', extra={'budget_id': budget.id, 'approver_id': approver_id})
    return budget


def list_budgets_awaiting_approval(db: Session) -> list[Budget]:
    return db.execute(
        select(Budget)
        .where(Budget.status == BudgetStatus.AWAITING_APPROVAL)
        .order_by(Budget.updated_at.asc(), Budget.id.asc())
    ).scalars().all()
