from __future__ import annotations

from salesflow.models import AccountsReceivable, Budget, Commission, Order, Payment, ProductionOrder
from salesflow.money import to_money_string
from salesflow.services.budget_aggregation_service import BudgetTotals
from salesflow.services.commission_service import CommissionTotals
from salesflow.services.discount_guard_service import DiscountEvaluation
from salesflow.services.line_item_pricing_service import LineItemPricing


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def line_item_pricing_dict(pricing: LineItemPricing) -> dict:
    return {
        'unit_price': to_money_string(pricing.unit_price),
        'ideal_price': to_money_string(pricing.ideal_price),
        'minimum_price': to_money_string(pricing.minimum_price),
        'total_unit_cost': to_money_string(pricing.total_unit_cost),
        'base_total': to_money_string(pricing.base_total),
        'item_discount_amount': to_money_string(pricing.item_discount_amount),
        'total_price': to_money_string(pricing.total_price),
        'below_minimum': pricing.below_minimum,
        'shortfall': to_money_string(pricing.shortfall),
        'managed': pricing.managed,
    }


def discount_evaluation_dict(evaluation: DiscountEvaluation) -> dict:
    return {
        'items_subtotal': to_money_string(evaluation.items_subtotal),
        'minimum_total': to_money_string(evaluation.minimum_total),
        'discount_amount': to_money_string(evaluation.discount_amount),
        'discounted_total': to_money_string(evaluation.discounted_total),
        'total': to_money_string(evaluation.total),
        'requires_approval': evaluation.requires_approval,
        'discount_disabled': evaluation.discount_disabled,
        'shortfall': to_money_string(evaluation.shortfall),
        'items_below_minimum': [
            {
                'label': line.label,
                'unit_price': to_money_string(line.unit_price),
                'minimum_price': to_money_string(line.minimum_price),
                'shortfall': to_money_string(line.shortfall),
            }
            for line in evaluation.items_below_minimum
        ],
    }


def budget_totals_dict(totals: BudgetTotals) -> dict:
    return {
        'subtotal': to_money_string(totals.subtotal),
        'discount_amount': to_money_string(totals.discount_amount),
        'discounted_total': to_money_string(totals.discounted_total),
        'minimum_total': to_money_string(totals.minimum_total),
        'shipping': to_money_string(totals.shipping),
        'interest': to_money_string(totals.interest),
        'total': to_money_string(totals.total),
        'down_payment': to_money_string(totals.down_payment),
        'remaining': to_money_string(totals.remaining),
        'requires_approval': totals.requires_approval,
    }


def budget_dict(budget: Budget) -> dict:
    return {
        'id': budget.id,
        'budget_number': budget.budget_number,
        'status': budget.status.value,
        'vendor_id': budget.vendor_id,
        'client_id': budget.client_id,
        'title': budget.title,
        'contact_name': budget.contact_name,
        'items_subtotal': to_money_string(budget.items_subtotal),
        'discount_amount': to_money_string(budget.discount_amount),
        'minimum_total': to_money_string(budget.minimum_total),
        'total_value': to_money_string(budget.total_value),
        'requires_approval': budget.requires_approval,
        'rejection_reason': budget.rejection_reason,
        'approved_at': _iso(budget.approved_at),
        'items': [
            {
                'id': item.id,
                'product_id': item.product_id,
                'producer_id': item.producer_id,
                'quantity': str(item.quantity),
                'unit_price': to_money_string(item.unit_price),
                'minimum_price': to_money_string(item.minimum_price),
                'total_price': to_money_string(item.total_price),
            }
            for item in budget.items
        ],
    }


def order_dict(order: Order) -> dict:
    return {
        'id': order.id,
        'order_number': order.order_number,
        'budget_id': order.budget_id,
        'client_id': order.client_id,
        'vendor_id': order.vendor_id,
        'status': order.status.value,
        'total_value': to_money_string(order.total_value),
        'paid_value': to_money_string(order.paid_value),
        'down_payment': to_money_string(order.down_payment),
        'remaining_amount': to_money_string(order.remaining_amount),
        'shipping_cost': to_money_string(order.shipping_cost),
        'interest_amount': to_money_string(order.interest_amount),
        'deadline': _iso(order.deadline),
        'tracking_code': order.tracking_code,
    }


def receivable_dict(receivable: AccountsReceivable | None) -> dict | None:
    if receivable is None:
        return None
    return {
        'id': receivable.id,
        'order_id': receivable.order_id,
        'amount': to_money_string(receivable.amount),
        'received_amount': to_money_string(receivable.received_amount),
        'minimum_payment': to_money_string(receivable.minimum_payment),
        'status': receivable.status.value,
        'is_manual': receivable.is_manual,
        'due_date': _iso(receivable.due_date),
    }


def payment_dict(payment: Payment) -> dict:
    return {
        'id': payment.id,
        'order_id': payment.order_id,
        'receivable_id': payment.receivable_id,
        'amount': to_money_string(payment.amount),
        'method': payment.method,
        'status': payment.status.value,
    }


def commission_dict(commission: Commission) -> dict:
    return {
        'id': commission.id,
        'order_id': commission.order_id,
        'user_id': commission.user_id,
        'type': commission.type.value,
        'percentage': str(commission.percentage),
        'amount': to_money_string(commission.amount),
        'status': commission.status.value,
        'order_value': to_money_string(commission.order_value),
        'paid_at': _iso(commission.paid_at),
    }


def commission_totals_dict(totals: CommissionTotals) -> dict:
    return {
        'pending': to_money_string(totals.pending),
        'confirmed': to_money_string(totals.confirmed),
        'paid': to_money_string(totals.paid),
        'total': to_money_string(totals.total),
    }


def production_order_dict(production_order: ProductionOrder) -> dict:
    return {
        'id': production_order.id,
        'order_id': production_order.order_id,
        'producer_id': production_order.producer_id,
        'status': production_order.status.value,
        'item_count': len(production_order.items),
    }
