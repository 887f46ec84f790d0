from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesflow.config import settings
from salesflow.errors import NotFound
from salesflow.models import Client, CommissionSetting, Order, Partner, PaymentMethod, Product, User, Vendor


def get_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFound('Product', product_id)
    return product


def get_client(db: Session, client_id: int) -> Client:
    client = db.get(Client, client_id)
    if not client or not client.active:
        raise NotFound('Client', client_id)
    return client


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound('User', user_id)
    return user


def get_order(db: Session, order_id: int, *, for_update: bool = False) -> Order:
    stmt = select(Order).where(Order.id == order_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    order = db.execute(stmt).scalar_one_or_none()
    if not order:
        raise NotFound('Order', order_id)
    return order


def get_payment_method(db: Session, payment_method_id: int | None) -> PaymentMethod | None:
    if payment_method_id is None:
        return None
    method = db.get(PaymentMethod, payment_method_id)
    if not method:
        raise NotFound('PaymentMethod', payment_method_id)
    return method


def get_vendor(db: Session, user_id: int) -> Vendor | None:
    return db.execute(select(Vendor).where(Vendor.user_id == user_id)).scalar_one_or_none()


def get_commission_settings(db: Session) -> CommissionSetting | None:
    return db.execute(select(CommissionSetting).order_by(CommissionSetting.id.desc()).limit(1)).scalar_one_or_none()


def get_vendor_commission_rate(db: Session, vendor_id: int) -> Decimal:
    vendor = get_vendor(db, vendor_id)
    if vendor and vendor.commission_rate is not None:
        return vendor.commission_rate
    commission_settings = get_commission_settings(db)
    if commission_settings:
        return commission_settings.vendor_commission_rate
    return settings.default_vendor_commission_rate


def get_partner_pool_rate(db: Session) -> Decimal:
    commission_settings = get_commission_settings(db)
    if commission_settings:
        return commission_settings.partner_commission_rate
    return settings.default_partner_pool_rate


def is_vendor_commissionable(db: Session, vendor_id: int) -> bool:
    vendor = get_vendor(db, vendor_id)
    # Users without a vendor profile (e.g. admins selling directly) earn nothing.
    return bool(vendor and vendor.active and vendor.commissionable)


def list_active_partners(db: Session) -> list[User]:
    return db.execute(
        select(User)
        .join(Partner, Partner.user_id == User.id)
        .where(Partner.active.is_(True), User.active.is_(True))
        .order_by(User.id.asc())
    ).scalars().all()
