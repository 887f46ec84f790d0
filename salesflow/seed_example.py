from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from salesflow.db import SessionLocal, engine
from salesflow.models import (
    Base,
    CommissionSetting,
    MarginTier,
    Partner,
    PaymentMethod,
    PricingSetting,
    Product,
    User,
    UserRole,
    Vendor,
)


def _user(db: Session, username: str, name: str, role: UserRole) -> User:
    user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if not user:
        user = User(username=username, name=name, role=role, active=True)
        db.add(user)
        db.flush()
    return user


def seed_into(db: Session) -> None:
    _user(db, 'admin', 'Administrator', UserRole.ADMIN)
    _user(db, 'finance', 'Finance Desk', UserRole.FINANCE)

    vendor_user = _user(db, 'vendor1', 'Demo Vendor', UserRole.VENDOR)
    if not db.execute(select(Vendor).where(Vendor.user_id == vendor_user.id)).scalar_one_or_none():
        db.add(Vendor(user_id=vendor_user.id, commission_rate=None, commissionable=True, active=True))

    for username, name in (('partner1', 'Partner One'), ('partner2', 'Partner Two')):
        partner_user = _user(db, username, name, UserRole.PARTNER)
        if not db.execute(select(Partner).where(Partner.user_id == partner_user.id)).scalar_one_or_none():
            db.add(Partner(user_id=partner_user.id, active=True))

    producer = _user(db, 'producer1', 'Demo Workshop', UserRole.PRODUCER)

    pricing = db.execute(select(PricingSetting).where(PricingSetting.active.is_(True))).scalars().first()
    if not pricing:
        pricing = PricingSetting(minimum_margin_rate=Decimal('20.00'), active=True)
        db.add(pricing)
        db.flush()
        for position, (threshold, rate) in enumerate(
            ((Decimal('0'), Decimal('28.00')), (Decimal('10000'), Decimal('25.00')), (Decimal('50000'), Decimal('22.00')))
        ):
            db.add(MarginTier(settings_id=pricing.id, min_revenue=threshold, margin_rate=rate, display_order=position))

    if not db.execute(select(CommissionSetting)).scalars().first():
        db.add(CommissionSetting(vendor_commission_rate=Decimal('10.00'), partner_commission_rate=Decimal('15.00')))

    if not db.execute(select(PaymentMethod)).scalars().first():
        db.add_all(
            [
                PaymentMethod(name='PIX', type='pix', max_installments=1),
                PaymentMethod(
                    name='Credit card', type='credit_card', max_installments=12, installment_interest=Decimal('2.99')
                ),
                PaymentMethod(name='Bank slip', type='boleto', max_installments=3),
            ]
        )

    if not db.execute(select(Product)).scalars().first():
        db.add_all(
            [
                Product(name='Branded mug', category='Drinkware', cost_price=Decimal('12.50'), producer_id='internal'),
                Product(name='Printed t-shirt', category='Apparel', cost_price=Decimal('24.00'), producer_id=str(producer.id)),
            ]
        )

    db.flush()


def seed() -> None:
    Base.metadata.create_all(engine)
    with SessionLocal() as db:
        seed_into(db)
        db.commit()


if __name__ == '__main__':
    seed()
