from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from petsitter_billing.db.base import Base
from petsitter_billing.models import AuditLog, SystemSetting
from petsitter_billing.schemas import PlanConfig
from petsitter_billing.services.billing_config import (
    BILLING_CONFIG_KEY,
    get_billing_config,
    save_billing_config,
)


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def test_defaults_come_from_settings(db):
    config = get_billing_config(db)

    assert config.grace_days == 7
    assert [plan.price_id for plan in config.plans] == ["price_monthly", "price_annual"]
    assert config.find_plan("price_annual").interval == "year"
    assert config.find_plan("price_unknown") is None


def test_stored_grace_days_override_defaults(db):
    db.add(SystemSetting(key=BILLING_CONFIG_KEY, value={"grace_days": 3}))
    db.commit()

    config = get_billing_config(db)

    assert config.grace_days == 3
    assert len(config.plans) == 2


def test_invalid_stored_config_is_ignored(db):
    db.add(SystemSetting(key=BILLING_CONFIG_KEY, value={"grace_days": -4}))
    db.commit()

    assert get_billing_config(db).grace_days == 7


def test_save_updates_config_and_audits(db):
    plans = [
        PlanConfig(code="monthly", name="Monthly", price_id="price_new", amount=Decimal("19.90"), interval="month")
    ]

    saved = save_billing_config(db, actor="tester", grace_days=10, plans=plans)

    assert saved.grace_days == 10
    reloaded = get_billing_config(db)
    assert reloaded.grace_days == 10
    assert [plan.price_id for plan in reloaded.plans] == ["price_new"]
    assert reloaded.plans[0].amount == Decimal("19.90")

    entry = db.query(AuditLog).one()
    assert entry.actor == "tester"
    assert entry.action == "billing_config.update"
    assert entry.meta["grace_days"] == {"from": 7, "to": 10}


def test_save_keeps_unspecified_fields(db):
    save_billing_config(db, actor="tester", grace_days=2)
    save_billing_config(db, actor="tester")

    config = get_billing_config(db)
    assert config.grace_days == 2
    assert len(config.plans) == 2
