from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from petsitter_billing.api.deps import get_db, require_admin
from petsitter_billing.schemas import BillingConfig, BillingConfigUpdateRequest
from petsitter_billing.services.billing_config import get_billing_config, save_billing_config

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/billing-config", response_model=BillingConfig)
def show_billing_config(db: Session = Depends(get_db)) -> BillingConfig:
    return get_billing_config(db)


@router.patch("/billing-config", response_model=BillingConfig)
def update_billing_config(payload: BillingConfigUpdateRequest, db: Session = Depends(get_db)) -> BillingConfig:
    return save_billing_config(db, actor="admin-api", grace_days=payload.grace_days, plans=payload.plans)
