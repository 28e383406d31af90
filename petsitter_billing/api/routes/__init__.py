from petsitter_billing.api.routes.admin import router as admin_router
from petsitter_billing.api.routes.billing import router as billing_router

__all__ = ["admin_router", "billing_router"]
