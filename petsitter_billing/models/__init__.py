from petsitter_billing.models.audit_log import AuditLog
from petsitter_billing.models.system_setting import SystemSetting

__all__ = [
    "AuditLog",
    "SystemSetting",
]
