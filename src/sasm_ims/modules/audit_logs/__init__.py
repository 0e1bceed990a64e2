"""Audit logs module - best-effort audit trail of staff actions."""

from sasm_ims.modules.audit_logs.router import router
from sasm_ims.modules.audit_logs.service import create_audit_log

__all__ = ["router", "create_audit_log"]
