"""
Office Profiles Module

PIN-protected staff profiles under a shared office account, with per-profile
permission flags enforced by ``require_permission``.
"""

from sasm_ims.modules.office_profiles.permissions import require_permission
from sasm_ims.modules.office_profiles.router import router

__all__ = ["router", "require_permission"]
