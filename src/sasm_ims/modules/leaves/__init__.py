"""Leave requests module."""

from sasm_ims.modules.leaves.models import Leave, LeaveStatus
from sasm_ims.modules.leaves.router import router

__all__ = ["Leave", "LeaveStatus", "router"]
