"""Notifications module - in-app messages for account holders."""

from sasm_ims.modules.notifications.router import router

__all__ = ["router"]
