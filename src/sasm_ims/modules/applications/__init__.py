"""
Applications Module

Scholarship applications and re-applications with their HR review workflow.
"""

from sasm_ims.modules.applications.models import (
    Application,
    ApplicationStatus,
    ReApplication,
    ReApplicationStatus,
)
from sasm_ims.modules.applications.reapplication_router import router as reapplication_router
from sasm_ims.modules.applications.router import router

__all__ = [
    "Application",
    "ApplicationStatus",
    "ReApplication",
    "ReApplicationStatus",
    "reapplication_router",
    "router",
]
