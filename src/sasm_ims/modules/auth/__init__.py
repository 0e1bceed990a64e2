"""Authentication module - sign-in, sessions and account email/password flows."""

from sasm_ims.modules.auth.router import router
from sasm_ims.modules.auth.session_router import router as session_router

__all__ = ["router", "session_router"]
