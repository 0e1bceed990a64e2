"""
Users module - Account records.
"""

from sasm_ims.modules.users.models import User, UserRole
from sasm_ims.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
