"""Current-account router."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, get_current_user
from sasm_ims.core.database import get_db
from sasm_ims.core.errors import app_assert
from sasm_ims.modules.users.repository import UserRepository
from sasm_ims.modules.users.schemas import UserResponse

router = APIRouter()


@router.get("", response_model=UserResponse)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Return the signed-in account."""
    user = await UserRepository.get_by_id(db, current_user.id)
    app_assert(user, status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")
    return UserResponse.model_validate(user)
