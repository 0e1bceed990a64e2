"""Authentication schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from sasm_ims.modules.users.schemas import UserResponse

EMAIL_MIN_LENGTH = 5
EMAIL_MAX_LENGTH = 50


def _check_email_length(value: str) -> str:
    if not EMAIL_MIN_LENGTH <= len(value) <= EMAIL_MAX_LENGTH:
        raise ValueError(
            f"Email must be between {EMAIL_MIN_LENGTH} and {EMAIL_MAX_LENGTH} characters"
        )
    return value.lower()


class EmailRequest(BaseModel):
    """Request body carrying only an email address."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def check_email_length(cls, value: str) -> str:
        return _check_email_length(value)


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup."""

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=50)
    confirm_password: str = Field(..., min_length=8, max_length=50)

    @field_validator("email")
    @classmethod
    def check_email_length(cls, value: str) -> str:
        return _check_email_length(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "SignupRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class SigninRequest(BaseModel):
    """Request body for POST /auth/signin."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=50)

    @field_validator("email")
    @classmethod
    def check_email_length(cls, value: str) -> str:
        return _check_email_length(value)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/password/reset."""

    password: str = Field(..., min_length=8, max_length=50)
    verification_code: str = Field(..., min_length=6, max_length=64)


class ChangePasswordRequest(BaseModel):
    """Request body for POST /auth/password/change."""

    current_password: str = Field(..., min_length=1, max_length=50)
    new_password: str = Field(..., min_length=8, max_length=50)
    confirm_password: str = Field(..., min_length=8, max_length=50)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class ChangeEmailRequest(BaseModel):
    """Request body for POST /auth/email/change."""

    new_email: EmailStr

    @field_validator("new_email")
    @classmethod
    def check_email_length(cls, value: str) -> str:
        return _check_email_length(value)


class MessageResponse(BaseModel):
    message: str


class SigninResponse(BaseModel):
    """Response after signing in. Tokens are set as cookies."""

    message: str = "Login successful"
    user: UserResponse
    redirect_url: str


class VerifyEmailResponse(BaseModel):
    message: str
    user: UserResponse
    email_changed: bool = False


class SessionResponse(BaseModel):
    """A signed-in device as listed to its owner."""

    id: UUID
    user_agent: str | None
    created_at: datetime
    is_current: bool = False
