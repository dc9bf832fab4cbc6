"""User and authentication Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

from .common import Identity


class OtpRequest(BaseModel):
    """Request a one-time passcode for an email address."""

    email: Identity


class OtpRequestResponse(BaseModel):
    """Outcome of an OTP request."""

    message: str
    simulation: bool = Field(
        False,
        description="True when the code was only written to the server log",
    )


class OtpVerifyRequest(BaseModel):
    """Exchange an email and passcode for an access token."""

    email: Identity
    code: str = Field(..., min_length=1, max_length=10)


class TokenResponse(BaseModel):
    """Access token issued after a successful OTP verification."""

    token: str
    email: str


class UserInfo(BaseModel):
    """Public profile fields for a user."""

    email: str
    nickname: str | None = None
    profile_image: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    """Partial profile update; omitted fields are left untouched."""

    nickname: str | None = Field(None, max_length=100)
    profile_image: str | None = None


class OnlineUsersResponse(BaseModel):
    """Snapshot of identities with at least one live connection."""

    online: list[str]
