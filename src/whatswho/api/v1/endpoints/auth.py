# src/whatswho/api/v1/endpoints/auth.py
"""Email one-time passcode authentication endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from whatswho.core.settings import settings
from whatswho.schemas.user import (
    OtpRequest,
    OtpRequestResponse,
    OtpVerifyRequest,
    TokenResponse,
)
from whatswho.services.mailer import OtpMailer, get_mailer
from whatswho.services.otp import OtpService, OtpVerificationError

from ..dependencies import SessionDep, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def get_mailer_dep() -> OtpMailer:
    return get_mailer()


MailerDep = Annotated[OtpMailer, Depends(get_mailer_dep)]


@router.post("/request-otp", response_model=OtpRequestResponse)
async def request_otp(
    payload: OtpRequest,
    db: SessionDep,
    mailer: MailerDep,
) -> OtpRequestResponse:
    """Issue a passcode for ``email``, creating the account on first use."""
    user, code = OtpService(db).issue(payload.email)
    result = await mailer.send_code(user.email, code, settings.otp_ttl_seconds)

    if result.simulation:
        return OtpRequestResponse(
            message="OTP generated (Simulation Mode)",
            simulation=True,
        )
    return OtpRequestResponse(message="OTP sent successfully")


@router.post("/verify-otp", response_model=TokenResponse)
async def verify_otp(payload: OtpVerifyRequest, db: SessionDep) -> TokenResponse:
    """Exchange a valid passcode for an access token."""
    try:
        user = OtpService(db).verify(payload.email, payload.code)
    except OtpVerificationError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
        ) from err

    logger.info("%s signed in", user.email)
    token = create_access_token(user.email, {"uid": user.id})
    return TokenResponse(token=token, email=user.email)
