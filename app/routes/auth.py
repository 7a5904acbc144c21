"""
Authentication endpoints - email + password accounts with bearer tokens.
"""

from typing import Dict

from fastapi import APIRouter, Depends, status
import logging

from app.core.settings import settings
from app.models.base import BaseResponse, DataResponse
from app.models.user import (
    AuthResult,
    ForgotPasswordRequest,
    PasswordResetIssued,
    ResetPasswordRequest,
    UserLogin,
    UserRegister,
    UserResponse,
)
from app.routes.deps import current_user
from app.services.user_service import get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=DataResponse[AuthResult])
async def register(request: UserRegister):
    """
    Register a new account and return the profile with an access token.

    409 if the email is already registered.
    """
    result = get_user_service().register(request)
    return DataResponse(message="User registered successfully", data=result)


@router.post("/login", response_model=DataResponse[AuthResult])
async def login(request: UserLogin):
    result = get_user_service().login(request.email, request.password)
    return DataResponse(message="Login successful", data=result)


@router.get("/me", response_model=DataResponse[UserResponse])
async def me(claims: Dict = Depends(current_user)):
    return DataResponse(data=get_user_service().get_user(claims["sub"]))


@router.post("/forgot-password", response_model=DataResponse[PasswordResetIssued])
async def forgot_password(request: ForgotPasswordRequest):
    """
    Start a password reset.

    The answer is the same whether or not the email is registered. The token
    itself is only echoed back in DEBUG mode; otherwise it goes out through
    the delivery channel.
    """
    issued = get_user_service().request_password_reset(request.email)
    message = "If an account exists for this email, reset instructions have been sent"
    if issued is None or not settings.DEBUG:
        return DataResponse(message=message)
    return DataResponse(message=message, data=issued)


@router.post("/reset-password", response_model=BaseResponse)
async def reset_password(request: ResetPasswordRequest):
    get_user_service().reset_password(request.token, request.new_password)
    return BaseResponse(message="Password has been reset successfully")
