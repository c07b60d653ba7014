"""Auth API router: register, login, logout, refresh, password reset, email verification."""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from workbench.api.deps import (
    get_auth_service, get_current_user, get_email_service, get_settings, get_token_service,
)
from workbench.core.config import Settings
from workbench.core.responses import send_response
from workbench.db.session import get_db, transaction
from workbench.models.user import User
from workbench.schemas.schemas import (
    AuthOut, ForgotPasswordRequest, LoginRequest, LogoutRequest,
    RefreshRequest, RegisterRequest, ResetPasswordRequest, UserOut,
)
from workbench.services.auth_service import AuthService
from workbench.services.email_service import EmailService
from workbench.services.token_service import TokenService
from workbench.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token_service: TokenService = Depends(get_token_service),
):
    """Register a new user with the default role."""
    with transaction(db):
        user = user_service.register(db, body.name, body.email, body.password, settings.DEFAULT_ROLE_NAME)
        tokens = token_service.issue_auth_tokens(db, user)
    data = AuthOut(user=UserOut.model_validate(user), tokens=tokens)
    return send_response("User registered", data, status.HTTP_201_CREATED)


@router.post("/login")
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    token_service: TokenService = Depends(get_token_service),
):
    """Authenticate and return JWT tokens."""
    with transaction(db):
        user = auth_service.login(db, body.email, body.password)
        tokens = token_service.issue_auth_tokens(db, user)
    logger.info("User %s logged in", user.id)
    return send_response("Login successful", AuthOut(user=UserOut.model_validate(user), tokens=tokens))


@router.post("/logout")
def logout(
    body: LogoutRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Revoke the given refresh token."""
    with transaction(db):
        auth_service.logout(db, body.refresh_token)
    return send_response("Logged out successfully")


@router.post("/refresh-tokens")
def refresh_tokens(
    body: RefreshRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Rotate a refresh token into a new token pair."""
    with transaction(db):
        user, tokens = auth_service.refresh_auth(db, body.refresh_token)
    return send_response("Tokens refreshed", AuthOut(user=UserOut.model_validate(user), tokens=tokens))


@router.post("/forgot-password")
def forgot_password(
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
    email_service: EmailService = Depends(get_email_service),
):
    with transaction(db):
        reset_token = token_service.issue_reset_password_token(db, body.email)
    email_service.send_reset_password_email(body.email, reset_token)
    return send_response("Reset password email sent")


@router.post("/reset-password")
def reset_password(
    body: ResetPasswordRequest,
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    with transaction(db):
        auth_service.reset_password(db, token, body.password)
    return send_response("Password reset successfully")


@router.post("/send-verification-email")
def send_verification_email(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    token_service: TokenService = Depends(get_token_service),
    email_service: EmailService = Depends(get_email_service),
):
    with transaction(db):
        verify_token = token_service.issue_verify_email_token(db, user)
    email_service.send_verification_email(user.email, verify_token, name=user.name)
    return send_response("Verification email sent")


@router.post("/verify-email")
def verify_email(
    token: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    with transaction(db):
        user = auth_service.verify_email(db, token)
    return send_response("Email verified", UserOut.model_validate(user))


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    """Get current user profile."""
    return send_response("User retrieved", UserOut.model_validate(user))
