"""Request dependencies: authentication, permission guard, pagination params."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Path, Query, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from workbench.core.config import Settings
from workbench.core.exceptions import AuthenticationError, ValidationError
from workbench.core.security import require_bearer_token, security_scheme
from workbench.db.base import MAX_ID
from workbench.db.session import get_db
from workbench.models.token import TokenType
from workbench.models.user import User
from workbench.services.auth_service import AuthService
from workbench.services.authorization_service import authorization_service
from workbench.services.email_service import EmailService
from workbench.services.resource_service import ResourceRegistry
from workbench.services.token_service import TokenService
from workbench.services.user_service import user_service

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email_service


def get_registry(request: Request) -> ResourceRegistry:
    return request.app.state.registry


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    authorization: Optional[str] = Header(None, include_in_schema=False),
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
) -> User:
    """Resolve the caller from ``Authorization: Bearer <access token>``.

    The user row is re-read on every request, so a deleted account stops
    working immediately even with an unexpired token.
    """
    token = require_bearer_token(credentials, authorization)
    payload = token_service.decode(token, TokenType.access)

    user = user_service.get_by_id(db, payload.user_id)
    if not user:
        raise AuthenticationError("User not found", code="USER_NOT_FOUND")

    request.state.user = user
    return user


class RequirePermission:
    """Dependency that checks the caller's role against the mount's resource.

    ``mount_path`` is the prefix the router was registered under, looked up
    in the ResourceRegistry together with the request verb.
    """

    def __init__(self, mount_path: str):
        self.mount_path = mount_path

    def __call__(
        self,
        request: Request,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        registry: ResourceRegistry = Depends(get_registry),
    ) -> User:
        resource, action = registry.resolve(self.mount_path, request.method)
        authorization_service.authorize(db, user, resource, action)
        return user


def id_path():
    """Path parameter for a numeric primary key."""
    return Path(..., ge=1, le=MAX_ID)


@dataclass
class PageParams:
    sort_by: Optional[str]
    limit: int
    page: int


def get_page_params(
    sort_by: Optional[str] = Query(None, description="field:asc|desc, comma separated"),
    limit: Optional[int] = Query(None, ge=1),
    page: int = Query(1, ge=1, le=MAX_ID),
    settings: Settings = Depends(get_settings),
) -> PageParams:
    limit = limit or settings.DEFAULT_PAGE_LIMIT
    if limit > settings.MAX_PAGE_LIMIT:
        raise ValidationError(
            invalid_fields=[{"field": "limit", "message": f"Must be at most {settings.MAX_PAGE_LIMIT}"}],
        )
    return PageParams(sort_by=sort_by, limit=limit, page=page)
