"""
Auth flow tests: login, logout, refresh rotation, password reset, email verification
"""

from datetime import timedelta
from unittest.mock import patch

import pytest

from workbench.core.exceptions import (
    AuthenticationError,
    EmailVerificationFailedError,
    InvalidTokenError,
    PasswordResetFailedError,
    RefreshFailedError,
    ResourceNotFoundError,
)
from workbench.core.security import verify_password
from workbench.models.token import Token, TokenType
from workbench.services.token_service import utcnow
from workbench.services.user_service import UserService, user_service


@pytest.mark.unit
class TestLogin:

    def test_valid_credentials(self, db, auth_service, make_user):
        user = make_user("jane@example.com", password="password123")

        assert auth_service.login(db, "JANE@example.com", "password123").id == user.id

    def test_unknown_email_and_wrong_password_look_the_same(self, db, auth_service, make_user):
        make_user("jane@example.com", password="password123")

        with pytest.raises(AuthenticationError) as unknown:
            auth_service.login(db, "nobody@example.com", "password123")
        with pytest.raises(AuthenticationError) as wrong:
            auth_service.login(db, "jane@example.com", "wrongpass1")

        assert unknown.value.message == wrong.value.message == "Incorrect email or password"
        assert unknown.value.code == wrong.value.code == "INCORRECT_CREDENTIALS"
        assert unknown.value.status_code == wrong.value.status_code == 401

    def test_password_beyond_bcrypt_limit_is_a_plain_mismatch(self, db, auth_service, make_user):
        make_user("jane@example.com", password="password123")

        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.login(db, "jane@example.com", "é" * 70 + "a1")

        assert exc_info.value.code == "INCORRECT_CREDENTIALS"


@pytest.mark.unit
class TestLogout:

    def test_deletes_refresh_token(self, db, auth_service, token_service, make_user):
        user = make_user()
        tokens = token_service.issue_auth_tokens(db, user)

        auth_service.logout(db, tokens.refresh.token)

        assert db.query(Token).count() == 0

    def test_unknown_token(self, db, auth_service):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            auth_service.logout(db, "never-issued")

        assert exc_info.value.message == "Not found"


@pytest.mark.unit
class TestRefresh:

    def test_rotates_tokens(self, db, auth_service, token_service, make_user):
        user = make_user()
        tokens = token_service.issue_auth_tokens(db, user)

        refreshed_user, new_tokens = auth_service.refresh_auth(db, tokens.refresh.token)

        assert refreshed_user.id == user.id
        assert new_tokens.refresh.token != tokens.refresh.token
        with pytest.raises(InvalidTokenError):
            token_service.verify(db, tokens.refresh.token, TokenType.refresh)
        assert token_service.verify(db, new_tokens.refresh.token, TokenType.refresh)

    def test_consumed_token_cannot_be_reused(self, db, auth_service, token_service, make_user):
        tokens = token_service.issue_auth_tokens(db, make_user())
        auth_service.refresh_auth(db, tokens.refresh.token)

        with pytest.raises(RefreshFailedError) as exc_info:
            auth_service.refresh_auth(db, tokens.refresh.token)

        assert exc_info.value.message == "Please authenticate"
        assert exc_info.value.diagnostic["cause"] == "InvalidTokenError"

    def test_access_token_cannot_refresh(self, db, auth_service, token_service, make_user):
        tokens = token_service.issue_auth_tokens(db, make_user())

        with pytest.raises(RefreshFailedError):
            auth_service.refresh_auth(db, tokens.access.token)

    def test_expired_refresh_token(self, db, auth_service, token_service, make_user):
        user = make_user()
        expires = utcnow() - timedelta(seconds=5)
        token = token_service.issue(user.id, expires, TokenType.refresh)
        token_service.persist(db, token, user.id, expires, TokenType.refresh)

        with pytest.raises(RefreshFailedError) as exc_info:
            auth_service.refresh_auth(db, token)

        assert exc_info.value.diagnostic["cause"] == "TokenExpiredError"

    def test_user_deleted_after_issue(self, db, auth_service, token_service, make_user):
        user = make_user()
        tokens = token_service.issue_auth_tokens(db, user)
        user_service.remove_by_id(db, user.id)

        with pytest.raises(RefreshFailedError) as exc_info:
            auth_service.refresh_auth(db, tokens.refresh.token)

        assert exc_info.value.message == "Please authenticate"
        assert exc_info.value.status_code == 401

    def test_missing_user_fails_like_a_bad_token(self, db, auth_service, token_service, make_user):
        tokens = token_service.issue_auth_tokens(db, make_user())
        with pytest.raises(RefreshFailedError) as tampered:
            auth_service.refresh_auth(db, tokens.refresh.token + "x")

        with patch.object(UserService, "get_by_id", return_value=None):
            with pytest.raises(RefreshFailedError) as missing:
                auth_service.refresh_auth(db, tokens.refresh.token)

        assert missing.value.diagnostic["cause"] == "ResourceNotFoundError"
        assert (missing.value.code, missing.value.message) == (tampered.value.code, tampered.value.message)

    def test_same_second_logins_are_revoked_together(self, db, auth_service, token_service, make_user):
        user = make_user()
        now = utcnow()
        first = token_service.issue_auth_tokens(db, user, issued_at=now)
        second = token_service.issue_auth_tokens(db, user, issued_at=now)
        assert first.refresh.token == second.refresh.token

        _, rotated = auth_service.refresh_auth(db, first.refresh.token)

        assert rotated.refresh.token != first.refresh.token
        with pytest.raises(RefreshFailedError):
            auth_service.refresh_auth(db, second.refresh.token)


@pytest.mark.unit
class TestResetPassword:

    def test_resets_and_purges_all_reset_tokens(self, db, auth_service, token_service, make_user):
        user = make_user(password="password123")
        first = token_service.issue_reset_password_token(db, user.email)
        token_service.issue_reset_password_token(db, user.email)

        auth_service.reset_password(db, first, "brandnew123")

        assert verify_password("brandnew123", user.hashed_password)
        remaining = db.query(Token).filter(Token.type == TokenType.reset_password).count()
        assert remaining == 0

    def test_reset_token_is_single_use(self, db, auth_service, token_service, make_user):
        user = make_user()
        token = token_service.issue_reset_password_token(db, user.email)
        auth_service.reset_password(db, token, "brandnew123")

        with pytest.raises(PasswordResetFailedError) as exc_info:
            auth_service.reset_password(db, token, "another123")

        assert exc_info.value.message == "Password reset failed"
        assert exc_info.value.status_code == 401

    def test_refresh_token_cannot_reset(self, db, auth_service, token_service, make_user):
        tokens = token_service.issue_auth_tokens(db, make_user())

        with pytest.raises(PasswordResetFailedError):
            auth_service.reset_password(db, tokens.refresh.token, "brandnew123")


@pytest.mark.unit
class TestVerifyEmail:

    def test_marks_verified_and_purges_tokens(self, db, auth_service, token_service, make_user):
        user = make_user()
        token = token_service.issue_verify_email_token(db, user)
        token_service.issue_verify_email_token(db, user)

        verified = auth_service.verify_email(db, token)

        assert verified.is_email_verified is True
        assert db.query(Token).filter(Token.type == TokenType.verify_email).count() == 0

    def test_invalid_token(self, db, auth_service):
        with pytest.raises(EmailVerificationFailedError) as exc_info:
            auth_service.verify_email(db, "garbage")

        assert exc_info.value.message == "Email verification failed"
        assert exc_info.value.diagnostic == {
            "flow": "verify_email",
            "cause": "InvalidTokenError",
            "detail": "INVALID_TOKEN",
        }
