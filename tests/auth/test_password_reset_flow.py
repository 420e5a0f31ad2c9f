"""Tests for the OTP password recovery flow.

**Feature: backstage-auth, Property 5: OTP Password Recovery**
"""

from datetime import datetime, timedelta

import pytest

from backstage.core.config import settings
from backstage.modules.auth.exceptions import (
    InvalidCredentialsError,
    InvalidOtpError,
    OtpExpiredError,
    PasswordMismatchError,
    PreconditionFailedError,
    UserNotFoundError,
)
from backstage.modules.auth.otp import GeneratedOTP
from backstage.modules.auth.password_reset import PasswordResetService
from backstage.modules.auth.service import AuthService


@pytest.fixture
def reset_service(db_session, notifier) -> PasswordResetService:
    return PasswordResetService(db_session, notifier)


async def _signup(db_session, email: str = "alice@example.com", password: str = "Pw1!"):
    return await AuthService(db_session).signup(email, password, "alice")


class TestSendOtp:

    @pytest.mark.asyncio
    async def test_send_otp_stores_and_dispatches_code(
        self, db_session, reset_service, notifier
    ) -> None:
        """**Feature: backstage-auth, Property 5: OTP Password Recovery**"""
        user = await _signup(db_session)

        await reset_service.send_otp("alice@example.com")

        code = notifier.last_code("alice@example.com")
        assert user.otp == code
        assert len(code) == settings.OTP_DIGITS
        assert user.otp_expiry_time > datetime.utcnow()

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_found(self, reset_service, notifier) -> None:
        with pytest.raises(UserNotFoundError):
            await reset_service.send_otp("nobody@example.com")
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_forgot_password_issues_code(self, db_session, reset_service, notifier) -> None:
        user = await _signup(db_session)

        returned = await reset_service.forgot_password("ALICE@example.com")

        assert returned.id == user.id
        assert user.otp == notifier.last_code("alice@example.com")

    @pytest.mark.asyncio
    async def test_resend_invalidates_previous_code(
        self, db_session, reset_service, monkeypatch
    ) -> None:
        """**Feature: backstage-auth, Property 5: OTP Password Recovery**"""
        codes = iter(["1111", "2222"])
        monkeypatch.setattr(
            "backstage.modules.auth.password_reset.generate_otp",
            lambda digits: GeneratedOTP(next(codes), datetime.utcnow() + timedelta(minutes=10)),
        )
        user = await _signup(db_session)

        await reset_service.send_otp("alice@example.com")
        await reset_service.send_otp("alice@example.com")

        with pytest.raises(InvalidOtpError):
            await reset_service.verify_otp("alice@example.com", "1111")
        await reset_service.verify_otp("alice@example.com", "2222")
        assert user.password_reset is True

    @pytest.mark.asyncio
    async def test_failed_delivery_keeps_code(self, db_session, notifier) -> None:
        user = await _signup(db_session)
        notifier.succeed = False
        service = PasswordResetService(db_session, notifier)

        await service.send_otp("alice@example.com")

        assert user.otp == notifier.last_code("alice@example.com")
        await service.verify_otp("alice@example.com", user.otp)
        assert user.password_reset is True


class TestVerifyOtp:

    @pytest.mark.asyncio
    async def test_correct_code_authorizes_reset(self, db_session, reset_service, notifier) -> None:
        """**Feature: backstage-auth, Property 5: OTP Password Recovery**"""
        user = await _signup(db_session)
        await reset_service.send_otp("alice@example.com")

        await reset_service.verify_otp("alice@example.com", notifier.last_code("alice@example.com"))

        assert user.password_reset is True

    @pytest.mark.asyncio
    async def test_verified_code_stays_usable(self, db_session, reset_service, notifier) -> None:
        await _signup(db_session)
        await reset_service.send_otp("alice@example.com")
        code = notifier.last_code("alice@example.com")

        await reset_service.verify_otp("alice@example.com", code)
        await reset_service.verify_otp("alice@example.com", code)

    @pytest.mark.asyncio
    async def test_wrong_code_is_invalid(self, db_session, reset_service, notifier) -> None:
        user = await _signup(db_session)
        await reset_service.send_otp("alice@example.com")
        code = notifier.last_code("alice@example.com")
        wrong = "0" * len(code)

        with pytest.raises(InvalidOtpError):
            await reset_service.verify_otp("alice@example.com", wrong)
        assert user.password_reset is False

    @pytest.mark.asyncio
    async def test_no_code_issued_is_invalid(self, db_session, reset_service) -> None:
        await _signup(db_session)

        with pytest.raises(InvalidOtpError):
            await reset_service.verify_otp("alice@example.com", "1234")

    @pytest.mark.asyncio
    async def test_expired_code_is_rejected(self, db_session, reset_service, notifier) -> None:
        """**Feature: backstage-auth, Property 5: OTP Password Recovery**"""
        user = await _signup(db_session)
        await reset_service.send_otp("alice@example.com")
        code = notifier.last_code("alice@example.com")
        later = user.otp_expiry_time + timedelta(seconds=1)

        with pytest.raises(OtpExpiredError):
            await reset_service.verify_otp("alice@example.com", code, now=later)
        assert user.password_reset is False

    @pytest.mark.asyncio
    async def test_wrong_code_is_checked_before_expiry(
        self, db_session, reset_service, notifier
    ) -> None:
        user = await _signup(db_session)
        await reset_service.send_otp("alice@example.com")
        later = user.otp_expiry_time + timedelta(minutes=5)

        with pytest.raises(InvalidOtpError):
            await reset_service.verify_otp("alice@example.com", "not-the-code", now=later)

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_found(self, reset_service) -> None:
        with pytest.raises(UserNotFoundError):
            await reset_service.verify_otp("nobody@example.com", "1234")


class TestResetPassword:

    @pytest.mark.asyncio
    async def test_full_recovery_changes_password(
        self, db_session, reset_service, notifier
    ) -> None:
        """**Feature: backstage-auth, Property 5: OTP Password Recovery**"""
        user = await _signup(db_session)
        auth = AuthService(db_session)

        await reset_service.forgot_password("alice@example.com")
        await reset_service.verify_otp("alice@example.com", notifier.last_code("alice@example.com"))
        await reset_service.reset_password("alice@example.com", "N3w!", "N3w!")

        assert user.password_reset is False
        result = await auth.signin("alice@example.com", "N3w!")
        assert result.user.id == user.id
        with pytest.raises(InvalidCredentialsError):
            await auth.signin("alice@example.com", "Pw1!")

    @pytest.mark.asyncio
    async def test_reset_without_verification_is_refused(self, db_session, reset_service) -> None:
        """**Feature: backstage-auth, Property 5: OTP Password Recovery**"""
        user = await _signup(db_session)
        password_hash = user.password_hash

        with pytest.raises(PreconditionFailedError) as exc_info:
            await reset_service.reset_password("alice@example.com", "N3w!", "N3w!")

        assert exc_info.value.message == "Please verify OTP to continue"
        assert user.password_hash == password_hash

    @pytest.mark.asyncio
    async def test_mismatched_passwords_keep_authorization(
        self, db_session, reset_service, notifier
    ) -> None:
        user = await _signup(db_session)
        await reset_service.send_otp("alice@example.com")
        await reset_service.verify_otp("alice@example.com", notifier.last_code("alice@example.com"))

        with pytest.raises(PasswordMismatchError):
            await reset_service.reset_password("alice@example.com", "N3w!", "N3w?")

        assert user.password_reset is True
        assert user.verify_password("Pw1!")

    @pytest.mark.asyncio
    async def test_second_reset_needs_new_verification(
        self, db_session, reset_service, notifier
    ) -> None:
        await _signup(db_session)
        await reset_service.send_otp("alice@example.com")
        await reset_service.verify_otp("alice@example.com", notifier.last_code("alice@example.com"))
        await reset_service.reset_password("alice@example.com", "N3w!", "N3w!")

        with pytest.raises(PreconditionFailedError):
            await reset_service.reset_password("alice@example.com", "Other1!", "Other1!")

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_found(self, reset_service) -> None:
        with pytest.raises(UserNotFoundError):
            await reset_service.reset_password("nobody@example.com", "N3w!", "N3w!")
