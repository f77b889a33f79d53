"""Unit tests for the login flow and device step-up."""

import pytest

from errors import (
    EmailDeliveryError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    NotFoundError,
    UnverifiedEmailError,
)
from schemas.models.device import DeviceInfo
from schemas.models.otp import OtpPurpose
from services.login_service import LoginStatus

DEVICE = OtpPurpose.DEVICE_VERIFICATION
INFO = DeviceInfo(user_agent="UA", browser="Chrome", os="Windows", ip="1.2.3.4")


class TestLogin:
    async def test_unknown_email(self, login_service):
        with pytest.raises(InvalidCredentialsError) as exc:
            await login_service.login("ghost@x.com", "secret1", "F1")
        assert exc.value.message == "Invalid email or password"

    async def test_wrong_password_same_message(self, login_service, verified_user):
        with pytest.raises(InvalidCredentialsError) as exc:
            await login_service.login("a@x.com", "wrong12", "F1")
        assert exc.value.message == "Invalid email or password"

    @pytest.mark.parametrize("password", ["secret1", "wrong12"])
    async def test_unverified_account_flagged_regardless_of_password(
        self, login_service, registration, password
    ):
        await registration.signup("a@x.com", "secret1", "Ann")
        with pytest.raises(UnverifiedEmailError) as exc:
            await login_service.login("a@x.com", password, "F1")
        assert exc.value.to_dict()["requiresEmailVerification"] is True

    async def test_untrusted_device_steps_up(self, login_service, verified_user, email_provider):
        result = await login_service.login("a@x.com", "secret1", "F1")
        assert result.status is LoginStatus.STEP_UP_REQUIRED
        assert result.requires_device_verification is True
        assert result.token is None
        assert email_provider.count(DEVICE) == 1

    async def test_empty_fingerprint_steps_up(self, login_service, verified_user, email_provider):
        result = await login_service.login("a@x.com", "secret1", "")
        assert result.status is LoginStatus.STEP_UP_REQUIRED

    async def test_trusted_device_gets_session_without_otp(
        self, login_service, device_service, verified_user, email_provider, sessions
    ):
        await device_service.remember(verified_user.id, "F1", INFO)
        result = await login_service.login("a@x.com", "secret1", "F1")
        assert result.status is LoginStatus.AUTHENTICATED
        assert sessions.validate(result.token) == verified_user.user_id
        assert email_provider.count(DEVICE) == 0

    async def test_trusted_login_slides_expiry_and_records_login(
        self, login_service, device_service, device_repo, verified_user, clock
    ):
        await device_service.remember(verified_user.id, "F1", INFO)
        clock.advance(days=10)
        result = await login_service.login("a@x.com", "secret1", "F1")
        device = device_repo.docs[(verified_user.id, "F1")]
        assert device.last_used_at == clock.now
        assert (device.expires_at - clock.now).days == 30
        assert result.user.last_login_at == clock.now

    async def test_device_email_failure(self, login_service, verified_user, email_provider):
        email_provider.succeed = False
        with pytest.raises(EmailDeliveryError):
            await login_service.login("a@x.com", "secret1", "F1")

    async def test_passwordless_account_cannot_password_login(
        self, login_service, credentials
    ):
        await credentials.create_user("g@x.com", None, "Gail", email_preverified=True)
        with pytest.raises(InvalidCredentialsError):
            await login_service.login("g@x.com", "", "F1")


class TestVerifyDevice:
    async def test_remember_then_trusted_login(
        self, login_service, verified_user, email_provider, sessions
    ):
        await login_service.login("a@x.com", "secret1", "F1")
        code = email_provider.last_code(DEVICE)

        result = await login_service.verify_device(
            "a@x.com", code, "F1", INFO, remember_device=True
        )
        assert sessions.validate(result.token) == verified_user.user_id

        again = await login_service.login("a@x.com", "secret1", "F1")
        assert again.status is LoginStatus.AUTHENTICATED
        assert email_provider.count(DEVICE) == 1

    async def test_without_remember_still_steps_up(
        self, login_service, verified_user, email_provider
    ):
        await login_service.login("a@x.com", "secret1", "F1")
        await login_service.verify_device(
            "a@x.com", email_provider.last_code(DEVICE), "F1", INFO, remember_device=False
        )
        again = await login_service.login("a@x.com", "secret1", "F1")
        assert again.status is LoginStatus.STEP_UP_REQUIRED

    async def test_login_choice_is_default_for_verify(
        self, login_service, verified_user, email_provider
    ):
        await login_service.login("a@x.com", "secret1", "F1", remember_device=True)
        await login_service.verify_device("a@x.com", email_provider.last_code(DEVICE), "F1", INFO)
        again = await login_service.login("a@x.com", "secret1", "F1")
        assert again.status is LoginStatus.AUTHENTICATED

    async def test_explicit_verify_choice_overrides_login(
        self, login_service, verified_user, email_provider
    ):
        await login_service.login("a@x.com", "secret1", "F1", remember_device=True)
        await login_service.verify_device(
            "a@x.com", email_provider.last_code(DEVICE), "F1", INFO, remember_device=False
        )
        again = await login_service.login("a@x.com", "secret1", "F1")
        assert again.status is LoginStatus.STEP_UP_REQUIRED

    async def test_email_code_not_accepted_for_device(
        self, login_service, registration, verified_user, email_provider
    ):
        await registration.resend_otp("a@x.com", OtpPurpose.EMAIL_VERIFICATION)
        code = email_provider.last_code(OtpPurpose.EMAIL_VERIFICATION)
        with pytest.raises(InvalidOrExpiredCodeError):
            await login_service.verify_device("a@x.com", code, "F1", INFO)

    async def test_code_single_use(self, login_service, verified_user, email_provider):
        await login_service.login("a@x.com", "secret1", "F1")
        code = email_provider.last_code(DEVICE)
        await login_service.verify_device("a@x.com", code, "F1", INFO)
        with pytest.raises(InvalidOrExpiredCodeError):
            await login_service.verify_device("a@x.com", code, "F1", INFO)

    async def test_unknown_user(self, login_service):
        with pytest.raises(NotFoundError):
            await login_service.verify_device("ghost@x.com", "123456", "F1", INFO)

    async def test_unverified_user(self, login_service, registration):
        await registration.signup("a@x.com", "secret1", "Ann")
        with pytest.raises(UnverifiedEmailError):
            await login_service.verify_device("a@x.com", "123456", "F1", INFO)

    async def test_remember_stores_device_info(
        self, login_service, verified_user, email_provider, device_repo
    ):
        await login_service.login("a@x.com", "secret1", "F1")
        await login_service.verify_device(
            "a@x.com", email_provider.last_code(DEVICE), "F1", INFO, remember_device=True
        )
        stored = device_repo.docs[(verified_user.id, "F1")]
        assert stored.device_info.browser == "Chrome"
        assert stored.device_info.ip == "1.2.3.4"
