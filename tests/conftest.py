"""
Shared fixtures: fake collaborators, a controllable clock and services wired
together over them.
"""

import pytest

from config import SessionSettings
from schemas.models.otp import OtpPurpose
from services.credential_service import CredentialService
from services.device_service import TrustedDeviceService
from services.federated_service import FederatedIdentityService
from services.login_service import LoginService
from services.otp_service import OtpService
from services.registration_service import RegistrationService
from services.session_service import SessionService
from tests.fakes import (
    TEST_JWT_SECRET,
    FakeChatDirectory,
    FakeClock,
    FakeDeviceRepository,
    FakeEmailProvider,
    FakeOtpRepository,
    FakeUserRepository,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def otp_repo():
    return FakeOtpRepository()


@pytest.fixture
def device_repo():
    return FakeDeviceRepository()


@pytest.fixture
def email_provider():
    return FakeEmailProvider()


@pytest.fixture
def directory():
    return FakeChatDirectory()


@pytest.fixture
def session_settings():
    return SessionSettings(jwt_secret=TEST_JWT_SECRET, cookie_secure=False)


@pytest.fixture
def credentials(user_repo, clock):
    return CredentialService(user_repo, clock=clock)


@pytest.fixture
def otp_service(otp_repo, clock):
    return OtpService(otp_repo, clock=clock)


@pytest.fixture
def device_service(device_repo, clock):
    return TrustedDeviceService(device_repo, clock=clock)


@pytest.fixture
def sessions(session_settings, clock):
    return SessionService(session_settings, secure_cookies=False, clock=clock)


@pytest.fixture
def registration(credentials, otp_service, sessions, email_provider, directory):
    return RegistrationService(
        credentials, otp_service, sessions, email_provider, directory=directory
    )


@pytest.fixture
def login_service(credentials, otp_service, device_service, sessions, email_provider):
    return LoginService(credentials, otp_service, device_service, sessions, email_provider)


@pytest.fixture
def federated(credentials, sessions, directory):
    return FederatedIdentityService(credentials, sessions, directory=directory)


@pytest.fixture
async def verified_user(registration, email_provider):
    """A fully registered, email-verified password account."""
    await registration.signup("a@x.com", "secret1", "Ann")
    code = email_provider.last_code(OtpPurpose.EMAIL_VERIFICATION)
    result = await registration.verify_email("a@x.com", code)
    return result.user
