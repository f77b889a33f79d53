"""Unit tests for request/response DTOs."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError as PydanticValidationError

from schemas.dto.requests.auth import (
    LoginRequest,
    OnboardingRequest,
    ResendOtpRequest,
    SignupRequest,
    VerifyDeviceRequest,
)
from schemas.dto.responses.auth import (
    SignupResponse,
    StepUpResponse,
    TrustedDeviceResponse,
    UserProfileResponse,
)
from schemas.models.device import DeviceInfo, TrustedDeviceDoc
from schemas.models.otp import OtpPurpose
from schemas.models.user import AuthProviderEntry, UserDoc

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestRequests:
    def test_signup_camel_case(self):
        req = SignupRequest.model_validate(
            {"email": "a@x.com", "password": "secret1", "fullName": "Ann"}
        )
        assert req.full_name == "Ann"

    def test_signup_missing_fields_default_empty(self):
        req = SignupRequest.model_validate({})
        assert (req.email, req.password, req.full_name) == ("", "", "")

    def test_login_device_fields(self):
        req = LoginRequest.model_validate(
            {
                "email": "a@x.com",
                "password": "secret1",
                "deviceFingerprint": "F1",
                "rememberDevice": True,
            }
        )
        assert req.device_fingerprint == "F1"
        assert req.remember_device is True

    def test_resend_default_purpose(self):
        assert ResendOtpRequest(email="a@x.com").type is OtpPurpose.EMAIL_VERIFICATION

    def test_resend_known_purpose(self):
        req = ResendOtpRequest.model_validate(
            {"email": "a@x.com", "type": "device_verification"}
        )
        assert req.type is OtpPurpose.DEVICE_VERIFICATION

    def test_resend_unknown_purpose_rejected(self):
        with pytest.raises(PydanticValidationError):
            ResendOtpRequest.model_validate({"email": "a@x.com", "type": "password_reset"})

    def test_verify_device_nested_info(self):
        req = VerifyDeviceRequest.model_validate(
            {
                "email": "a@x.com",
                "otp": "123456",
                "deviceFingerprint": "F1",
                "deviceInfo": {"userAgent": "UA", "browser": "Chrome"},
                "rememberDevice": True,
            }
        )
        assert req.device_info.user_agent == "UA"
        assert req.device_info.os == ""
        assert req.remember_device is True

    def test_verify_device_remember_unset_is_none(self):
        req = VerifyDeviceRequest.model_validate({"email": "a@x.com", "otp": "123456"})
        assert req.remember_device is None

    def test_onboarding_snake_case_accepted(self):
        req = OnboardingRequest(native_language="English")
        assert req.native_language == "English"


class TestUserProfileResponse:
    def _user(self, **overrides) -> UserDoc:
        base = dict(
            _id=ObjectId(),
            email="a@x.com",
            full_name="Ann",
            password_hash="$argon2id$secret",
            is_email_verified=True,
            auth_providers=[AuthProviderEntry(provider="google", provider_user_id="g1")],
            created_at=NOW,
        )
        base.update(overrides)
        return UserDoc(**base)

    def test_never_exposes_password_hash(self):
        body = UserProfileResponse.from_doc(self._user()).model_dump(by_alias=True)
        assert "passwordHash" not in body
        assert "password_hash" not in body
        assert "$argon2id$secret" not in str(body)

    def test_camel_case_keys(self):
        body = UserProfileResponse.from_doc(self._user()).model_dump(
            mode="json", by_alias=True
        )
        assert body["fullName"] == "Ann"
        assert body["isEmailVerified"] is True
        assert body["isOnboarded"] is False
        assert body["authProviders"] == ["google"]


class TestOtherResponses:
    def test_signup_response(self):
        body = SignupResponse(message="ok", user_id="u1", email="a@x.com").model_dump(
            by_alias=True
        )
        assert body == {
            "success": True,
            "message": "ok",
            "userId": "u1",
            "email": "a@x.com",
            "requiresVerification": True,
        }

    def test_step_up_response(self):
        body = StepUpResponse(email="a@x.com", message="check email").model_dump(
            by_alias=True
        )
        assert body["requiresDeviceVerification"] is True

    def test_trusted_device_response_hides_fingerprint(self):
        device = TrustedDeviceDoc(
            _id=ObjectId(),
            user_id=ObjectId(),
            device_fingerprint="F1",
            device_info=DeviceInfo(browser="Chrome", os="Windows", ip="1.2.3.4"),
            last_used_at=NOW,
            expires_at=NOW,
        )
        body = TrustedDeviceResponse.from_doc(device).model_dump(by_alias=True)
        assert body["browser"] == "Chrome"
        assert "F1" not in body.values()
        assert "lastUsedAt" in body
