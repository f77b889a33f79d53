"""ZeptoMail implementation of EmailProvider.

Sends through the ZeptoMail HTTP API using a dedicated HttpClient whose
timeout bounds how long a signup or login can wait on delivery. Bodies are
rendered from Jinja2 templates, one per OTP purpose.
"""

import os
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from schemas.models.otp import OtpPurpose
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.com/v1.1/email"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)

# purpose -> (subject, template, plain-text intro)
_OTP_EMAILS = {
    OtpPurpose.EMAIL_VERIFICATION: (
        "Verify Your Email - {app_name}",
        "email_verification.html",
        "Thank you for signing up! Use this code to verify your email address:",
    ),
    OtpPurpose.DEVICE_VERIFICATION: (
        "New Device Login - {app_name}",
        "device_verification.html",
        "We detected a login from a new device. Use this code to continue:",
    ),
}


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_name: str = "Stellar",
        app_url: str = "http://localhost:5173",
        otp_ttl_minutes: int = 10,
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_name = app_name
        self._app_url = app_url
        self._otp_ttl_minutes = otp_ttl_minutes
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _payload(
        self,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> dict:
        return {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": to_email, "name": to_name or to_email}}],
            "subject": subject,
            "htmlbody": html_body,
            "textbody": text_body,
        }

    def _auth_header(self) -> str:
        token = self._settings.zepto_api_token
        if token.startswith("Zoho-enczapikey "):
            return token
        return f"Zoho-enczapikey {token}"

    async def _send(self, kind: str, payload: dict) -> bool:
        """POST one message. Every failure is logged and reported as False."""
        if not self._settings.zepto_api_token:
            log.error("email_send_failed", kind=kind, reason="token_not_configured")
            return False

        headers = {"Authorization": self._auth_header(), "Content-Type": "application/json"}
        try:
            response = await self._http.post(_ZEPTO_API_URL, json=payload, headers=headers)
        except Exception as e:
            # httpx timeouts land here too; the caller decides whether that is fatal
            log.error(
                "email_send_failed",
                kind=kind,
                reason="transport_error",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if 200 <= response.status_code < 300:
            log.info("email_sent", kind=kind)
            return True
        log.error(
            "email_send_failed",
            kind=kind,
            reason="rejected",
            status_code=response.status_code,
            response=response.text[:200],
        )
        return False

    async def send_otp_email(
        self,
        email: str,
        user_name: Optional[str],
        otp_code: str,
        purpose: OtpPurpose,
    ) -> bool:
        subject_fmt, template_name, intro = _OTP_EMAILS[purpose]
        subject = subject_fmt.format(app_name=self._app_name)
        template = self._jinja.get_template(template_name)
        html_body = template.render(
            otp_code=otp_code,
            user_name=user_name,
            app_name=self._app_name,
            app_url=self._app_url,
            ttl_minutes=self._otp_ttl_minutes,
        )
        text_body = (
            f"{subject}\n\n"
            f"Hello{f' {user_name}' if user_name else ''},\n\n"
            f"{intro} {otp_code}\n\n"
            f"This code expires in {self._otp_ttl_minutes} minutes.\n\n"
            f"If this wasn't you, you can ignore this email."
        )
        return await self._send(
            purpose.value, self._payload(email, user_name, subject, html_body, text_body)
        )

    async def send_welcome_email(self, email: str, user_name: Optional[str]) -> bool:
        subject = f"Welcome to {self._app_name}!"
        template = self._jinja.get_template("welcome.html")
        html_body = template.render(
            user_name=user_name, app_name=self._app_name, app_url=self._app_url
        )
        text_body = (
            f"Welcome to {self._app_name}{f', {user_name}' if user_name else ''}!\n\n"
            f"Finish setting up your profile: {self._app_url}/onboarding"
        )
        return await self._send(
            "welcome", self._payload(email, user_name, subject, html_body, text_body)
        )
