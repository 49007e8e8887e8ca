import logging
import os
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class Mailer:
    """Sends sign-in links through the Resend REST API.

    Without ``RESEND_API_KEY`` and ``MAIL_FROM`` the link is only logged, which
    is how local development signs in.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        mail_from: Optional[str] = None,
        app_name: str = "MarketLink",
        timeout_s: float = 10.0,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.mail_from = (mail_from or "").strip()
        self.app_name = app_name
        self.timeout_s = timeout_s

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.mail_from)

    def _bodies(self, verify_url: str) -> tuple[str, str]:
        text = "\n".join(
            [
                "Hi,",
                "",
                "Click this link to sign in:",
                verify_url,
                "",
                "This link expires in 15 minutes.",
                "",
                "If you didn't request this, you can ignore this email.",
                "",
                f"- {self.app_name}",
            ]
        )
        html = (
            "<div>"
            "<p>Hi,</p>"
            "<p>Click the link below to sign in. This link expires in 15 minutes.</p>"
            f'<p><a href="{verify_url}">Sign in to {self.app_name}</a></p>'
            f"<p>Or paste this URL into your browser:</p><p><code>{verify_url}</code></p>"
            "<p>If you didn't request this, you can ignore this email.</p>"
            "</div>"
        )
        return text, html

    def send_magic_link(self, to: str, verify_url: str) -> bool:
        if not self.enabled:
            logger.info("Mail delivery disabled; magic link for %s: %s", to, verify_url)
            return False

        text, html = self._bodies(verify_url)
        try:
            with httpx.Client(timeout=self.timeout_s) as client:
                resp = client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "from": self.mail_from,
                        "to": to,
                        "subject": f"{self.app_name} - Sign in link",
                        "text": text,
                        "html": html,
                    },
                )
        except httpx.HTTPError:
            logger.exception("Magic link delivery failed for %s", to)
            return False

        if resp.status_code >= 400:
            logger.error("Resend rejected magic link for %s: %s %s", to, resp.status_code, resp.text[:500])
            return False
        return True


mailer = Mailer(
    api_key=os.getenv("RESEND_API_KEY"),
    mail_from=os.getenv("MAIL_FROM"),
    app_name=os.getenv("APP_NAME", "MarketLink"),
)
