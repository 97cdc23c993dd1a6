"""Email backend delivering through the Brevo transactional API."""
from __future__ import annotations

import logging

import requests
from django.conf import settings
from django.core.mail.backends.base import BaseEmailBackend
from django.core.mail.message import EmailMultiAlternatives

logger = logging.getLogger(__name__)


class BrevoEmailBackend(BaseEmailBackend):
    def __init__(self, api_key=None, api_url=None, timeout=10, fail_silently=False, **kwargs):
        super().__init__(fail_silently=fail_silently, **kwargs)
        self.api_key = api_key or settings.BREVO_API_KEY
        self.api_url = api_url or settings.BREVO_API_URL
        self.timeout = timeout

    def send_messages(self, email_messages):
        if not email_messages:
            return 0
        sent = 0
        with requests.Session() as session:
            for message in email_messages:
                try:
                    self._send(session, message)
                except requests.RequestException:
                    if not self.fail_silently:
                        raise
                    logger.exception("Brevo delivery failed for %r", message.subject)
                else:
                    sent += 1
        return sent

    def _payload(self, message) -> dict:
        html_content = None
        if isinstance(message, EmailMultiAlternatives):
            for content, mimetype in message.alternatives:
                if mimetype == "text/html":
                    html_content = content
                    break

        payload = {
            "sender": {
                "name": settings.SENDER_NAME,
                "email": message.from_email or settings.DEFAULT_FROM_EMAIL,
            },
            "to": [{"email": address} for address in message.to],
            "subject": message.subject,
        }
        if message.bcc:
            payload["bcc"] = [{"email": address} for address in message.bcc]
        if html_content:
            payload["htmlContent"] = html_content
            payload["textContent"] = message.body
        else:
            payload["textContent"] = message.body
        return payload

    def _send(self, session, message) -> None:
        response = session.post(
            self.api_url,
            json=self._payload(message),
            headers={"api-key": self.api_key, "accept": "application/json"},
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            logger.warning("Brevo API returned %s: %s", response.status_code, response.text)
        response.raise_for_status()
