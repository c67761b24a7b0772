from __future__ import annotations

import logging
import time
from typing import Callable

import requests

from courtbot_core.errors import DeliveryError

logger = logging.getLogger(__name__)

TWILIO_API_BASE_URL = "https://api.twilio.com/2010-04-01"

HttpPost = Callable[..., requests.Response]


class SmsClient:
    """Sends text messages through the Twilio Messages REST API."""

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        *,
        base_url: str = TWILIO_API_BASE_URL,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        backoff_seconds: float = 0.2,
        http_post: HttpPost = requests.post,
    ) -> None:
        self.account_sid = (account_sid or "").strip()
        self.auth_token = (auth_token or "").strip()
        self.from_number = (from_number or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(0, max_retries)
        self.backoff_seconds = max(0.0, backoff_seconds)
        self.http_post = http_post

    @classmethod
    def from_settings(cls, settings) -> SmsClient:
        return cls(
            settings.twilio_account_sid,
            settings.twilio_auth_token,
            settings.twilio_phone_number,
            timeout_seconds=settings.store_timeout_seconds,
        )

    def send(self, phone: str, body: str) -> None:
        if not (self.account_sid and self.auth_token and self.from_number):
            raise DeliveryError("Missing Twilio credentials or sending phone number")

        url = f"{self.base_url}/Accounts/{self.account_sid}/Messages.json"
        data = {"From": self.from_number, "To": phone, "Body": body}

        for attempt in range(self.max_retries + 1):
            try:
                response = self.http_post(
                    url,
                    data=data,
                    auth=(self.account_sid, self.auth_token),
                    timeout=self.timeout_seconds,
                )
            except requests.RequestException as exc:
                raise DeliveryError(f"SMS request failed: {exc}") from exc

            status = response.status_code
            if status < 400:
                logger.info("Sent SMS to %s", phone)
                return

            retryable = status == 429 or 500 <= status <= 599
            if retryable and attempt < self.max_retries:
                time.sleep(self.backoff_seconds * (2**attempt))
                continue
            raise DeliveryError(
                f"SMS request failed with status {status}: {response.text[:300]}"
            )
