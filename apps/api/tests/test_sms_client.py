from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest
import requests

from app.sms import SmsClient
from courtbot_core.errors import DeliveryError


class _FakeResponse:
    def __init__(self, status_code: int = 201, text: str = "{}"):
        self.status_code = status_code
        self.text = text


def _client(http_post, **kwargs: Any) -> SmsClient:
    return SmsClient(
        "AC123",
        "secret",
        "+15555550000",
        http_post=http_post,
        backoff_seconds=0,
        **kwargs,
    )


def test_send_posts_message_to_twilio() -> None:
    calls: list[dict[str, Any]] = []

    def fake_post(url: str, **kwargs: Any) -> _FakeResponse:
        calls.append({"url": url, **kwargs})
        return _FakeResponse()

    _client(fake_post).send("+15555550100", "hello")

    assert len(calls) == 1
    assert calls[0]["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert calls[0]["data"] == {"From": "+15555550000", "To": "+15555550100", "Body": "hello"}
    assert calls[0]["auth"] == ("AC123", "secret")


def test_send_retries_server_errors() -> None:
    responses = [_FakeResponse(503), _FakeResponse(429), _FakeResponse(201)]

    def fake_post(url: str, **kwargs: Any) -> _FakeResponse:
        return responses.pop(0)

    with patch("app.sms.time.sleep") as sleep:
        _client(fake_post).send("+15555550100", "hello")

    assert responses == []
    assert sleep.call_count == 2


def test_send_raises_on_client_error() -> None:
    def fake_post(url: str, **kwargs: Any) -> _FakeResponse:
        return _FakeResponse(400, '{"message": "invalid To"}')

    with pytest.raises(DeliveryError, match="status 400"):
        _client(fake_post).send("not-a-number", "hello")


def test_send_wraps_network_errors() -> None:
    def fake_post(url: str, **kwargs: Any) -> _FakeResponse:
        raise requests.ConnectionError("connection refused")

    with pytest.raises(DeliveryError, match="connection refused"):
        _client(fake_post).send("+15555550100", "hello")


def test_send_requires_credentials() -> None:
    client = SmsClient(None, None, None, http_post=lambda *a, **k: _FakeResponse())

    with pytest.raises(DeliveryError, match="Missing Twilio credentials"):
        client.send("+15555550100", "hello")
